"""Publish assets to a GitHub release.

Release handling rules:
- an existing release with the same tag is reused only while it is a draft;
- otherwise a new, non-draft, non-prerelease release is created with no name,
  notes or target commit. GitHub rejects it when a published release already
  owns the tag, and that rejection is reported, never worked around;
- every asset is uploaded in order, without checking for existing files or
  skipping duplicates.

Progress goes to a PublishObserver and is never used for control flow.
"""

from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from ipa_uploader.core.result import Err, Ok, Result
from ipa_uploader.core.structured import as_obj_list
from ipa_uploader.github.http import HttpClient, HttpError
from ipa_uploader.github.model import (
    Release,
    ReleaseAsset,
    parse_asset,
    parse_release,
    release_payload,
)

__all__ = [
    "PublishError",
    "PublishObserver",
    "NullObserver",
    "ReleaseTarget",
    "find_draft_release",
    "create_release",
    "upload_asset",
    "publish_release",
    "publish",
]

# GitHub caps page size at 100. Only the newest page is searched for a draft.
RELEASES_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class PublishError:
    """Remote publishing failed (auth, network, API conflict)."""

    message: str
    cause: HttpError | None = None

    def pretty(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class PublishObserver(Protocol):
    """Receives upload progress for UI feedback."""

    def asset_started(self, name: str, total: int) -> None: ...

    def asset_progress(self, name: str, transferred: int, total: int) -> None: ...

    def asset_finished(self, name: str) -> None: ...


class NullObserver:
    def asset_started(self, name: str, total: int) -> None:
        del name, total

    def asset_progress(self, name: str, transferred: int, total: int) -> None:
        del name, transferred, total

    def asset_finished(self, name: str) -> None:
        del name


@dataclass(frozen=True, slots=True)
class ReleaseTarget:
    """Where a release lives: repository coordinates and tag."""

    owner: str
    repo: str
    tag: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def releases_url(self, api_url: str) -> str:
        return f"{api_url.rstrip('/')}/repos/{self.owner}/{self.repo}/releases"


def find_draft_release(
    *,
    http: HttpClient,
    api_url: str,
    target: ReleaseTarget,
) -> Result[Release | None, PublishError]:
    """Find a draft release for the target tag, if one exists.

    Published releases with the same tag are ignored here; creating a new
    release then fails on GitHub's side, which is the intended outcome.
    """
    url = f"{target.releases_url(api_url)}?per_page={RELEASES_PAGE_SIZE}"
    result = http.request_json("GET", url)
    if isinstance(result, Err):
        return Err(PublishError(f"failed to list releases of {target.slug}", cause=result.error))

    items = as_obj_list(result.value)
    if items is None:
        return Err(PublishError(f"unexpected releases payload: {target.slug}"))

    for item in items:
        release = parse_release(item)
        if release is not None and release.tag == target.tag and release.draft:
            return Ok(release)
    return Ok(None)


def create_release(
    *,
    http: HttpClient,
    api_url: str,
    target: ReleaseTarget,
) -> Result[Release, PublishError]:
    result = http.request_json(
        "POST",
        target.releases_url(api_url),
        payload=release_payload(tag=target.tag),
    )
    if isinstance(result, Err):
        return Err(
            PublishError(
                f"failed to create release {target.tag} in {target.slug}",
                cause=result.error,
            )
        )

    release = parse_release(result.value)
    if release is None:
        return Err(PublishError(f"unexpected release payload: {target.slug}@{target.tag}"))
    return Ok(release)


def upload_asset(
    *,
    http: HttpClient,
    release: Release,
    path: Path,
    observer: PublishObserver,
) -> Result[ReleaseAsset, PublishError]:
    """Upload one file to the release, reporting progress to observer."""
    name = path.name
    url = f"{release.asset_upload_base}?name={quote(name)}"
    content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"

    try:
        total = path.stat().st_size
    except OSError as e:
        return Err(PublishError(f"cannot read asset {path}: {e}"))

    def on_progress(sent: int, size: int) -> None:
        observer.asset_progress(name, sent, size)

    observer.asset_started(name, total)
    try:
        result = http.upload_file(url, path, content_type=content_type, progress=on_progress)
    finally:
        observer.asset_finished(name)

    if isinstance(result, Err):
        return Err(PublishError(f"failed to upload {name}", cause=result.error))

    asset = parse_asset(result.value)
    if asset is None:
        return Err(PublishError(f"unexpected asset payload for {name}"))
    return Ok(asset)


def publish_release(
    *,
    http: HttpClient,
    api_url: str,
    target: ReleaseTarget,
    assets: Sequence[Path],
    observer: PublishObserver | None = None,
) -> Result[Release, PublishError]:
    """Create or reuse the release for target and upload assets to it.

    Returns the release including the assets uploaded by this call. The
    first failure stops the upload; assets already sent stay on GitHub.
    """
    obs = observer if observer is not None else NullObserver()

    draft = find_draft_release(http=http, api_url=api_url, target=target)
    if isinstance(draft, Err):
        return draft

    if draft.value is not None:
        release = draft.value
    else:
        created = create_release(http=http, api_url=api_url, target=target)
        if isinstance(created, Err):
            return created
        release = created.value

    uploaded: list[ReleaseAsset] = list(release.assets)
    for path in assets:
        result = upload_asset(http=http, release=release, path=path, observer=obs)
        if isinstance(result, Err):
            return result
        uploaded.append(result.value)

    return Ok(release.with_assets(tuple(uploaded)))


async def publish(
    *,
    http: HttpClient,
    api_url: str,
    target: ReleaseTarget,
    assets: Sequence[Path],
    observer: PublishObserver | None = None,
) -> Result[Release, PublishError]:
    """Async wrapper running publish_release off the event loop."""
    return await asyncio.to_thread(
        publish_release,
        http=http,
        api_url=api_url,
        target=target,
        assets=list(assets),
        observer=observer,
    )
