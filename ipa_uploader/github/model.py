from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ipa_uploader.core.structured import StrDict, as_str_dict, get_bool, get_int, get_list, get_str


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    id: int
    name: str
    size: int
    download_url: str | None


@dataclass(frozen=True, slots=True)
class Release:
    """A GitHub release as returned by the REST API.

    Only the fields the publisher relies on are typed; the full payload is
    kept in `raw` for callers that need more.
    """

    id: int
    tag: str
    draft: bool
    prerelease: bool
    html_url: str | None
    upload_url: str
    assets: tuple[ReleaseAsset, ...] = ()
    raw: StrDict = field(default_factory=dict, repr=False, compare=False)

    @property
    def asset_upload_base(self) -> str:
        """Upload URL without its URI template suffix (`{?name,label}`)."""
        return self.upload_url.split("{", 1)[0]

    def with_assets(self, assets: tuple[ReleaseAsset, ...]) -> Release:
        return Release(
            id=self.id,
            tag=self.tag,
            draft=self.draft,
            prerelease=self.prerelease,
            html_url=self.html_url,
            upload_url=self.upload_url,
            assets=assets,
            raw=self.raw,
        )


def parse_asset(obj: object) -> ReleaseAsset | None:
    d = as_str_dict(obj)
    if d is None:
        return None

    asset_id = get_int(d, "id")
    name = get_str(d, "name")
    if asset_id is None or name is None:
        return None

    return ReleaseAsset(
        id=asset_id,
        name=name,
        size=get_int(d, "size") or 0,
        download_url=get_str(d, "browser_download_url"),
    )


def parse_release(obj: object) -> Release | None:
    """Parse a release payload; None if required fields are missing."""
    d = as_str_dict(obj)
    if d is None:
        return None

    release_id = get_int(d, "id")
    tag = get_str(d, "tag_name")
    upload_url = get_str(d, "upload_url")
    if release_id is None or tag is None or upload_url is None:
        return None

    assets: list[ReleaseAsset] = []
    for item in get_list(d, "assets") or []:
        asset = parse_asset(item)
        if asset is not None:
            assets.append(asset)

    return Release(
        id=release_id,
        tag=tag,
        draft=get_bool(d, "draft") or False,
        prerelease=get_bool(d, "prerelease") or False,
        html_url=get_str(d, "html_url"),
        upload_url=upload_url,
        assets=tuple(assets),
        raw=dict(d),
    )


def release_payload(*, tag: str) -> Mapping[str, object]:
    """Body for creating a release.

    Name, notes and target commit are left out so GitHub uses the tag name
    and the default branch.
    """
    return {"tag_name": tag, "draft": False, "prerelease": False}
