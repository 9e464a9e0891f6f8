from __future__ import annotations

import asyncio
from pathlib import Path

from ipa_uploader.core.result import Err, Ok
from ipa_uploader.github.http import HttpError, MockHttpClient
from ipa_uploader.github.model import parse_release, release_payload
from ipa_uploader.github.releases import (
    ReleaseTarget,
    find_draft_release,
    publish,
    publish_release,
)
from ipa_uploader.output.progress import RecordingObserver

API = "https://api.github.com"
RELEASES = f"{API}/repos/acme/app/releases"
LIST_URL = f"{RELEASES}?per_page=100"
UPLOAD_BASE = "https://uploads.github.com/repos/acme/app/releases/7/assets"
TARGET = ReleaseTarget(owner="acme", repo="app", tag="rel_1.2.3_45")


def _release(*, release_id: int = 7, tag: str = "rel_1.2.3_45", draft: bool = False) -> dict[str, object]:
    return {
        "id": release_id,
        "tag_name": tag,
        "draft": draft,
        "prerelease": False,
        "html_url": f"https://github.com/acme/app/releases/tag/{tag}",
        "upload_url": f"{UPLOAD_BASE}{{?name,label}}",
        "assets": [],
    }


def _asset(asset_id: int, name: str) -> dict[str, object]:
    return {
        "id": asset_id,
        "name": name,
        "size": 10,
        "browser_download_url": f"https://github.com/acme/app/releases/download/rel_1.2.3_45/{name}",
    }


def _files(tmp_path: Path, *names: str) -> list[Path]:
    paths: list[Path] = []
    for name in names:
        path = tmp_path / name
        path.write_bytes(b"\x01" * 10)
        paths.append(path)
    return paths


class TestModel:
    def test_upload_url_template_is_stripped(self) -> None:
        release = parse_release(_release())
        assert release is not None
        assert release.asset_upload_base == UPLOAD_BASE

    def test_parse_release_requires_tag(self) -> None:
        data = _release()
        del data["tag_name"]
        assert parse_release(data) is None

    def test_release_payload(self) -> None:
        assert release_payload(tag="v1") == {"tag_name": "v1", "draft": False, "prerelease": False}


class TestFindDraftRelease:
    def test_ignores_published_release_with_same_tag(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", LIST_URL, [_release(draft=False)])

        result = find_draft_release(http=http, api_url=API, target=TARGET)
        assert result == Ok(None)

    def test_ignores_draft_with_other_tag(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", LIST_URL, [_release(tag="other", draft=True)])

        assert find_draft_release(http=http, api_url=API, target=TARGET) == Ok(None)

    def test_list_failure(self) -> None:
        http = MockHttpClient()
        result = find_draft_release(http=http, api_url=API, target=TARGET)

        assert isinstance(result, Err)
        assert result.error.cause is not None
        assert result.error.cause.status == 404


class TestPublishRelease:
    def test_reuses_matching_draft(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json("GET", LIST_URL, [_release(draft=True)])
        http.set_upload(f"{UPLOAD_BASE}?name=App.ipa", _asset(1, "App.ipa"))

        result = publish_release(
            http=http,
            api_url=API,
            target=TARGET,
            assets=_files(tmp_path, "App.ipa"),
        )

        assert isinstance(result, Ok)
        assert result.value.draft
        assert ("POST", RELEASES) not in http.calls

    def test_creates_release_when_no_draft(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json("GET", LIST_URL, [_release(release_id=3, draft=False)])
        http.set_json("POST", RELEASES, _release())
        http.set_upload(f"{UPLOAD_BASE}?name=App.ipa", _asset(1, "App.ipa"))

        result = publish_release(
            http=http,
            api_url=API,
            target=TARGET,
            assets=_files(tmp_path, "App.ipa"),
        )

        assert isinstance(result, Ok)
        assert http.calls[:2] == [("GET", LIST_URL), ("POST", RELEASES)]
        assert http.payloads[1] == {"tag_name": "rel_1.2.3_45", "draft": False, "prerelease": False}
        assert [a.name for a in result.value.assets] == ["App.ipa"]

    def test_create_conflict_is_reported(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", LIST_URL, [])
        http.set_json(
            "POST",
            RELEASES,
            HttpError(url=RELEASES, status=422, message="Validation Failed (already_exists)"),
        )

        result = publish_release(http=http, api_url=API, target=TARGET, assets=[])

        assert isinstance(result, Err)
        assert result.error.cause is not None
        assert result.error.cause.status == 422
        assert "rel_1.2.3_45" in result.error.pretty()

    def test_uploads_in_order_with_progress(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json("GET", LIST_URL, [])
        http.set_json("POST", RELEASES, _release())
        http.set_upload(f"{UPLOAD_BASE}?name=App.ipa", _asset(1, "App.ipa"))
        http.set_upload(f"{UPLOAD_BASE}?name=App.plist", _asset(2, "App.plist"))
        observer = RecordingObserver()

        result = publish_release(
            http=http,
            api_url=API,
            target=TARGET,
            assets=_files(tmp_path, "App.ipa", "App.plist"),
            observer=observer,
        )

        assert isinstance(result, Ok)
        uploads = [url for method, url in http.calls if method == "UPLOAD"]
        assert uploads == [f"{UPLOAD_BASE}?name=App.ipa", f"{UPLOAD_BASE}?name=App.plist"]
        assert observer.started == ["App.ipa", "App.plist"]
        assert [e.kind for e in observer.events if e.name == "App.ipa"] == [
            "started",
            "progress",
            "progress",
            "finished",
        ]

    def test_no_assets_means_no_progress(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", LIST_URL, [])
        http.set_json("POST", RELEASES, _release())
        observer = RecordingObserver()

        result = publish_release(http=http, api_url=API, target=TARGET, assets=[], observer=observer)

        assert isinstance(result, Ok)
        assert observer.events == []
        assert not any(method == "UPLOAD" for method, _ in http.calls)

    def test_upload_failure_stops_and_finishes_bar(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json("GET", LIST_URL, [])
        http.set_json("POST", RELEASES, _release())
        observer = RecordingObserver()

        result = publish_release(
            http=http,
            api_url=API,
            target=TARGET,
            assets=_files(tmp_path, "App.ipa", "App.plist"),
            observer=observer,
        )

        assert isinstance(result, Err)
        assert "App.ipa" in result.error.message
        assert observer.started == ["App.ipa"]
        assert observer.events[-1].kind == "finished"

    def test_special_characters_are_quoted(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json("GET", LIST_URL, [_release(draft=True)])
        http.set_upload(f"{UPLOAD_BASE}?name=My%20App.ipa", _asset(1, "My App.ipa"))

        result = publish_release(
            http=http,
            api_url=API,
            target=TARGET,
            assets=_files(tmp_path, "My App.ipa"),
        )

        assert isinstance(result, Ok)


def test_async_publish_wrapper(tmp_path: Path) -> None:
    http = MockHttpClient()
    http.set_json("GET", LIST_URL, [_release(draft=True)])
    http.set_upload(f"{UPLOAD_BASE}?name=App.ipa", _asset(1, "App.ipa"))

    result = asyncio.run(
        publish(http=http, api_url=API, target=TARGET, assets=_files(tmp_path, "App.ipa"))
    )

    assert isinstance(result, Ok)
    assert result.value.assets[-1].name == "App.ipa"
