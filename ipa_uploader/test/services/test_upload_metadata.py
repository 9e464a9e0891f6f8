from __future__ import annotations

import asyncio
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from ipa_uploader.core.result import Err, Ok
from ipa_uploader.services.upload.metadata import (
    extract_metadata,
    find_info_plist,
    read_ipa_metadata,
)
from ipa_uploader.services.upload.model import IpaMetadata

MakeIpa = Callable[..., Path]


def test_reads_identification_fields(make_ipa: MakeIpa) -> None:
    result = read_ipa_metadata(make_ipa())

    assert result == Ok(
        IpaMetadata(
            bundle_identifier="com.example.app",
            display_name="Example",
            version="1.2.3",
            build_number="45",
        )
    )


def test_reads_binary_plist(make_ipa: MakeIpa) -> None:
    result = read_ipa_metadata(make_ipa(binary_plist=True, version="2.0"))

    assert isinstance(result, Ok)
    assert result.value.version == "2.0"


def test_display_name_falls_back_to_bundle_name(make_ipa: MakeIpa) -> None:
    result = read_ipa_metadata(make_ipa(display_name=None))

    assert isinstance(result, Ok)
    assert result.value.display_name == "ExampleName"


def test_missing_file(tmp_path: Path) -> None:
    result = read_ipa_metadata(tmp_path / "missing.ipa")

    assert isinstance(result, Err)
    assert result.error.message == "file not found"


def test_not_a_zip(tmp_path: Path) -> None:
    path = tmp_path / "App.ipa"
    path.write_text("not a zip", encoding="utf-8")

    result = read_ipa_metadata(path)

    assert isinstance(result, Err)
    assert result.error.message == "not a zip archive"
    assert result.error.pretty() == "App.ipa: not a zip archive"


def test_archive_without_info_plist(tmp_path: Path) -> None:
    path = tmp_path / "App.ipa"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("Payload/App.app/App", b"\x00")

    result = read_ipa_metadata(path)

    assert isinstance(result, Err)
    assert "Info.plist" in result.error.message


def test_invalid_info_plist(tmp_path: Path) -> None:
    path = tmp_path / "App.ipa"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("Payload/App.app/Info.plist", b"<plist><dict><key>x")

    result = read_ipa_metadata(path)

    assert isinstance(result, Err)
    assert result.error.message.startswith("invalid Info.plist")


def test_missing_keys_are_named(make_ipa: MakeIpa) -> None:
    result = read_ipa_metadata(make_ipa(version="  "))

    assert isinstance(result, Err)
    assert result.error.message == "Info.plist missing CFBundleShortVersionString"


def test_find_info_plist_ignores_nested_bundles() -> None:
    names = [
        "Payload/App.app/PlugIns/Ext.appex/Info.plist",
        "Payload/App.app/Frameworks/Lib.framework/Info.plist",
        "Payload/App.app/Info.plist",
    ]
    assert find_info_plist(names) == "Payload/App.app/Info.plist"
    assert find_info_plist(names[:2]) is None


def test_extract_metadata_async(make_ipa: MakeIpa) -> None:
    result = asyncio.run(extract_metadata(make_ipa(build="99")))

    assert isinstance(result, Ok)
    assert result.value.build_number == "99"


def test_corrupt_compressed_entry(make_ipa: MakeIpa) -> None:
    path = make_ipa()
    rewritten = path.with_name("Deflated.ipa")
    with zipfile.ZipFile(path) as src, zipfile.ZipFile(rewritten, "w", zipfile.ZIP_DEFLATED) as dst:
        for item in src.infolist():
            dst.writestr(item.filename, src.read(item.filename))

    with zipfile.ZipFile(rewritten) as archive:
        info = archive.getinfo("Payload/Example.app/Info.plist")
    data = bytearray(rewritten.read_bytes())
    start = info.header_offset + 30 + len(info.filename.encode()) + len(info.extra)
    # BTYPE=11 is a reserved deflate block type
    data[start] = 0xFF
    rewritten.write_bytes(bytes(data))

    result = read_ipa_metadata(rewritten)

    assert isinstance(result, Err)
    assert result.error.message.startswith("corrupt archive entry")


def test_unsupported_entry(make_ipa: MakeIpa, monkeypatch: pytest.MonkeyPatch) -> None:
    path = make_ipa()

    def fail_read(self: zipfile.ZipFile, name: object, pwd: object = None) -> bytes:
        raise NotImplementedError("That compression method is not supported")

    monkeypatch.setattr(zipfile.ZipFile, "read", fail_read)

    result = read_ipa_metadata(path)

    assert isinstance(result, Err)
    assert result.error.message.startswith("unreadable archive entry")
