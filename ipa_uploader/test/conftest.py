from __future__ import annotations

import plistlib
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

MakeIpa = Callable[..., Path]


def write_ipa(
    path: Path,
    *,
    bundle_id: str = "com.example.app",
    version: str = "1.2.3",
    build: str = "45",
    display_name: str | None = "Example",
    app_dir: str = "Example.app",
    binary_plist: bool = False,
) -> Path:
    """Write a minimal .ipa archive with an Info.plist."""
    info: dict[str, object] = {
        "CFBundleIdentifier": bundle_id,
        "CFBundleShortVersionString": version,
        "CFBundleVersion": build,
        "CFBundleName": "ExampleName",
    }
    if display_name is not None:
        info["CFBundleDisplayName"] = display_name

    fmt = plistlib.FMT_BINARY if binary_plist else plistlib.FMT_XML
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(f"Payload/{app_dir}/Info.plist", plistlib.dumps(info, fmt=fmt))
        archive.writestr(f"Payload/{app_dir}/Example", b"\x00" * 64)
    return path


@pytest.fixture
def make_ipa(tmp_path: Path) -> MakeIpa:
    def factory(name: str = "App-1.0.ipa", **kwargs: object) -> Path:
        return write_ipa(tmp_path / "in" / name, **kwargs)  # type: ignore[arg-type]

    return factory
