"""Read identification metadata from an .ipa package.

An .ipa is a zip archive holding `Payload/<Name>.app/Info.plist`. Only that
plist is read; nothing else in the bundle is inspected.
"""

from __future__ import annotations

import asyncio
import plistlib
import re
import zipfile
import zlib
from collections.abc import Awaitable, Callable
from pathlib import Path
from xml.parsers.expat import ExpatError

from ipa_uploader.core.result import Err, Ok, Result
from ipa_uploader.core.structured import as_str_dict, get_str
from ipa_uploader.services.upload.errors import ExtractionError
from ipa_uploader.services.upload.model import IpaMetadata

__all__ = ["MetadataExtractor", "extract_metadata", "find_info_plist", "read_ipa_metadata"]

_INFO_PLIST = re.compile(r"^Payload/[^/]+\.app/Info\.plist$")

MetadataExtractor = Callable[[Path], Awaitable[Result[IpaMetadata, ExtractionError]]]


def find_info_plist(names: list[str]) -> str | None:
    """Return the archive member holding the app's top-level Info.plist."""
    for name in names:
        if _INFO_PLIST.match(name):
            return name
    return None


def read_ipa_metadata(path: Path) -> Result[IpaMetadata, ExtractionError]:
    try:
        with zipfile.ZipFile(path) as archive:
            member = find_info_plist(archive.namelist())
            if member is None:
                return Err(ExtractionError(path=path, message="no Payload/*.app/Info.plist"))
            raw = archive.read(member)
    except FileNotFoundError:
        return Err(ExtractionError(path=path, message="file not found"))
    except zipfile.BadZipFile:
        return Err(ExtractionError(path=path, message="not a zip archive"))
    except (zlib.error, EOFError) as e:
        return Err(ExtractionError(path=path, message=f"corrupt archive entry: {e}"))
    except (RuntimeError, NotImplementedError) as e:
        # encrypted entries, unsupported compression methods
        return Err(ExtractionError(path=path, message=f"unreadable archive entry: {e}"))
    except OSError as e:
        return Err(ExtractionError(path=path, message=str(e)))

    try:
        info_obj: object = plistlib.loads(raw)
    except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
        return Err(ExtractionError(path=path, message=f"invalid Info.plist: {e}"))

    info = as_str_dict(info_obj)
    if info is None:
        return Err(ExtractionError(path=path, message="Info.plist root is not a dictionary"))

    bundle_id = get_str(info, "CFBundleIdentifier")
    version = get_str(info, "CFBundleShortVersionString")
    build_number = get_str(info, "CFBundleVersion")
    missing = [
        key
        for key, value in (
            ("CFBundleIdentifier", bundle_id),
            ("CFBundleShortVersionString", version),
            ("CFBundleVersion", build_number),
        )
        if value is None
    ]
    if bundle_id is None or version is None or build_number is None:
        return Err(
            ExtractionError(path=path, message=f"Info.plist missing {', '.join(missing)}")
        )

    display_name = get_str(info, "CFBundleDisplayName") or get_str(info, "CFBundleName") or ""
    return Ok(
        IpaMetadata(
            bundle_identifier=bundle_id,
            display_name=display_name,
            version=version,
            build_number=build_number,
        )
    )


async def extract_metadata(path: Path) -> Result[IpaMetadata, ExtractionError]:
    """Async wrapper running read_ipa_metadata in a worker thread."""
    return await asyncio.to_thread(read_ipa_metadata, path)
