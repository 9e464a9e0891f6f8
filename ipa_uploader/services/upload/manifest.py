"""Over-the-air installation manifests.

A manifest is rendered from a plist template by literal token replacement.
Tokens are written `{{ name }}` with exactly one space inside each brace pair
and are matched case-sensitively. `bundileIdentifier` keeps its historical
spelling: existing custom templates use it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from xml.sax.saxutils import escape

from ipa_uploader.core.result import Err, Ok, Result
from ipa_uploader.github.releases import ReleaseTarget
from ipa_uploader.platform.files import atomic_write_text
from ipa_uploader.services.upload.errors import RequestError, WriteError
from ipa_uploader.services.upload.model import MANIFEST_SUFFIX, Binary, IpaMetadata

__all__ = [
    "BUNDLED_TEMPLATE",
    "PLACEHOLDERS",
    "ManifestInput",
    "build_manifest",
    "load_template",
    "manifest_file_name",
    "placeholder",
    "render_manifest",
    "write_manifest",
]

BUNDLED_TEMPLATE = Path(__file__).with_name("manifest_template.plist")

PLACEHOLDERS = (
    "owner",
    "repo",
    "tag",
    "ipaFileName",
    "bundileIdentifier",
    "version",
    "buildNumber",
    "appName",
    "iconURL",
)


def placeholder(name: str) -> str:
    return "{{ " + name + " }}"


@dataclass(frozen=True, slots=True)
class ManifestInput:
    """Everything substituted into one manifest."""

    target: ReleaseTarget
    metadata: IpaMetadata
    binary: Binary

    def values(self) -> dict[str, str]:
        return {
            "owner": self.target.owner,
            "repo": self.target.repo,
            "tag": self.target.tag,
            "ipaFileName": self.binary.name,
            "bundileIdentifier": self.metadata.bundle_identifier,
            "version": self.metadata.version,
            "buildNumber": self.metadata.build_number,
            "appName": self.metadata.display_name,
            "iconURL": self.binary.icon_url or "",
        }


def render_manifest(template: str, values: Mapping[str, str]) -> str:
    """Replace every occurrence of each known placeholder.

    Values are XML-escaped. Placeholders missing from `values` are left as is.
    """
    text = template
    for name in PLACEHOLDERS:
        if name in values:
            text = text.replace(placeholder(name), escape(values[name]))
    return text


def manifest_file_name(binary_name: str) -> str:
    """Drop the 4-character package extension and append .plist.

    "App-1.0.ipa" -> "App-1.0.plist"
    """
    return binary_name[:-4] + MANIFEST_SUFFIX


def load_template(path: Path | None = None) -> Result[str, RequestError]:
    """Read a manifest template (the bundled one when path is None)."""
    source = path or BUNDLED_TEMPLATE
    try:
        return Ok(source.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(RequestError(f"manifest template not found: {source}"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(RequestError(f"cannot read manifest template {source}: {e}"))


def write_manifest(
    item: ManifestInput,
    *,
    template: str,
    output_dir: Path,
) -> Result[Path, WriteError]:
    """Render and write one manifest; returns its path."""
    path = output_dir / manifest_file_name(item.binary.name)
    content = render_manifest(template, item.values())
    try:
        atomic_write_text(path, content)
    except OSError as e:
        return Err(WriteError(path=path, message=e.strerror or str(e)))
    except UnicodeError as e:
        # undecodable bytes in the package file name
        return Err(WriteError(path=path, message=f"cannot encode manifest: {e}"))
    return Ok(path)


async def build_manifest(
    item: ManifestInput,
    *,
    template: str,
    output_dir: Path,
) -> Result[Path, WriteError]:
    """Async wrapper running write_manifest in a worker thread."""
    return await asyncio.to_thread(
        write_manifest, item, template=template, output_dir=output_dir
    )
