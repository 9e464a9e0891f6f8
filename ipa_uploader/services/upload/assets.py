"""Collect the files to attach to a release.

Every binary is uploaded as is. Each .ipa additionally gets a generated
manifest, placed right after it in the asset list. Work runs in two
concurrent rounds:

1. read metadata from every package;
2. resolve version/build/tag defaults once from the first package;
3. write every manifest.

Both rounds are all-or-nothing: one failure fails the collection and its
partial results are dropped (manifests already written are deleted).
Asset names are checked for clashes before any work starts.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

from ipa_uploader.core.result import Err, Ok, Result, collect
from ipa_uploader.output.console import ConsoleProtocol, Style
from ipa_uploader.platform.files import remove_files
from ipa_uploader.services.upload.errors import RequestError, UploadError, WriteError
from ipa_uploader.services.upload.manifest import ManifestInput, build_manifest, manifest_file_name
from ipa_uploader.services.upload.metadata import MetadataExtractor, extract_metadata
from ipa_uploader.services.upload.model import IpaMetadata, PublishRequest

__all__ = [
    "CollectedAssets",
    "check_asset_names",
    "collect_assets",
    "order_assets",
    "resolve_defaults",
]


@dataclass(frozen=True, slots=True)
class CollectedAssets:
    """Assets ready for upload.

    `request` carries the resolved version, build number and tag.
    `manifests` lists the files this collection generated.
    """

    request: PublishRequest
    assets: tuple[Path, ...]
    manifests: tuple[Path, ...]


def check_asset_names(request: PublishRequest) -> Result[None, RequestError]:
    """Reject requests whose uploads would share a file name.

    Covers binaries with the same name in different directories and binaries
    whose generated manifest name clashes with another asset.
    """
    names: list[str] = []
    for binary in request.binaries:
        names.append(binary.name)
        if binary.is_package:
            names.append(manifest_file_name(binary.name))

    seen: set[str] = set()
    duplicates: list[str] = []
    for name in names:
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)

    if duplicates:
        return Err(
            RequestError(
                f"duplicate asset name(s): {', '.join(duplicates)}",
                hint="release assets must have unique file names",
            )
        )
    return Ok(None)


def resolve_defaults(
    request: PublishRequest,
    metadata: list[IpaMetadata],
) -> Result[PublishRequest, RequestError]:
    """Fill request defaults from the first package's metadata."""
    resolved = request.with_defaults(metadata[0] if metadata else None)
    if not resolved.tag:
        return Err(
            RequestError(
                "no release tag given and none could be derived",
                hint="pass a tag, or an .ipa / explicit version and build number",
            )
        )
    return Ok(resolved)


def order_assets(request: PublishRequest, manifests: list[Path]) -> tuple[Path, ...]:
    """Binary paths in request order, each package followed by its manifest."""
    pending = iter(manifests)
    out: list[Path] = []
    for binary in request.binaries:
        out.append(binary.path)
        if binary.is_package:
            out.append(next(pending))
    return tuple(out)


def _discard(paths: list[Path], console: ConsoleProtocol) -> None:
    def warn(path: Path, error: OSError) -> None:
        console.warning(f"could not remove {path}: {error.strerror or error}")

    remove_files(paths, on_error=warn)


async def collect_assets(
    request: PublishRequest,
    *,
    template: str,
    output_dir: Path,
    console: ConsoleProtocol,
    extract: MetadataExtractor = extract_metadata,
) -> Result[CollectedAssets, UploadError]:
    unique = check_asset_names(request)
    if isinstance(unique, Err):
        return unique

    packages = request.packages
    if request.binaries and not packages:
        console.warning("no .ipa among the binaries; no manifest will be generated")

    for binary in packages:
        console.print(f"reading metadata: {binary.name}", Style.DIM)
    extracted = collect(await asyncio.gather(*(extract(b.path) for b in packages)))
    if isinstance(extracted, Err):
        return extracted
    metadata = extracted.value

    resolved = resolve_defaults(request, metadata)
    if isinstance(resolved, Err):
        return resolved
    req = resolved.value
    target = req.target()
    assert target is not None  # resolve_defaults guarantees a tag

    items = [
        ManifestInput(target=target, metadata=meta, binary=binary)
        for binary, meta in zip(packages, metadata, strict=True)
    ]
    expected = [output_dir / manifest_file_name(b.name) for b in packages]
    try:
        outcomes = await asyncio.gather(
            *(build_manifest(item, template=template, output_dir=output_dir) for item in items),
            return_exceptions=True,
        )
    except BaseException:
        # cancelled while writing: which files exist is unknown
        _discard(expected, console)
        raise

    built: list[Result[Path, WriteError]] = []
    failure: BaseException | None = None
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            failure = failure or outcome
        else:
            built.append(outcome)
    written = [r.value for r in built if isinstance(r, Ok)]
    if failure is not None:
        _discard(written, console)
        raise failure

    manifests = collect(built)
    if isinstance(manifests, Err):
        _discard(written, console)
        return manifests

    for path in manifests.value:
        console.print(f"manifest: {path}", Style.DIM)

    return Ok(
        CollectedAssets(
            request=req,
            assets=order_assets(req, manifests.value),
            manifests=tuple(manifests.value),
        )
    )
