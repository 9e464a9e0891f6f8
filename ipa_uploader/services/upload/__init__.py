"""Publish .ipa packages with install manifests to GitHub releases."""

from .assets import CollectedAssets, collect_assets
from .errors import ExtractionError, PublishError, RequestError, UploadError, WriteError
from .manifest import load_template, manifest_file_name, render_manifest
from .metadata import extract_metadata, read_ipa_metadata
from .model import Binary, IpaMetadata, PublishRequest, PublishResult, derive_tag
from .service import UploadService, upload

__all__ = [
    # assets
    "CollectedAssets",
    "collect_assets",
    # errors
    "ExtractionError",
    "PublishError",
    "RequestError",
    "UploadError",
    "WriteError",
    # manifest
    "load_template",
    "manifest_file_name",
    "render_manifest",
    # metadata
    "extract_metadata",
    "read_ipa_metadata",
    # model
    "Binary",
    "IpaMetadata",
    "PublishRequest",
    "PublishResult",
    "derive_tag",
    # service
    "UploadService",
    "upload",
]
