"""Publish iOS .ipa builds to GitHub releases with over-the-air install manifests."""

__version__ = "0.3.0"

from ipa_uploader.services.upload import (  # noqa: E402
    Binary,
    PublishRequest,
    PublishResult,
    upload,
)

__all__ = [
    "Binary",
    "PublishRequest",
    "PublishResult",
    "__version__",
    "upload",
]
