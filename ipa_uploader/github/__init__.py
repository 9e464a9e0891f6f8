"""GitHub REST API access: HTTP client and release publishing."""

from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from .model import Release, ReleaseAsset
from .releases import (
    NullObserver,
    PublishError,
    PublishObserver,
    ReleaseTarget,
    publish,
    publish_release,
)

__all__ = [
    # http
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    # model
    "Release",
    "ReleaseAsset",
    # releases
    "NullObserver",
    "PublishError",
    "PublishObserver",
    "ReleaseTarget",
    "publish",
    "publish_release",
]
