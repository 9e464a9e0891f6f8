"""HTTP client abstraction for the GitHub REST API.

This module provides:
- HttpClient: Protocol for the two calls the publisher needs (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Protocol, runtime_checkable

from ipa_uploader.core.result import Err, Ok, Result
from ipa_uploader.core.structured import as_str_dict, get_str

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for GitHub API calls.

    Authentication is a property of the client, not of each call.
    """

    def request_json(
        self,
        method: str,
        url: str,
        *,
        payload: Mapping[str, object] | None = None,
    ) -> Result[object, HttpError]:
        """Send a JSON request and parse the JSON response.

        Args:
            method: HTTP method ("GET", "POST", ...)
            url: Full API URL
            payload: Optional JSON body

        Returns:
            Ok with the decoded JSON value (None for an empty body), or Err
        """
        ...

    def upload_file(
        self,
        url: str,
        path: Path,
        *,
        content_type: str = "application/octet-stream",
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[object, HttpError]:
        """POST a file as the raw request body.

        Args:
            url: Upload URL
            path: Local file to send
            content_type: Content-Type header for the body
            progress: Optional callback(sent, total) called as bytes go out

        Returns:
            Ok with the decoded JSON response, or Err with HttpError
        """
        ...


class _ProgressReader:
    """File wrapper that reports bytes handed to the socket."""

    def __init__(
        self,
        handle: BinaryIO,
        total: int,
        progress: Callable[[int, int], None] | None,
    ) -> None:
        self._handle = handle
        self._total = total
        self._progress = progress
        self.sent = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._handle.read(size)
        if chunk:
            self.sent += len(chunk)
            if self._progress is not None:
                self._progress(self.sent, self._total)
        return chunk


def _api_message(body: bytes) -> str | None:
    """Extract GitHub's error message (and first error code) from a response body."""
    try:
        data = as_str_dict(json.loads(body.decode("utf-8")))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if data is None:
        return None

    message = get_str(data, "message")
    errors = data.get("errors")
    if isinstance(errors, list) and errors:
        first = as_str_dict(errors[0])
        code = get_str(first, "code") if first is not None else None
        if code and message:
            return f"{message} ({code})"
    return message


def _decode_json(url: str, body: bytes) -> Result[object, HttpError]:
    if not body.strip():
        return Ok(None)
    try:
        data: object = json.loads(body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
    return Ok(data)


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - Bearer token authentication and GitHub API headers
    - Streaming file uploads with progress callback
    - Timeout handling (per request)
    """

    def __init__(
        self,
        *,
        token: str,
        timeout: float = 300.0,
        user_agent: str = "ipa-uploader",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._token = token
        self._ssl_context = ssl.create_default_context()

    def _headers(self, extra: Mapping[str, str]) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "User-Agent": self.user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        headers.update(extra)
        return headers

    def _send(self, req: urllib.request.Request) -> Result[object, HttpError]:
        url = req.full_url
        try:
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return _decode_json(url, response.read())
        except urllib.error.HTTPError as e:
            detail = _api_message(e.read()) or str(e.reason)
            return Err(HttpError(url=url, status=e.code, message=detail))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def request_json(
        self,
        method: str,
        url: str,
        *,
        payload: Mapping[str, object] | None = None,
    ) -> Result[object, HttpError]:
        data: bytes | None = None
        extra: dict[str, str] = {}
        if payload is not None:
            data = json.dumps(dict(payload)).encode("utf-8")
            extra["Content-Type"] = "application/json"

        req = urllib.request.Request(url, data=data, method=method, headers=self._headers(extra))
        return self._send(req)

    def upload_file(
        self,
        url: str,
        path: Path,
        *,
        content_type: str = "application/octet-stream",
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[object, HttpError]:
        try:
            total = path.stat().st_size
            handle = path.open("rb")
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=f"cannot read {path}: {e}"))

        with handle:
            body = _ProgressReader(handle, total, progress)
            req = urllib.request.Request(
                url,
                data=body,  # type: ignore[arg-type]
                method="POST",
                headers=self._headers(
                    {"Content-Type": content_type, "Content-Length": str(total)}
                ),
            )
            return self._send(req)


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are keyed by (method, url); uploads by url. Unknown requests
    fail with 404, like the real API does for a wrong endpoint.

    Usage:
        client = MockHttpClient()
        client.set_json("GET", "https://api.github.com/repos/o/r/releases", [])
        result = client.request_json("GET", "https://api.github.com/repos/o/r/releases")
        assert result == Ok([])
    """

    def __init__(self) -> None:
        self._json: dict[tuple[str, str], object] = {}
        self._uploads: dict[str, object] = {}
        self.calls: list[tuple[str, str]] = []
        self.payloads: list[Mapping[str, object] | None] = []

    def set_json(self, method: str, url: str, response: object) -> None:
        """Set the JSON value (or HttpError) returned for method + url."""
        self._json[(method, url)] = response

    def set_upload(self, url: str, response: object) -> None:
        """Set the JSON value (or HttpError) returned for an upload url."""
        self._uploads[url] = response

    def request_json(
        self,
        method: str,
        url: str,
        *,
        payload: Mapping[str, object] | None = None,
    ) -> Result[object, HttpError]:
        self.calls.append((method, url))
        self.payloads.append(payload)

        if (method, url) not in self._json:
            return Err(HttpError(url=url, status=404, message="Not Found (mock)"))

        response = self._json[(method, url)]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def upload_file(
        self,
        url: str,
        path: Path,
        *,
        content_type: str = "application/octet-stream",
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[object, HttpError]:
        """Mock upload: reports progress at half and full file size."""
        self.calls.append(("UPLOAD", url))

        if url not in self._uploads:
            return Err(HttpError(url=url, status=404, message="Not Found (mock)"))

        response = self._uploads[url]
        if isinstance(response, HttpError):
            return Err(response)

        total = path.stat().st_size
        if progress is not None:
            progress(total // 2, total)
            progress(total, total)
        return Ok(response)
