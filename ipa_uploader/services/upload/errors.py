from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ipa_uploader.github.releases import PublishError


@dataclass(frozen=True, slots=True)
class ExtractionError:
    """Package metadata could not be read (invalid archive, I/O failure)."""

    path: Path
    message: str

    def pretty(self) -> str:
        return f"{self.path.name}: {self.message}"


@dataclass(frozen=True, slots=True)
class WriteError:
    """A manifest file could not be written."""

    path: Path
    message: str

    def pretty(self) -> str:
        return f"cannot write {self.path}: {self.message}"


@dataclass(frozen=True, slots=True)
class RequestError:
    """The publish request is incomplete or inconsistent."""

    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


type UploadError = ExtractionError | WriteError | PublishError | RequestError

__all__ = [
    "ExtractionError",
    "PublishError",
    "RequestError",
    "UploadError",
    "WriteError",
]
