"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)
from .progress import RecordingObserver, RichUploadProgress

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "RecordingObserver",
    "RichConsole",
    "RichUploadProgress",
    "Style",
]
