"""Result type for explicit error handling.

Every step of the upload pipeline (metadata extraction, manifest writing,
publishing) returns a Result instead of raising, so failures travel up to the
caller unchanged and the CLI decides how to render them.

Usage:
    def read_version(path: Path) -> Result[str, ExtractionError]:
        if not path.exists():
            return Err(ExtractionError(path=path, message="missing"))
        return Ok("1.0")

    match read_version(ipa):
        case Ok(value):
            print(f"version: {value}")
        case Err(error):
            print(f"error: {error.pretty()}")
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

__all__ = ["Ok", "Err", "Result", "collect"]


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result carrying a value."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result carrying an error payload."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]


def collect[T, E](results: Iterable[Result[T, E]]) -> Result[list[T], E]:
    """Combine results all-or-nothing.

    Returns Ok with every value in input order, or the first Err encountered.
    Values gathered before the failure are discarded.

    Example:
        collect([Ok(1), Ok(2)])          # Ok([1, 2])
        collect([Ok(1), Err("a"), Err("b")])  # Err("a")
    """
    values: list[T] = []
    for result in results:
        if isinstance(result, Err):
            return result
        values.append(result.value)
    return Ok(values)
