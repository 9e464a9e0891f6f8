"""Error codes for CLI exit status.

These values are used as process exit codes by `ipa-uploader` and should
remain stable for scripts that call it:
- 0: Success
- 1: User error (bad arguments, missing owner/repo/token)
- 2: Environment error (unreadable or invalid config file)
- 3: Package error (binary is not a readable .ipa)
- 4: Network error (GitHub API unreachable, auth or API failure)
- 5: I/O error (manifest could not be written)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    PACKAGE_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")
