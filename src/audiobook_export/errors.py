"""Exception hierarchy and exit code categorization for the exporter."""

from pathlib import Path

from .models import ErrorCategory

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_FATAL = 2


class ExportError(Exception):
    """Base exception for all exporter errors."""


class ConfigError(ExportError):
    """Invalid or missing configuration."""


class CatalogError(ExportError):
    """The Books.plist catalog could not be used."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class CatalogUnreadable(CatalogError):
    """Catalog file is missing or cannot be opened."""


class CatalogMalformed(CatalogError):
    """Catalog parsed but does not match the expected schema."""

    def __init__(self, reason: str, path: Path | None = None) -> None:
        where = f" ({path})" if path else ""
        super().__init__(f"Invalid catalog structure{where}: {reason}", path)
        self.reason = reason


class DestinationError(ExportError):
    """Destination root is not a directory or cannot be created."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Destination {path} unusable: {reason}")
        self.path = path
        self.reason = reason


def categorize_exit_code(code: int) -> ErrorCategory | None:
    """Map a process exit code to an error category.

    Exit code 2 is a fatal abort before any plan was built. Any other
    non-zero code means the run completed with partial failures.
    Returns None for success.
    """
    if code == EXIT_OK:
        return None
    if code == EXIT_FATAL:
        return ErrorCategory.FATAL
    return ErrorCategory.PARTIAL
