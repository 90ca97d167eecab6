"""Core enums, constants, and record types for the audiobook exporter.

Enums:
    PlanStatus     -- Reconciliation status of one file (to_add, already_exists,
                      source_missing). Closed set; every planned file has exactly one.
    ExportMode     -- How ToAdd files are materialized (copy, link).
    ErrorCategory  -- Outcome classification for exit codes (fatal, partial).
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class PlanStatus(StrEnum):
    TO_ADD = "to_add"
    ALREADY_EXISTS = "already_exists"
    SOURCE_MISSING = "source_missing"


class ExportMode(StrEnum):
    COPY = "copy"
    LINK = "link"


class ErrorCategory(StrEnum):
    FATAL = "fatal"
    PARTIAL = "partial"


AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".mp3",
        ".m4a",
        ".m4b",
        ".aac",
        ".aax",
        ".flac",
        ".ogg",
        ".wav",
    }
)

# Containers that hold a whole book in one file (renamed to <Title><ext>)
SINGLE_FILE_EXTENSIONS: frozenset[str] = frozenset({".m4b", ".aax"})

UNKNOWN_AUTHOR = "Unknown Author"
UNKNOWN_TITLE = "Unknown Title"


@dataclass(frozen=True)
class BookRecord:
    """One audiobook entry from the catalog."""

    identifier: str  # vendor hash key, names the storage directory
    author: str
    title: str
    narrator: str | None = None
    part_names: tuple[str, ...] = ()  # file names the catalog lists

    @property
    def display_name(self) -> str:
        return f"{self.author or UNKNOWN_AUTHOR} - {self.title}"

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (
            (self.author or UNKNOWN_AUTHOR).casefold(),
            self.title.casefold(),
            self.identifier,
        )


@dataclass(frozen=True)
class AssetFile:
    """One audio file belonging to a book's storage directory."""

    path: Path
    name: str
    position: int
    present: bool = True  # False when listed by the catalog but not on disk


@dataclass(frozen=True)
class DestinationSpec:
    """Filesystem-safe destination naming for one book."""

    author_dir: str
    book_dir: str
    files: tuple[tuple[str, AssetFile], ...]

    @property
    def relative_dir(self) -> Path:
        return Path(self.author_dir) / self.book_dir
