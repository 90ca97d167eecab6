"""Shared fixtures: fake Apple Books libraries and a clean config environment."""

from __future__ import annotations

import plistlib
from pathlib import Path

import pytest
from loguru import logger

# Env vars that pydantic-settings reads -- cleared so tests see real defaults
CONFIG_ENV_VARS = [
    "SOURCE_DIR", "DEST_DIR", "LOG_DIR", "CATALOG_NAME", "STORAGE_SUBDIR",
    "DRY_RUN", "SYMLINK", "MAX_WORKERS", "VERBOSE", "LOG_LEVEL",
    "UNKNOWN_AUTHOR", "REPORT_LIMIT",
]

ORIGINAL_ROOT = (
    "/Users/charlie/Library/Containers/com.apple.BKAgentService/"
    "Data/Documents/iBooks/Books/Audiobooks"
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop sinks bound to streams a test (e.g. CliRunner) may have closed."""
    yield
    logger.remove()


def audiobook_entry(
    identifier: str,
    title: str | None = "Test Book",
    author: str | None = "Test Author",
    narrator: str | None = None,
    parts: list[str] | None = None,
) -> dict:
    """Build one Books.plist audiobook dict the way Apple Books writes it."""
    parts = parts if parts is not None else ["01 Track.mp3"]
    part_dicts = []
    for i, name in enumerate(parts, start=1):
        part: dict = {
            "BKTrackNumber": i,
            "BKDiscNumber": 0,
            "path": f"{ORIGINAL_ROOT}/{identifier}/{name}",
        }
        if title is not None:
            part["itemName"] = title
        if narrator is not None:
            part["composer"] = narrator
        part_dicts.append(part)

    entry: dict = {
        "BKBookType": "audiobook",
        "BKGeneratedItemId": identifier,
        "BKParts": part_dicts,
    }
    if author is not None:
        entry["artistName"] = author
    return entry


class FakeLibrary:
    """An Apple Books source directory: Books.plist + Audiobooks/<id>/files."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.entries: list[dict] = []
        root.mkdir(parents=True, exist_ok=True)

    @property
    def storage(self) -> Path:
        return self.root / "Audiobooks"

    @property
    def catalog(self) -> Path:
        return self.root / "Books.plist"

    def add_book(
        self,
        identifier: str,
        files: tuple[str, ...] | list[str] = ("01 Track.mp3",),
        on_disk: bool = True,
        **kwargs,
    ) -> FakeLibrary:
        self.entries.append(audiobook_entry(identifier, parts=list(files), **kwargs))
        if on_disk:
            book_dir = self.storage / identifier
            book_dir.mkdir(parents=True, exist_ok=True)
            for name in files:
                (book_dir / name).write_bytes(f"audio:{identifier}:{name}".encode())
        return self

    def add_entry(self, entry: dict) -> FakeLibrary:
        self.entries.append(entry)
        return self

    def write(self, fmt=plistlib.FMT_XML) -> Path:
        with self.catalog.open("wb") as fp:
            plistlib.dump({"Books": self.entries}, fp, fmt=fmt)
        return self.catalog


@pytest.fixture
def library(tmp_path) -> FakeLibrary:
    return FakeLibrary(tmp_path / "source")
