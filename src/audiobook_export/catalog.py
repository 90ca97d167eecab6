"""Read the Apple Books Books.plist catalog into BookRecords.

The catalog is a property list (XML or binary) with a top-level ``Books``
array. Audiobook entries carry ``BKBookType == "audiobook"``; their files
live under ``Audiobooks/<BKGeneratedItemId>/`` in the source library.
"""

from __future__ import annotations

import plistlib
import struct
from pathlib import Path, PurePosixPath
from typing import IO, Any
from xml.parsers.expat import ExpatError

from loguru import logger

from .errors import CatalogMalformed, CatalogUnreadable
from .models import BookRecord

log = logger.bind(stage="catalog")

AUDIOBOOK_TYPE = "audiobook"


def load_catalog(path: Path) -> list[BookRecord]:
    """Open and parse the catalog at `path`.

    Raises CatalogUnreadable if the file is missing or cannot be opened,
    CatalogMalformed if its structure is not the expected schema.
    """
    log.debug(f"load_catalog(path={path})")
    if not path.is_file():
        raise CatalogUnreadable(f"Books.plist not found at {path}", path)
    try:
        with path.open("rb") as fp:
            return parse_catalog(fp, source=path)
    except OSError as exc:
        raise CatalogUnreadable(f"Cannot read {path}: {exc}", path) from exc


def parse_catalog(fp: IO[bytes], source: Path | None = None) -> list[BookRecord]:
    """Parse an open catalog handle into audiobook records, in catalog order."""
    try:
        root = plistlib.load(fp)
    except (
        plistlib.InvalidFileException,
        ExpatError,
        ValueError,
        AttributeError,
        IndexError,
        KeyError,
        TypeError,
        OverflowError,
        struct.error,
    ) as exc:
        # plistlib surfaces bad dates and corrupt binary offsets as generic errors
        raise CatalogMalformed(f"not a property list ({exc})", source) from exc

    if not isinstance(root, dict):
        raise CatalogMalformed("root is not a dictionary", source)
    books = root.get("Books")
    if not isinstance(books, list):
        raise CatalogMalformed("missing 'Books' array", source)

    records: list[BookRecord] = []
    seen: set[str] = set()
    skipped = 0
    for index, entry in enumerate(books):
        if not isinstance(entry, dict):
            raise CatalogMalformed(f"Books[{index}] is not a dictionary", source)
        if entry.get("BKBookType") != AUDIOBOOK_TYPE:
            skipped += 1
            continue
        record = _parse_audiobook(entry, index, source)
        if record is None:
            continue
        if record.identifier in seen:
            log.warning(
                f"Skipping duplicate catalog entry {record.identifier} (Books[{index}])"
            )
            continue
        seen.add(record.identifier)
        records.append(record)

    log.info(
        f"Catalog: {len(records)} audiobooks ({skipped} non-audiobook entries skipped)"
    )
    if not records:
        log.warning("No audiobooks found in catalog")
    return records


def _parse_audiobook(
    entry: dict[str, Any], index: int, source: Path | None
) -> BookRecord | None:
    """Build a BookRecord from one audiobook dict, or None if it has no title."""
    identifier = entry.get("BKGeneratedItemId")
    if not isinstance(identifier, str) or not identifier.strip():
        raise CatalogMalformed(
            f"Books[{index}] has no string 'BKGeneratedItemId'", source
        )
    identifier = identifier.strip()

    author = _optional_str(entry, "artistName", index, source) or ""

    parts = entry.get("BKParts", [])
    if not isinstance(parts, list) or not all(isinstance(p, dict) for p in parts):
        raise CatalogMalformed(
            f"Books[{index}] 'BKParts' is not an array of dictionaries", source
        )

    title = (_optional_str(entry, "itemName", index, source) or "").strip()
    narrator = None
    part_names: list[str] = []
    for part in parts:
        if not title:
            title = (_optional_str(part, "itemName", index, source) or "").strip()
        if narrator is None:
            narrator = _optional_str(part, "composer", index, source)
        part_path = _optional_str(part, "path", index, source)
        if part_path:
            # Catalog paths are absolute POSIX paths from the original Mac
            part_names.append(PurePosixPath(part_path).name)

    if not title:
        log.warning(f"Skipping catalog entry {identifier}: no title")
        return None

    narrator = narrator.strip() if narrator else None
    log.debug(
        f"Parsed {identifier}: author={author!r} title={title!r} "
        f"narrator={narrator!r} parts={len(part_names)}"
    )
    return BookRecord(
        identifier=identifier,
        author=author.strip(),
        title=title,
        narrator=narrator or None,
        part_names=tuple(part_names),
    )


def _optional_str(
    mapping: dict[str, Any], key: str, index: int, source: Path | None
) -> str | None:
    value = mapping.get(key)
    if value is None or isinstance(value, str):
        return value
    raise CatalogMalformed(
        f"Books[{index}] '{key}' should be a string, got {type(value).__name__}",
        source,
    )
