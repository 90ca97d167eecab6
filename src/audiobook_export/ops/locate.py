"""Resolve catalog records to the audio files in their storage directories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from ..models import AUDIO_EXTENSIONS, AssetFile, BookRecord

log = logger.bind(stage="locate")

# identifier -> storage directory
StorageResolver = Callable[[str], Path]


@dataclass(frozen=True)
class LocatedBook:
    """A catalog record together with the files found for it."""

    record: BookRecord
    storage_dir: Path
    assets: tuple[AssetFile, ...]

    @property
    def missing(self) -> bool:
        return not any(a.present for a in self.assets)


def apple_books_storage(
    source_root: Path, subdir: str = "Audiobooks"
) -> StorageResolver:
    """Resolver for the Apple Books layout: <source_root>/<subdir>/<identifier>."""
    storage_root = source_root / subdir

    def resolve(identifier: str) -> Path:
        return storage_root / identifier

    return resolve


def _name_key(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


def _list_audio(storage_dir: Path) -> list[Path]:
    """Immediate audio files of storage_dir, empty if it is not a directory."""
    if not storage_dir.is_dir():
        return []
    return [
        p
        for p in storage_dir.iterdir()
        if p.is_file() and p.suffix.lower() in AUDIO_EXTENSIONS
    ]


def locate_assets(record: BookRecord, resolve: StorageResolver) -> LocatedBook:
    """Find the audio files belonging to `record`.

    Files are ordered case-insensitively by name so multi-part tracks keep
    a stable sequence. Catalog parts that are not on disk are returned with
    present=False. A missing or empty storage directory never raises: its
    expected files come back as not present, so the book is still planned.
    """
    storage_dir = resolve(record.identifier)
    found = _list_audio(storage_dir)

    on_disk = {p.name.casefold() for p in found}
    expected = [
        name
        for name in dict.fromkeys(record.part_names)
        if Path(name).suffix.lower() in AUDIO_EXTENSIONS
        and name.casefold() not in on_disk
    ]

    entries: list[tuple[str, Path, bool]] = [(p.name, p, True) for p in found]
    entries.extend((name, storage_dir / name, False) for name in expected)

    if not found:
        if entries:
            log.warning(
                f"No audio in {storage_dir} for '{record.display_name}' "
                f"({len(entries)} catalog files missing)"
            )
        else:
            # Nothing known about the files: report the directory itself
            log.warning(f"Storage missing for '{record.display_name}': {storage_dir}")
            entries.append((storage_dir.name, storage_dir, False))
    elif expected:
        log.warning(
            f"{len(expected)} catalog files missing from {storage_dir} "
            f"for '{record.display_name}'"
        )

    entries.sort(key=lambda e: _name_key(e[0]))
    assets = tuple(
        AssetFile(path=path, name=name, position=i, present=present)
        for i, (name, path, present) in enumerate(entries)
    )
    log.debug(
        f"Located {sum(a.present for a in assets)}/{len(assets)} files "
        f"for {record.identifier}"
    )
    return LocatedBook(record=record, storage_dir=storage_dir, assets=assets)
