"""Audiobookshelf-compatible destination naming.

Layout: ``<Author>/<Title> {<Narrator>}/<files>``. Everything here is pure:
no filesystem access, same inputs always give the same names.
"""

from __future__ import annotations

from loguru import logger

from ..models import (
    SINGLE_FILE_EXTENSIONS,
    UNKNOWN_AUTHOR,
    UNKNOWN_TITLE,
    AssetFile,
    DestinationSpec,
)
from ..sanitize import MAX_COMPONENT_BYTES, sanitize_component, truncate_component
from .locate import LocatedBook

log = logger.bind(stage="layout")


def folder_names(
    author: str | None,
    title: str,
    narrator: str | None,
    unknown_author: str = UNKNOWN_AUTHOR,
) -> tuple[str, str]:
    """Return the (author folder, book folder) names for a book."""
    author_dir = sanitize_component(author, fallback=unknown_author)
    title_part = sanitize_component(title, fallback=UNKNOWN_TITLE)
    narrator_part = sanitize_component(narrator, fallback="")
    if narrator_part:
        book_dir = f"{title_part} {{{narrator_part}}}"
    else:
        book_dir = title_part
    return author_dir, truncate_component(book_dir, keep_extension=False)


def destination_files(
    title: str, assets: tuple[AssetFile, ...]
) -> tuple[tuple[str, AssetFile], ...]:
    """Pair each asset with its destination file name.

    A lone single-file container (.m4b) becomes ``<Title><ext>``; multi-file
    books keep their original names so track order survives.
    """
    if len(assets) == 1:
        only = assets[0]
        ext = only.path.suffix.lower()
        if ext in SINGLE_FILE_EXTENSIONS:
            stem = sanitize_component(title, fallback=UNKNOWN_TITLE)
            return ((truncate_component(stem + ext), only),)
    return tuple((asset.name, asset) for asset in assets)


def build_destination(
    located: LocatedBook, unknown_author: str = UNKNOWN_AUTHOR
) -> DestinationSpec:
    record = located.record
    author_dir, book_dir = folder_names(
        record.author, record.title, record.narrator, unknown_author
    )
    return DestinationSpec(
        author_dir=author_dir,
        book_dir=book_dir,
        files=destination_files(record.title, located.assets),
    )


def assign_destinations(
    books: list[LocatedBook], unknown_author: str = UNKNOWN_AUTHOR
) -> list[tuple[LocatedBook, DestinationSpec]]:
    """Build destinations for every book, disambiguating folder collisions.

    Two different books that land in the same Author/Title folder
    (compared case-insensitively) would mix their files. The first book in
    (author, title, identifier) order keeps the folder name; later ones get
    their identifier appended, e.g. ``Title (sha1-abc)``.

    Returns pairs sorted in that same display order.
    """
    ordered = sorted(books, key=lambda b: b.record.sort_key)
    claimed: dict[tuple[str, str], str] = {}
    result: list[tuple[LocatedBook, DestinationSpec]] = []

    for located in ordered:
        spec = build_destination(located, unknown_author)
        key = (spec.author_dir.casefold(), spec.book_dir.casefold())
        owner = claimed.get(key)
        if owner is not None and owner != located.record.identifier:
            suffix = f" ({sanitize_component(located.record.identifier, fallback='dup')})"
            room = MAX_COMPONENT_BYTES - len(suffix.encode("utf-8"))
            book_dir = (
                truncate_component(spec.book_dir, room, keep_extension=False) + suffix
            )
            log.warning(
                f"Folder collision: '{spec.author_dir}/{spec.book_dir}' already used "
                f"by {owner}; {located.record.identifier} -> '{book_dir}'"
            )
            spec = DestinationSpec(
                author_dir=spec.author_dir, book_dir=book_dir, files=spec.files
            )
            key = (spec.author_dir.casefold(), spec.book_dir.casefold())
        claimed.setdefault(key, located.record.identifier)
        result.append((located, spec))

    return result
