"""Filesystem-safe name sanitization for destination folders and files."""

import re
from pathlib import Path

from loguru import logger

log = logger.bind(stage="sanitize")

MAX_COMPONENT_BYTES = 255

# Character -> substitute. None deletes the character.
SUBSTITUTIONS: dict[str, str | None] = {
    "/": "_",
    "\\": "_",
    ":": "_",
    "*": "_",
    "?": "_",
    '"': "_",
    "<": "_",
    ">": "_",
    "|": "_",
    "\x7f": None,
    **{chr(c): None for c in range(0x20) if chr(c) not in "\t\n\r"},
    "\t": " ",
    "\n": " ",
    "\r": " ",
}

_TRANSLATION = str.maketrans(SUBSTITUTIONS)


def truncate_component(
    name: str, limit: int = MAX_COMPONENT_BYTES, keep_extension: bool = True
) -> str:
    """Truncate a path component to `limit` UTF-8 bytes.

    With keep_extension, the file extension survives and the stem is cut.
    """
    if len(name.encode("utf-8")) <= limit:
        return name

    ext = Path(name).suffix if keep_extension else ""
    if len(ext.encode("utf-8")) >= limit:
        ext = ""
    stem = name[: len(name) - len(ext)] if ext else name
    while len((stem + ext).encode("utf-8")) > limit and stem:
        stem = stem[:-1]
    truncated = stem.rstrip(" .") + ext
    log.debug(f"Truncated component to {len(truncated.encode('utf-8'))} bytes: '{truncated}'")
    return truncated


def sanitize_component(name: str | None, fallback: str) -> str:
    """Sanitize a single path component (never a full path).

    Substitutes path separators and reserved characters, drops control
    characters, collapses whitespace, strips leading dots and trailing
    dots/spaces, and truncates to 255 bytes. Returns `fallback` when
    nothing usable is left, so the result is never empty, "." or "..".
    """
    if not name:
        return fallback

    sanitized = name.translate(_TRANSLATION)
    sanitized = re.sub(r"\s+", " ", sanitized).strip()
    sanitized = sanitized.lstrip(".").strip()
    sanitized = sanitized.rstrip(". ")
    sanitized = truncate_component(sanitized, keep_extension=False)

    if not sanitized:
        log.debug(f"Nothing left of {name!r}, using fallback {fallback!r}")
        return fallback
    return sanitized
