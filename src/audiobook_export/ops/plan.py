"""Reconcile intended destinations against the destination tree.

Every (book, file) pair gets exactly one PlanStatus. Only existence is
checked at the destination; contents are never compared.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from ..models import BookRecord, DestinationSpec, PlanStatus
from .locate import LocatedBook

log = logger.bind(stage="plan")

# path -> does something already occupy it
ExistsProbe = Callable[[Path], bool]


def _lexists(path: Path) -> bool:
    # Dangling symlinks still occupy the name
    return os.path.lexists(path)


@dataclass(frozen=True)
class PlanEntry:
    """One file in the reconciliation plan."""

    status: PlanStatus
    book: BookRecord
    source: Path
    destination: Path

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "identifier": self.book.identifier,
            "author": self.book.author,
            "title": self.book.title,
            "source": str(self.source),
            "destination": str(self.destination),
        }


@dataclass
class Plan:
    """Ordered plan entries for one run, with per-status totals."""

    dest_root: Path
    entries: list[PlanEntry] = field(default_factory=list)

    def by_status(self, status: PlanStatus) -> list[PlanEntry]:
        return [e for e in self.entries if e.status == status]

    def file_count(self, status: PlanStatus) -> int:
        return sum(1 for e in self.entries if e.status == status)

    def books(self) -> dict[str, list[PlanEntry]]:
        """Entries grouped by book identifier, in plan order."""
        grouped: dict[str, list[PlanEntry]] = {}
        for entry in self.entries:
            grouped.setdefault(entry.book.identifier, []).append(entry)
        return grouped

    def books_with(self, status: PlanStatus) -> list[BookRecord]:
        """Books counted under `status`.

        A book is "already exists" only when every one of its files exists.
        For the other statuses one matching file is enough, so a partially
        exported book shows up under to_add as well.
        """
        result = []
        for entries in self.books().values():
            statuses = {e.status for e in entries}
            if status == PlanStatus.ALREADY_EXISTS:
                counted = statuses == {PlanStatus.ALREADY_EXISTS}
            else:
                counted = status in statuses
            if counted:
                result.append(entries[0].book)
        return result

    def book_count(self, status: PlanStatus) -> int:
        return len(self.books_with(status))

    @property
    def total_files(self) -> int:
        return len(self.entries)

    @property
    def total_books(self) -> int:
        return len(self.books())

    @property
    def has_missing(self) -> bool:
        return any(e.status == PlanStatus.SOURCE_MISSING for e in self.entries)

    def totals(self) -> dict[str, dict[str, int]]:
        return {
            "files": {s.value: self.file_count(s) for s in PlanStatus},
            "books": {s.value: self.book_count(s) for s in PlanStatus},
        }

    def to_dict(self) -> dict:
        return {
            "dest_root": str(self.dest_root),
            "totals": self.totals(),
            "entries": [e.to_dict() for e in self.entries],
        }


def classify(present: bool, destination: Path, exists: ExistsProbe) -> PlanStatus:
    if not present:
        return PlanStatus.SOURCE_MISSING
    if exists(destination):
        return PlanStatus.ALREADY_EXISTS
    return PlanStatus.TO_ADD


def build_plan(
    books: list[tuple[LocatedBook, DestinationSpec]],
    dest_root: Path,
    exists: ExistsProbe = _lexists,
) -> Plan:
    """Classify every destination file of every book.

    Books are ordered by author, then title (then identifier as a tie
    breaker); files keep their locator order. Given the same catalog and
    destination state the resulting plan is identical.
    """
    plan = Plan(dest_root=dest_root)
    ordered = sorted(books, key=lambda pair: pair[0].record.sort_key)

    for located, spec in ordered:
        book_dir = dest_root / spec.relative_dir
        for dest_name, asset in spec.files:
            destination = book_dir / dest_name
            status = classify(asset.present, destination, exists)
            plan.entries.append(
                PlanEntry(
                    status=status,
                    book=located.record,
                    source=asset.path,
                    destination=destination,
                )
            )

    log.info(
        f"Plan: {plan.file_count(PlanStatus.TO_ADD)} to add, "
        f"{plan.file_count(PlanStatus.ALREADY_EXISTS)} already exist, "
        f"{plan.file_count(PlanStatus.SOURCE_MISSING)} source missing "
        f"({plan.total_books} books, {plan.total_files} files)"
    )
    return plan
