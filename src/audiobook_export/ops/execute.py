"""Materialize ToAdd plan entries by copying or symlinking.

Each file is independent: a failure is recorded against its entry and the
rest of the plan still runs. Dry run walks the same path and stops just
before the first call that would touch the destination tree.
"""

from __future__ import annotations

import errno
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from ..models import ExportMode, PlanStatus
from .plan import Plan, PlanEntry

log = logger.bind(stage="execute")

# os.link errors meaning "this filesystem has no hard links"
_NO_HARDLINK_ERRNOS = frozenset(
    {errno.EPERM, errno.EOPNOTSUPP, errno.ENOTSUP, errno.EXDEV, errno.EMLINK}
)


@dataclass(frozen=True)
class FileFailure:
    entry: PlanEntry
    error: str


@dataclass
class ExecutionResult:
    """Outcome of running a plan's ToAdd entries."""

    mode: ExportMode
    dry_run: bool = False
    succeeded: list[PlanEntry] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failures)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "dry_run": self.dry_run,
            "attempted": self.attempted,
            "succeeded": len(self.succeeded),
            "failed": self.failed,
            "failures": [
                {
                    "source": str(f.entry.source),
                    "destination": str(f.entry.destination),
                    "error": f.error,
                }
                for f in self.failures
            ],
        }


def copy_file(source: Path, destination: Path) -> None:
    """Copy source to destination without ever exposing a partial file.

    Bytes go to a temp file in the destination directory first, then a
    hard link publishes it; the link fails if anything already sits at
    destination. Filesystems without hard links fall back to a checked
    rename.
    """
    fd, tmp_path = tempfile.mkstemp(
        dir=str(destination.parent), prefix=".", suffix=".partial"
    )
    os.close(fd)
    try:
        shutil.copy2(source, tmp_path)
        try:
            os.link(tmp_path, destination)
        except FileExistsError:
            raise
        except OSError as exc:
            if exc.errno not in _NO_HARDLINK_ERRNOS:
                raise
            if os.path.lexists(destination):
                raise FileExistsError(
                    errno.EEXIST, "Destination appeared during copy", str(destination)
                ) from exc
            os.replace(tmp_path, destination)
    finally:
        Path(tmp_path).unlink(missing_ok=True)


def link_file(source: Path, destination: Path) -> None:
    """Symlink destination -> absolute source path."""
    os.symlink(os.path.abspath(source), destination)


class PlanExecutor:
    """Runs the ToAdd entries of a Plan in copy or link mode."""

    def __init__(
        self,
        mode: ExportMode = ExportMode.COPY,
        dry_run: bool = False,
        max_workers: int = 1,
    ) -> None:
        self.mode = mode
        self.dry_run = dry_run
        self.max_workers = max(1, max_workers)

    def execute(self, plan: Plan) -> ExecutionResult:
        """Attempt every ToAdd entry and tally successes and failures.

        AlreadyExists and SourceMissing entries are never touched.
        """
        pending = plan.by_status(PlanStatus.TO_ADD)
        verb = "symlink" if self.mode == ExportMode.LINK else "copy"
        log.info(
            f"{'[DRY-RUN] ' if self.dry_run else ''}Executing {len(pending)} "
            f"files ({verb}, workers={self.max_workers})"
        )

        if self.max_workers > 1 and len(pending) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(self._run_single_safe, pending))
        else:
            outcomes = [self._run_single_safe(entry) for entry in pending]

        # pool.map keeps input order, so results follow plan order either way
        result = ExecutionResult(mode=self.mode, dry_run=self.dry_run)
        for entry, error in zip(pending, outcomes):
            if error is None:
                result.succeeded.append(entry)
            else:
                result.failures.append(FileFailure(entry=entry, error=error))

        if result.failures:
            log.warning(
                f"{result.failed} of {result.attempted} file operations failed"
            )
        log.info(f"Done: {len(result.succeeded)} succeeded, {result.failed} failed")
        return result

    def _run_single_safe(self, entry: PlanEntry) -> str | None:
        """Run one entry, returning an error message instead of raising."""
        try:
            self._run_single(entry)
            return None
        except OSError as e:
            log.error(f"Failed {entry.source} -> {entry.destination}: {e}")
            return str(e)

    def _run_single(self, entry: PlanEntry) -> None:
        if not entry.source.is_file():
            raise FileNotFoundError(f"Source vanished: {entry.source}")
        if self.dry_run:
            verb = "symlink" if self.mode == ExportMode.LINK else "copy"
            log.info(f"[DRY-RUN] Would {verb} {entry.source} -> {entry.destination}")
            return

        entry.destination.parent.mkdir(parents=True, exist_ok=True)
        if os.path.lexists(entry.destination):
            raise FileExistsError(f"Destination already exists: {entry.destination}")

        if self.mode == ExportMode.LINK:
            log.debug(f"Link {entry.destination} -> {entry.source}")
            link_file(entry.source, entry.destination)
        else:
            log.debug(f"Copy {entry.source} -> {entry.destination}")
            copy_file(entry.source, entry.destination)
