"""Export runner -- catalog -> locate -> layout -> plan -> execute."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .catalog import load_catalog
from .config import ExportConfig
from .errors import EXIT_OK, EXIT_PARTIAL, ConfigError, DestinationError
from .ops.execute import ExecutionResult, PlanExecutor
from .ops.layout import assign_destinations
from .ops.locate import StorageResolver, apple_books_storage, locate_assets
from .ops.plan import ExistsProbe, Plan, build_plan

log = logger.bind(stage="runner")


@dataclass
class ExportReport:
    """Everything one run produced, for rendering and exit status."""

    plan: Plan
    result: ExecutionResult

    @property
    def exit_code(self) -> int:
        if self.result.failures or self.plan.has_missing:
            return EXIT_PARTIAL
        return EXIT_OK


def prepare_destination(dest_root: Path, dry_run: bool) -> None:
    """Make sure dest_root is (or can become) a directory.

    Dry runs never create it; a missing root just means every file is new.
    """
    if dest_root.exists() and not dest_root.is_dir():
        raise DestinationError(dest_root, "exists and is not a directory")
    if dry_run:
        return
    try:
        dest_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DestinationError(dest_root, str(exc)) from exc


class ExportRunner:
    """Runs one export for the given configuration.

    The storage resolver and destination existence probe can be swapped
    out, mainly so tests can fake the vendor layout or the destination.
    """

    def __init__(
        self,
        config: ExportConfig,
        resolve_storage: StorageResolver | None = None,
        exists: ExistsProbe | None = None,
    ) -> None:
        self.config = config
        self.resolve_storage = resolve_storage or apple_books_storage(
            config.resolved_source_dir, config.storage_subdir
        )
        self.exists = exists

    @property
    def dest_root(self) -> Path:
        if self.config.dest_dir is None:
            raise ConfigError("No destination directory configured (use --dest)")
        return self.config.dest_dir

    def plan(self) -> Plan:
        """Build the reconciliation plan without touching the destination."""
        dest_root = self.dest_root
        catalog_path = self.config.catalog_path
        log.info(f"Reading audiobook library from: {catalog_path}")
        records = load_catalog(catalog_path)

        located = [locate_assets(r, self.resolve_storage) for r in records]
        missing = sum(1 for book in located if book.missing)
        if missing:
            log.warning(f"{missing} of {len(located)} books have no source files")

        books = assign_destinations(located, self.config.unknown_author)
        if self.exists is None:
            return build_plan(books, dest_root)
        return build_plan(books, dest_root, exists=self.exists)

    def run(self) -> ExportReport:
        """Plan, then execute (or preview) the plan.

        Fatal problems (catalog, destination, config) raise ExportError
        before anything is written. Per-file problems end up in the report.
        """
        plan = self.plan()
        prepare_destination(self.dest_root, self.config.dry_run)

        executor = PlanExecutor(
            mode=self.config.mode,
            dry_run=self.config.dry_run,
            max_workers=self.config.max_workers,
        )
        result = executor.execute(plan)
        return ExportReport(plan=plan, result=result)
