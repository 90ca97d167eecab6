"""Exporter configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import UNKNOWN_AUTHOR, ExportMode

# Where Apple Books keeps its library on macOS
APPLE_BOOKS_RELATIVE = Path(
    "Library/Containers/com.apple.BKAgentService/Data/Documents/iBooks/Books"
)


def default_source_dir() -> Path:
    """Apple Books library location for the current user."""
    return Path.home() / APPLE_BOOKS_RELATIVE


class ExportConfig(BaseSettings):
    """All exporter configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    source_dir: Path | None = None  # None = Apple Books default location
    dest_dir: Path | None = None
    log_dir: Path | None = None

    # -- Vendor layout --
    catalog_name: str = "Books.plist"
    storage_subdir: str = "Audiobooks"

    # -- Behavior --
    dry_run: bool = False
    symlink: bool = False
    max_workers: int = 1
    verbose: bool = False
    log_level: str = "INFO"

    # -- Naming / reporting --
    unknown_author: str = UNKNOWN_AUTHOR
    report_limit: int = 20

    @property
    def resolved_source_dir(self) -> Path:
        return self.source_dir if self.source_dir else default_source_dir()

    @property
    def catalog_path(self) -> Path:
        """Path to Books.plist inside the source library."""
        return self.resolved_source_dir / self.catalog_name

    @property
    def mode(self) -> ExportMode:
        return ExportMode.LINK if self.symlink else ExportMode.COPY

    def setup_logging(self) -> None:
        """Configure loguru for the exporter."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        if self.log_dir is None:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "export.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
