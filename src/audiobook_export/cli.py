"""CLI entry point for the audiobook exporter."""

import json
from pathlib import Path

import click
from loguru import logger
from pydantic import ValidationError

from .config import ExportConfig
from .errors import EXIT_FATAL, ConfigError, ExportError
from .report import print_plan, print_result
from .runner import ExportRunner

log = logger.bind(stage="cli")


def _fatal(ctx: click.Context, error: ExportError, json_out: bool) -> None:
    if json_out:
        click.echo(json.dumps({"fatal": str(error)}, indent=2))
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(EXIT_FATAL)


@click.command()
@click.option(
    "-s",
    "--source",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Apple Books library directory (contains Books.plist). "
    "Defaults to the Apple Books container in your home directory.",
)
@click.option(
    "-d",
    "--dest",
    type=click.Path(path_type=Path),
    default=None,
    help="Destination library root (Author/Title folders are created here).",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be exported without doing it."
)
@click.option(
    "--symlink", is_flag=True, help="Create symlinks instead of copying files."
)
@click.option(
    "-j",
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Parallel file operations (default: 1).",
)
@click.option(
    "--json-output",
    "json_out",
    is_flag=True,
    help="Output the plan and result as JSON instead of human-readable.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to .env file.",
)
@click.pass_context
def main(
    ctx: click.Context,
    source: Path | None,
    dest: Path | None,
    dry_run: bool,
    symlink: bool,
    workers: int | None,
    json_out: bool,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Export Apple Books audiobooks into an Audiobookshelf Author/Title library."""
    # CLI flags only override what was actually given, so .env/env vars still apply
    config_kwargs: dict[str, object] = {}
    if source is not None:
        config_kwargs["source_dir"] = source.expanduser()
    if dest is not None:
        config_kwargs["dest_dir"] = dest.expanduser()
    if dry_run:
        config_kwargs["dry_run"] = True
    if symlink:
        config_kwargs["symlink"] = True
    if workers is not None:
        config_kwargs["max_workers"] = workers
    if verbose:
        config_kwargs["verbose"] = True
        config_kwargs["log_level"] = "DEBUG"

    try:
        config = ExportConfig(_env_file=config_file or ".env", **config_kwargs)  # type: ignore[arg-type]
        config.setup_logging()
    except (ValidationError, OSError) as e:
        _fatal(ctx, ConfigError(f"Invalid configuration: {e}"), json_out)

    log.info(
        f"Starting export: source={config.resolved_source_dir} "
        f"dest={config.dest_dir} dry_run={config.dry_run} mode={config.mode}"
    )

    try:
        report = ExportRunner(config).run()
    except ExportError as e:
        log.error(f"Export aborted: {e}")
        _fatal(ctx, e, json_out)

    if json_out:
        output = {
            "plan": report.plan.to_dict(),
            "result": report.result.to_dict(),
            "exit_code": report.exit_code,
        }
        click.echo(json.dumps(output, indent=2))
    else:
        if config.dry_run:
            click.echo("\n=== DRY RUN - No files will be copied ===")
        click.echo(f"Found {report.plan.total_books} audiobooks")
        print_plan(report.plan, limit=config.report_limit)
        print_result(report.result, limit=config.report_limit)

    ctx.exit(report.exit_code)
