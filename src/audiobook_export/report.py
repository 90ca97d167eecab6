"""Human-readable rendering of plans and execution results."""

from __future__ import annotations

import click

from .models import PlanStatus
from .ops.execute import ExecutionResult
from .ops.plan import Plan

_SECTIONS = [
    (PlanStatus.TO_ADD, "+", "green", "TO ADD"),
    (PlanStatus.ALREADY_EXISTS, "=", "yellow", "ALREADY EXISTS"),
    (PlanStatus.SOURCE_MISSING, "!", "red", "SOURCE MISSING"),
]


def print_plan(plan: Plan, limit: int = 20) -> None:
    """Print the plan grouped by status, listing at most `limit` books each."""
    click.echo("\nDiff Summary")
    click.echo("=" * 50)

    grouped = plan.books()
    for status, marker, color, label in _SECTIONS:
        files = plan.file_count(status)
        books = plan.books_with(status)
        if not books:
            continue
        click.echo(
            f"\n{click.style(f'{marker} {label}', fg=color)} "
            f"({files} files in {len(books)} books)"
        )
        click.echo("-" * 50)
        for book in books[:limit]:
            n = sum(1 for e in grouped[book.identifier] if e.status == status)
            click.echo(f"  {click.style(marker, fg=color)} {book.display_name} ({n} files)")
        if len(books) > limit:
            click.echo(f"  ... and {len(books) - limit} more books")

    click.echo("\nTotals")
    click.echo("-" * 50)
    click.echo(f"  + New files to add:      {plan.file_count(PlanStatus.TO_ADD):>6}")
    click.echo(f"  = Already exist (skip):  {plan.file_count(PlanStatus.ALREADY_EXISTS):>6}")
    click.echo(f"  ! Source missing:        {plan.file_count(PlanStatus.SOURCE_MISSING):>6}")


def print_result(result: ExecutionResult, limit: int = 20) -> None:
    """Print the execution tally and every failure (up to `limit`)."""
    verb = "symlinked" if result.mode == "link" else "copied"
    click.echo("\nExport Summary")
    click.echo("=" * 50)
    if result.dry_run:
        click.echo(f"[DRY-RUN] Files that would be {verb}: {len(result.succeeded)}")
    else:
        click.echo(f"Files {verb}: {len(result.succeeded)}")
    if result.failures:
        click.echo(click.style(f"Failures: {result.failed}", fg="red"))
        for failure in result.failures[:limit]:
            click.echo(f"  !! {failure.entry.destination}")
            click.echo(f"     {failure.error}")
        if result.failed > limit:
            click.echo(f"  ... and {result.failed - limit} more failures")
