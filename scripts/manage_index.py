#!/usr/bin/env python3
"""
Command-line interface for managing the evaluation index.

The index (<output_dir>/.rag-index.json) summarizes every *.evaluation.json record under
the output root and feeds lessons into future generation requests.

Commands:
    rebuild  - Rebuild the index from all evaluation records
    list     - List indexed evaluations
    stats    - Show index statistics
    events   - Show recent pipeline events
"""

import json
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from vetter.contexts.learning import Indexer, IndexLoadError
from vetter.contexts.learning.logger import setup_learning_logger
from vetter.utils.config import ConfigError, VetterConfig, load_config
from vetter.utils.event_logging import get_recent_events
from vetter.utils.timestamp import format_timestamp

load_dotenv()

app = typer.Typer(
    add_completion=False,
    help="Manage the evaluation index (.rag-index.json)",
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load_config_or_exit(config_path: Optional[Path]) -> VetterConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _load_index_or_exit(indexer: Indexer):
    try:
        return indexer.load()
    except IndexLoadError as e:
        typer.secho(f"{e}\nRun 'manage_index.py rebuild' to regenerate it.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command("rebuild")
def rebuild_command(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """
    Rebuild the index from every evaluation record under the output root.

    Unreadable records are skipped and reported in the log.

    Examples:\n

        $ manage_index.py rebuild
    """
    config = _load_config_or_exit(config_path)
    log_dir = Path(config.log_dir) / f"learn_{datetime.now():%Y%m%d_%H%M%S}"
    setup_learning_logger(log_dir, config.output_path)

    count, _ = Indexer.for_directory(config.output_path).rebuild()
    typer.secho(f"Indexed {count} evaluation(s)", fg=typer.colors.GREEN, bold=True)


@app.command("list")
def list_command(
    relative: bool = typer.Option(False, "--relative", "-r", help="Show relative timestamps"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """
    List indexed evaluations, newest first.

    Examples:\n

        $ manage_index.py list

        $ manage_index.py list --relative
    """
    config = _load_config_or_exit(config_path)
    index = _load_index_or_exit(Indexer.for_directory(config.output_path))

    if not index.evaluations:
        typer.secho("Index is empty", fg=typer.colors.YELLOW)
        return

    for entry in sorted(index.evaluations, key=lambda e: e.evaluated_at, reverse=True):
        color = typer.colors.GREEN if entry.overall_score >= 70 else typer.colors.YELLOW
        typer.secho(f"{entry.overall_score:>3}/100", fg=color, nl=False)
        typer.echo(
            f"  {entry.company} - {entry.role} [{entry.role_level.value}, {entry.industry.value}]"
            f"  {format_timestamp(entry.evaluated_at, relative=relative)}"
        )
        if entry.critical_violations:
            typer.secho(f"         {entry.critical_violations} critical violation(s)", fg=typer.colors.RED)


@app.command("stats")
def stats_command(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """
    Show index statistics.

    Examples:\n

        $ manage_index.py stats
    """
    config = _load_config_or_exit(config_path)
    index = _load_index_or_exit(Indexer.for_directory(config.output_path))

    typer.secho(f"\nIndex: {config.output_path / '.rag-index.json'}", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"Updated: {format_timestamp(index.updated_at)}")
    typer.echo(f"Evaluations: {len(index)}")
    if not index.evaluations:
        return

    scores = [e.overall_score for e in index.evaluations]
    typer.echo(f"Average score: {sum(scores) / len(scores):.1f}")
    typer.echo(f"With critical violations: {sum(1 for e in index.evaluations if e.critical_violations)}")

    typer.echo("\nBy role level:")
    for level, count in Counter(e.role_level.value for e in index.evaluations).most_common():
        typer.echo(f"  {level:<10} {count}")

    typer.echo("\nBy industry:")
    for industry, count in Counter(e.industry.value for e in index.evaluations).most_common():
        typer.echo(f"  {industry:<10} {count}")


@app.command("events")
def events_command(
    n: int = typer.Option(10, "--num", "-n", help="Number of recent events to show"),
    application: Optional[str] = typer.Option(
        None, "--application", "-a", help="Filter to events for this application"
    ),
    event_type: Optional[str] = typer.Option(
        None, "--event-type", "-e", help="Filter to events of this type"
    ),
    compact: bool = typer.Option(
        False, "--compact", help="Print one event per line (no pretty formatting)"
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """
    Show the last n pipeline events.

    Examples:\n

        $ manage_index.py events

        $ manage_index.py events -e attempt_aborted -n 5
    """
    config = _load_config_or_exit(config_path)
    events = get_recent_events(
        config.events_file, n=n, application=application, event_type=event_type
    )

    if not events:
        typer.secho("No events found", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    for event in events:
        if compact:
            typer.echo(json.dumps(event))
        else:
            typer.echo(json.dumps(event, indent=2))
            typer.echo("")


if __name__ == "__main__":
    app()
