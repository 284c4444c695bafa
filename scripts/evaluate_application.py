#!/usr/bin/env python3
"""
Command-line interface for evaluating generated applications.

Runs the evaluate -> fix -> re-evaluate loop on application directories produced by
generation, persists each Evaluation and rebuilds the retrieval index.

Commands:
    run      - Evaluate one or more application directories
    all      - Evaluate every application directory under the output root
    context  - Print the lessons that would be injected into a new generation request
"""

import signal
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from vetter.contexts.evaluation import (
    AttemptCancelledError,
    DraftSet,
    EvaluationAbortedError,
    EvaluationOrchestrator,
    Fixer,
    LLMEvaluator,
    SourceFactsError,
    Target,
    load_source_facts,
)
from vetter.contexts.evaluation.logger import setup_evaluation_logger
from vetter.contexts.learning import Indexer, Retriever, format_for_prompt
from vetter.contexts.scoring import Scorer
from vetter.utils.config import ConfigError, VetterConfig, load_config
from vetter.utils.llm import get_provider

load_dotenv()

app = typer.Typer(
    add_completion=False,
    help="Evaluate generated resumes and cover letters against source facts",
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load_config_or_exit(config_path: Optional[Path], require_api_key: bool = True) -> VetterConfig:
    try:
        config = load_config(config_path)
        config.validate(require_api_key=require_api_key)
    except ConfigError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return config


def _build_orchestrator(config: VetterConfig, auto_fix: bool) -> EvaluationOrchestrator:
    provider = get_provider(
        model=config.models.evaluation,
        api_key=config.anthropic_api_key,
        timeout_s=config.request_timeout_s,
    )
    return EvaluationOrchestrator(
        detector=LLMEvaluator(provider, max_tokens=config.evaluation_max_tokens),
        scorer=Scorer(),
        fixer=Fixer(),
        indexer=Indexer.for_directory(config.output_path),
        auto_fix=auto_fix,
        attempt_timeout_s=config.attempt_timeout_s,
        events_file=config.events_file,
    )


def _find_applications(output_dir: Path) -> list[Path]:
    """Non-hidden subdirectories of the output root."""
    if not output_dir.exists():
        return []
    return sorted(p for p in output_dir.iterdir() if p.is_dir() and not p.name.startswith("."))


def _evaluate_directories(
    app_dirs: list[Path],
    config: VetterConfig,
    auto_fix: bool,
    company: Optional[str] = None,
    role: Optional[str] = None,
) -> int:
    """Evaluate each directory; returns the number that completed."""
    log_dir = Path(config.log_dir) / f"evaluate_{datetime.now():%Y%m%d_%H%M%S}"
    setup_evaluation_logger(log_dir, config.models.evaluation)

    try:
        facts = load_source_facts(config.summaries_path)
    except SourceFactsError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    orchestrator = _build_orchestrator(config, auto_fix)

    # Ctrl-C stops the attempt at the next step boundary instead of mid-write
    cancel_event = threading.Event()
    signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())

    success_count = 0
    for app_dir in app_dirs:
        if cancel_event.is_set():
            break
        try:
            drafts = DraftSet.from_directory(app_dir)
        except FileNotFoundError as e:
            typer.secho(f"✗ {app_dir.name}: {e}", fg=typer.colors.RED, err=True)
            continue

        target = drafts.infer_target(candidate_name=config.name)
        if company or role:
            target = Target(company=company or target.company, role=role or target.role)

        try:
            outcome = orchestrator.run(target, drafts, facts, cancel_event=cancel_event)
        except (EvaluationAbortedError, AttemptCancelledError) as e:
            typer.secho(f"✗ {target.application}: {e}", fg=typer.colors.RED, err=True)
            continue

        scores = outcome.evaluation.scores
        color = typer.colors.GREEN if scores.overall >= 70 else typer.colors.YELLOW
        typer.secho(f"✓ {target.application}: {scores.overall}/100", fg=color)
        if outcome.applied_fixes:
            typer.echo(f"    {len(outcome.applied_fixes)} automated fix(es) applied")
        for warning in outcome.warnings:
            typer.secho(f"    ⚠ {warning}", fg=typer.colors.YELLOW)
        if scores.overall < 70:
            typer.secho("    Score below threshold - review required", fg=typer.colors.YELLOW)
        success_count += 1

    return success_count


@app.command("run")
def run_command(
    app_dirs: list[Path] = typer.Argument(..., help="Application directories to evaluate"),
    company: Optional[str] = typer.Option(
        None, "--company", help="Override the company inferred from the directory name"
    ),
    role: Optional[str] = typer.Option(
        None, "--role", help="Override the role inferred from the resume filename"
    ),
    no_fix: bool = typer.Option(False, "--no-fix", help="Evaluate only; never rewrite drafts"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (default: $VETTER_CONFIG or ~/.vetter/config.yaml)"
    ),
):
    """
    Evaluate specific application directories.

    Examples:\n

        $ evaluate_application.py run ~/Documents/Applications/acme

        $ evaluate_application.py run acme --role "Staff Engineer" --no-fix
    """
    config = _load_config_or_exit(config_path)
    auto_fix = config.auto_fix and not no_fix

    success_count = _evaluate_directories(app_dirs, config, auto_fix, company, role)
    typer.secho(
        f"\nSuccessfully evaluated {success_count}/{len(app_dirs)} application(s)",
        fg=typer.colors.BLUE,
        bold=True,
    )
    if success_count < len(app_dirs):
        raise typer.Exit(code=1)


@app.command("all")
def all_command(
    no_fix: bool = typer.Option(False, "--no-fix", help="Evaluate only; never rewrite drafts"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """
    Evaluate every application directory under the configured output root.

    Examples:\n

        $ evaluate_application.py all
    """
    config = _load_config_or_exit(config_path)
    app_dirs = _find_applications(config.output_path)

    if not app_dirs:
        typer.secho(f"No applications found in {config.output_path}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"\nEvaluating {len(app_dirs)} application(s)...", fg=typer.colors.BLUE, bold=True)
    success_count = _evaluate_directories(app_dirs, config, config.auto_fix and not no_fix)
    typer.secho(
        f"\nSuccessfully evaluated {success_count}/{len(app_dirs)} application(s)",
        fg=typer.colors.BLUE,
        bold=True,
    )


@app.command("context")
def context_command(
    company: str = typer.Argument(..., help="Target company"),
    role: str = typer.Argument(..., help="Target role title"),
    brief: Optional[Path] = typer.Option(None, "--brief", "-b", help="Job description file"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """
    Print lessons from similar past applications, as injected into generation.

    Examples:\n

        $ evaluate_application.py context "Acme" "Senior Platform Engineer"
    """
    config = _load_config_or_exit(config_path, require_api_key=False)
    brief_text = brief.read_text(encoding="utf-8") if brief else ""

    retriever = Retriever(Indexer.for_directory(config.output_path))
    typer.echo(format_for_prompt(retriever.retrieve(company, role, brief_text)))


if __name__ == "__main__":
    app()
