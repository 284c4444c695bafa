"""
Evaluation context logger.

Provides logging interface for evaluation context with automatic [evaluate] prefix.
All evaluation modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from vetter.utils.logger import setup_logger as _setup_logger

load_dotenv()

CONTEXT_PREFIX = "[evaluate]"


def setup_evaluation_logger(log_dir: Path, evaluation_model: str = None) -> Path:
    """
    Setup logger for evaluation context.

    Configures loguru with provenance tracking and the evaluation model in the header.

    Args:
        log_dir: Directory for this evaluation session
        evaluation_model: Model used for violation detection

    Returns:
        Path to log file

    Example:
        from vetter.contexts.evaluation.logger import setup_evaluation_logger, _log_info

        log_file = setup_evaluation_logger(log_dir, "claude-sonnet-4-5-20250929")
        _log_info("Starting evaluation...")
    """
    return _setup_logger(
        context_name="evaluate",
        log_dir=log_dir,
        extra_provenance={"Evaluation model": evaluation_model} if evaluation_model else None,
    )


# Wrapper functions with automatic [evaluate] prefix


def _log_info(message: str) -> None:
    """Log info message with [evaluate] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [evaluate] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [evaluate] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [evaluate] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [evaluate] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level evaluation-specific logging helpers


def log_evaluation_start(application: str, stage: str) -> None:
    _log_info(f"Evaluating {application} ({stage})")


def log_detector_result(stage: str, response, elapsed_time: float) -> None:
    """
    Log the findings of one detection pass.

    Args:
        stage: "initial" or "verification"
        response: EvaluationResponse from the detector
        elapsed_time: Seconds spent in the detector call
    """
    _log_info(
        f"{stage.capitalize()} evaluation: {response.total_violations} violation(s), "
        f"{len(response.weak_quantifications)} weak quantification(s) ({elapsed_time:.1f}s)"
    )
    for violation in (
        response.resume_violations
        + response.accuracy_violations
        + response.cover_letter_violations
    ):
        _log_debug(f"  [{violation.severity}] {violation.rule}: {violation.fabricated}")


def log_pattern_applied(name: str, count: int) -> None:
    _log_debug(f"  Applied pattern: {name} ({count} replacement(s))")


def log_fix_result(result) -> None:
    """Log the labels of a FixResult."""
    if not result.applied_fixes:
        _log_info("No automated fixes applied")
        return
    _log_success(f"Applied {len(result.applied_fixes)} fix(es)")
    for label in result.labels:
        _log_info(f"  {label}")


def log_final_scores(application: str, scores) -> None:
    """Log section and overall scores for a finished evaluation."""
    level = _log_success if scores.overall >= 70 else _log_warning
    level(f"{application}: overall {scores.overall}/100")
    _log_info(
        f"  Resume {scores.resume.total}/100 "
        f"(anti-fabrication {scores.resume.anti_fabrication.score}, "
        f"weak quantifications {scores.resume.weak_quantifications.score}, "
        f"accuracy {scores.resume.accuracy.score})"
    )
    _log_info(f"  Cover letter {scores.cover_letter.total}/100")
