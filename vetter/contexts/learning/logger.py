"""
Learning context logger.

Provides logging interface for learning context with automatic [learn] prefix.
All learning modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from vetter.utils.logger import setup_logger as _setup_logger

load_dotenv()

CONTEXT_PREFIX = "[learn]"


def setup_learning_logger(log_dir: Path, index_root: Path = None) -> Path:
    """
    Setup logger for learning context.

    Args:
        log_dir: Directory for this session's log file
        index_root: Application tree being indexed (recorded in the provenance header)

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="learn",
        log_dir=log_dir,
        extra_provenance={"Index root": index_root} if index_root else None,
    )


# Wrapper functions with automatic [learn] prefix


def _log_info(message: str) -> None:
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level learning-specific logging helpers


def log_record_persisted(application: str, location: str) -> None:
    _log_success(f"Saved evaluation for {application}")
    _log_debug(f"  Record: {location}")


def log_record_skipped(location: str, reason: Exception) -> None:
    """Log an evaluation record that could not be parsed during rebuild."""
    _log_warning(f"Skipping unreadable evaluation {location}: {reason}")


def log_rebuild_result(indexed: int, skipped: int, index_location: str) -> None:
    _log_info(f"Indexed {indexed} evaluation(s), skipped {skipped}")
    _log_debug(f"  Index: {index_location}")


def log_retrieval(role_level: str, similar: int, total: int) -> None:
    _log_info(f"Found {similar}/{total} similar past application(s) for level '{role_level}'")
