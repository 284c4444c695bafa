"""
Pipeline event logging utilities for VETTER (Tier 2 logging).

Appends evaluation pipeline events to a JSON Lines file (one JSON object per line) so
that attempts can be audited after the fact without parsing the detailed Tier 1 logs.

For detailed within-context logging, use vetter.utils.logger instead.

Usage:
    from vetter.utils.event_logging import log_pipeline_event

    log_pipeline_event(
        events_file,
        event_type="evaluation_persisted",
        application="Acme - Staff Engineer",
        source="evaluation",
        overall_score=82,
    )
"""

import json
from pathlib import Path
from typing import Optional

from vetter.utils.timestamp import now_exact


def log_pipeline_event(
    events_file: Path, event_type: str, application: str, source: str, **extra_fields
) -> None:
    """
    Append an event to the pipeline event log.

    Args:
        events_file: JSON Lines file to append to (created if missing)
        event_type: Type of event (e.g., "evaluation_started", "fixes_applied")
        application: Application identifier ("<company> - <role>")
        source: Event source (e.g., "evaluation", "learning", "cli")
        **extra_fields: Additional event-specific fields
    """
    events_file = Path(events_file)
    events_file.parent.mkdir(parents=True, exist_ok=True)

    event = {
        "timestamp": now_exact(),
        "event_type": event_type,
        "application": application,
        "source": source,
        **extra_fields,
    }

    with open(events_file, "a", encoding="utf-8") as f:
        f.write(json.dumps(event) + "\n")


def get_recent_events(
    events_file: Path,
    n: int = 10,
    application: Optional[str] = None,
    event_type: Optional[str] = None,
) -> list[dict]:
    """
    Get the last n events from the pipeline log, optionally filtered.

    Malformed lines are skipped.

    Args:
        events_file: JSON Lines file to read
        n: Number of recent events to return (default: 10)
        application: Filter to only events for this application (optional)
        event_type: Filter to only events of this type (optional)

    Returns:
        List of event dicts (most recent last)
    """
    events_file = Path(events_file)
    if not events_file.exists():
        return []

    events = []
    with open(events_file, "r", encoding="utf-8") as f:
        for line in f:
            try:
                events.append(json.loads(line.strip()))
            except json.JSONDecodeError:
                continue

    if application:
        events = [e for e in events if e.get("application") == application]

    if event_type:
        events = [e for e in events if e.get("event_type") == event_type]

    return events[-n:] if len(events) > n else events
