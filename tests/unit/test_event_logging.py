"""Unit tests for the JSON Lines pipeline event log."""

import json

import pytest

from vetter.utils.event_logging import get_recent_events, log_pipeline_event


@pytest.mark.unit
def test_log_and_read_events(tmp_path):
    events_file = tmp_path / "nested" / "events.log"

    log_pipeline_event(events_file, "evaluation_started", "acme - SRE", source="evaluation")
    log_pipeline_event(
        events_file, "evaluation_persisted", "acme - SRE", source="evaluation", overall_score=82
    )

    events = get_recent_events(events_file)
    assert [e["event_type"] for e in events] == ["evaluation_started", "evaluation_persisted"]
    assert events[1]["overall_score"] == 82
    assert events[0]["source"] == "evaluation"
    assert "timestamp" in events[0]


@pytest.mark.unit
def test_one_json_object_per_line(tmp_path):
    events_file = tmp_path / "events.log"

    for i in range(3):
        log_pipeline_event(events_file, "fixes_applied", f"app {i}", source="evaluation", fixes=i)

    lines = events_file.read_text().splitlines()
    assert len(lines) == 3
    assert [json.loads(line)["fixes"] for line in lines] == [0, 1, 2]


@pytest.mark.unit
def test_filters_and_limit(tmp_path):
    events_file = tmp_path / "events.log"
    for i in range(5):
        log_pipeline_event(events_file, "evaluation_started", "acme - SRE", source="evaluation", i=i)
        log_pipeline_event(events_file, "attempt_aborted", "globex - CTO", source="evaluation", i=i)

    assert [e["i"] for e in get_recent_events(events_file, n=2, application="acme - SRE")] == [3, 4]
    assert len(get_recent_events(events_file, n=10, event_type="attempt_aborted")) == 5
    assert get_recent_events(events_file, application="acme - SRE", event_type="attempt_aborted") == []


@pytest.mark.unit
def test_malformed_lines_are_skipped(tmp_path):
    events_file = tmp_path / "events.log"
    log_pipeline_event(events_file, "evaluation_started", "acme - SRE", source="evaluation")
    with open(events_file, "a") as f:
        f.write("{truncated\n\n")
    log_pipeline_event(events_file, "evaluation_persisted", "acme - SRE", source="evaluation")

    assert len(get_recent_events(events_file)) == 2


@pytest.mark.unit
def test_missing_file_has_no_events(tmp_path):
    assert get_recent_events(tmp_path / "none.log") == []
