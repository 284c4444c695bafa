"""Unit tests for configuration loading and validation."""

from pathlib import Path

import pytest

from vetter.utils.config import (
    DEFAULT_EVALUATION_MODEL,
    DEFAULT_GENERATION_MODEL,
    ConfigError,
    VetterConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ANTHROPIC_API_KEY", "VETTER_OUTPUT_DIR", "VETTER_CONFIG"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
def test_missing_file_uses_defaults(tmp_path):
    config = load_config(tmp_path / "missing.yaml")

    assert config.output_dir == "~/Documents/Applications"
    assert config.models.evaluation == DEFAULT_EVALUATION_MODEL
    assert config.auto_fix is True
    assert config.attempt_timeout_s == 300.0


@pytest.mark.unit
def test_yaml_values_merge_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "name: Jane Doe\n"
        "summaries_location: ~/data/summaries.json\n"
        "output_dir: /tmp/applications\n"
        "auto_fix: false\n"
        "models:\n"
        "  evaluation: claude-test\n"
    )

    config = load_config(path)

    assert config.name == "Jane Doe"
    assert config.auto_fix is False
    assert config.models.evaluation == "claude-test"
    assert config.models.generation == DEFAULT_GENERATION_MODEL
    assert config.output_path == Path("/tmp/applications")
    assert config.events_file == Path("/tmp/applications/.pipeline_events.log")
    assert config.summaries_path == Path("~/data/summaries.json").expanduser()


@pytest.mark.unit
def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("output_dir: /from/file\n")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")
    monkeypatch.setenv("VETTER_OUTPUT_DIR", "/from/env")

    config = load_config(path)

    assert config.anthropic_api_key == "sk-env"
    assert config.output_dir == "/from/env"


@pytest.mark.unit
def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "other.yaml"
    path.write_text("name: From Env Path\n")
    monkeypatch.setenv("VETTER_CONFIG", str(path))

    assert load_config().name == "From Env Path"


@pytest.mark.unit
@pytest.mark.parametrize(
    "content",
    [
        "unknown_key: 1\n",
        "request_timeout_s: soon\n",
        "models: [unclosed\n",
    ],
)
def test_bad_config_file(tmp_path, content):
    """Test unknown keys, wrong types and broken YAML raise ConfigError."""
    path = tmp_path / "config.yaml"
    path.write_text(content)

    with pytest.raises(ConfigError, match="Failed to load config"):
        load_config(path)


@pytest.mark.unit
def test_validate_reports_every_problem():
    config = VetterConfig(summaries_location="", request_timeout_s=600.0)

    with pytest.raises(ConfigError) as exc_info:
        config.validate()

    message = str(exc_info.value)
    assert "anthropic_api_key" in message
    assert "summaries_location" in message
    assert "attempt_timeout_s" in message


@pytest.mark.unit
def test_validate_without_api_key_requirement():
    config = VetterConfig(summaries_location="facts.json")

    config.validate(require_api_key=False)

    with pytest.raises(ConfigError, match="anthropic_api_key"):
        config.validate()
