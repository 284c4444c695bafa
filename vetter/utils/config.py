"""
Configuration loading for VETTER.

Configuration is a structured OmegaConf schema (VetterConfig) merged with an optional YAML
file and a few environment overrides:

    1. VetterConfig defaults
    2. YAML file at VETTER_CONFIG (default: ~/.vetter/config.yaml), if it exists
    3. ANTHROPIC_API_KEY and VETTER_OUTPUT_DIR environment variables (.env is honored)

Example config.yaml:

    name: Jane Doe
    summaries_location: ~/resume-data/summaries.json
    output_dir: ~/Documents/Applications
    models:
      evaluation: claude-sonnet-4-5-20250929
    auto_fix: true
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

load_dotenv()

DEFAULT_CONFIG_PATH = Path("~/.vetter/config.yaml")
DEFAULT_GENERATION_MODEL = "claude-sonnet-4-20250514"
DEFAULT_EVALUATION_MODEL = "claude-sonnet-4-5-20250929"


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded or fails validation."""


@dataclass
class ModelsConfig:
    """Model selection for generation and evaluation calls."""

    generation: str = DEFAULT_GENERATION_MODEL
    evaluation: str = DEFAULT_EVALUATION_MODEL


@dataclass
class VetterConfig:
    """
    Structured configuration schema.

    Attributes:
        name: Candidate name (used in output filenames)
        anthropic_api_key: API key for the evaluation service
        summaries_location: Path to the source-of-truth facts file (JSON or YAML)
        output_dir: Root of the application tree; evaluations and the index live here
        models: Generation/evaluation model identifiers
        auto_fix: Run the fix + re-evaluate pass when violations are found
        request_timeout_s: Upper bound for a single service call
        attempt_timeout_s: Upper bound for a whole evaluate-fix-verify attempt
        evaluation_max_tokens: Token budget for evaluation responses
        log_dir: Directory for Tier 1 log files
    """

    name: str = ""
    anthropic_api_key: str = ""
    summaries_location: str = ""
    output_dir: str = "~/Documents/Applications"
    models: ModelsConfig = field(default_factory=ModelsConfig)
    auto_fix: bool = True
    request_timeout_s: float = 120.0
    attempt_timeout_s: float = 300.0
    evaluation_max_tokens: int = 16000
    log_dir: str = "outs/logs"

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir).expanduser()

    @property
    def summaries_path(self) -> Path:
        return Path(self.summaries_location).expanduser()

    @property
    def events_file(self) -> Path:
        """JSON Lines pipeline event log, kept beside the index."""
        return self.output_path / ".pipeline_events.log"

    def validate(self, require_api_key: bool = True) -> None:
        """
        Check that required settings are present and sane.

        Raises:
            ConfigError: Describing every problem found
        """
        problems = []
        if require_api_key and not self.anthropic_api_key:
            problems.append("anthropic_api_key is required (or set ANTHROPIC_API_KEY)")
        if not self.summaries_location:
            problems.append("summaries_location is required")
        if not self.output_dir:
            problems.append("output_dir is required")
        if self.request_timeout_s <= 0:
            problems.append("request_timeout_s must be positive")
        if self.attempt_timeout_s < self.request_timeout_s:
            problems.append("attempt_timeout_s must be at least request_timeout_s")

        if problems:
            raise ConfigError("Invalid configuration:\n  " + "\n  ".join(problems))


def load_config(config_path: Optional[Path] = None) -> VetterConfig:
    """
    Load configuration from defaults, YAML file and environment.

    A missing config file is not an error; defaults and environment still apply.

    Args:
        config_path: YAML file to merge (default: VETTER_CONFIG env var or ~/.vetter/config.yaml)

    Returns:
        VetterConfig instance (not yet validated)

    Raises:
        ConfigError: If the file cannot be parsed or contains unknown keys / wrong types
    """
    if config_path is None:
        config_path = Path(os.getenv("VETTER_CONFIG", str(DEFAULT_CONFIG_PATH)))
    config_path = Path(config_path).expanduser()

    schema = OmegaConf.structured(VetterConfig)

    try:
        if config_path.exists():
            merged = OmegaConf.merge(schema, OmegaConf.load(config_path))
        else:
            merged = schema

        overrides = {}
        if os.getenv("ANTHROPIC_API_KEY"):
            overrides["anthropic_api_key"] = os.getenv("ANTHROPIC_API_KEY")
        if os.getenv("VETTER_OUTPUT_DIR"):
            overrides["output_dir"] = os.getenv("VETTER_OUTPUT_DIR")
        if overrides:
            merged = OmegaConf.merge(merged, overrides)

        return OmegaConf.to_object(merged)
    except (OmegaConfBaseException, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config file {config_path}: {e}") from e
