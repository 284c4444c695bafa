"""
Source-of-truth facts loading.

The facts file holds the candidate's real career data. Generated documents are audited
against it, so the evaluator only needs every achievement to carry a stable id; all other
fields are passed through to the evaluator untouched.

Supported formats: JSON (.json) and YAML (.yaml / .yml, loaded with OmegaConf).

Expected top-level keys:
    achievements: list of {id, company, role, dates, title, metrics, ...}
    profile: {name, title, years_experience, ...}
    skills: {languages: [...], cloud: [...], ...}
    opensource_projects: list of {name, url, description, ...} (optional)
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from vetter.contexts.evaluation.exceptions import SourceFactsError

YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class SourceFacts:
    achievements: tuple[dict, ...]
    profile: dict = field(default_factory=dict)
    skills: dict = field(default_factory=dict)
    projects: tuple[dict, ...] = ()

    @property
    def achievement_ids(self) -> list[str]:
        return [a["id"] for a in self.achievements]

    def achievements_json(self) -> str:
        return json.dumps(list(self.achievements), indent=2)

    def profile_json(self) -> str:
        return json.dumps(self.profile, indent=2)

    def skills_json(self) -> str:
        return json.dumps(self.skills, indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> "SourceFacts":
        """
        Validate and wrap raw facts data.

        Raises:
            SourceFactsError: If achievements are missing or an id is empty or duplicated
        """
        if not isinstance(data, dict):
            raise SourceFactsError("Source facts must be a mapping at the top level")

        achievements = data.get("achievements")
        if not isinstance(achievements, list) or not achievements:
            raise SourceFactsError("No achievements found in source facts")

        seen = set()
        for i, achievement in enumerate(achievements):
            if not isinstance(achievement, dict):
                raise SourceFactsError(f"Achievement at index {i} is not a mapping")
            achievement_id = achievement.get("id")
            if not isinstance(achievement_id, str) or not achievement_id.strip():
                raise SourceFactsError(f"Achievement at index {i} missing id")
            if achievement_id in seen:
                raise SourceFactsError(f"Duplicate achievement id: {achievement_id}")
            seen.add(achievement_id)

        return cls(
            achievements=tuple(achievements),
            profile=data.get("profile") or {},
            skills=data.get("skills") or {},
            projects=tuple(data.get("opensource_projects") or []),
        )


def load_source_facts(path: Path) -> SourceFacts:
    """
    Load and validate the source facts file.

    Args:
        path: JSON or YAML facts file

    Returns:
        SourceFacts instance

    Raises:
        SourceFactsError: If the file is missing, unparsable or invalid
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise SourceFactsError(f"Source facts file not found: {path}")

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = OmegaConf.to_container(OmegaConf.load(path), resolve=True)
        else:
            data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, yaml.YAMLError, OmegaConfBaseException) as e:
        raise SourceFactsError(f"Failed to parse source facts {path}: {e}") from e

    return SourceFacts.from_dict(data)
