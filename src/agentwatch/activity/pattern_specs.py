"""Pattern definitions from configuration

Free-form dicts (config.CUSTOM_PATTERNS, user files) are validated here
before they reach a PatternLibrary. Invalid entries are logged and
reported, never raised.
"""

import re
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from ..core.agents import WILDCARD_AGENT, normalize_agent_type
from ..telemetry import get_logger, metrics
from .patterns import Pattern, PatternError, PatternLibrary
from .types import AgentState, PatternCategory

logger = get_logger(__name__)


class PatternSpec(BaseModel):
    """Pattern definition as written in configuration"""

    name: str
    regex: str
    category: PatternCategory
    agent: str = WILDCARD_AGENT  # Alias or canonical kind, "*" for all
    priority: int = 0
    state: AgentState | None = None  # None = category default
    description: str = ""

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value

    @field_validator("regex")
    @classmethod
    def _regex_compiles(cls, value: str) -> str:
        if value:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid regex: {e}") from e
        return value

    @field_validator("agent")
    @classmethod
    def _normalize_agent(cls, value: str) -> str:
        if value in (WILDCARD_AGENT, ""):
            return WILDCARD_AGENT
        return normalize_agent_type(value)

    def to_pattern(self) -> Pattern:
        return Pattern(
            name=self.name,
            regex=self.regex,
            category=self.category,
            agent=self.agent,
            priority=self.priority,
            state=self.state,
            description=self.description,
        )


def load_pattern_specs(
    raw: list[dict[str, Any]],
) -> tuple[list[Pattern], list[tuple[str, str]]]:
    """Validate raw pattern definitions

    Returns:
        (patterns, errors) where errors holds (name, reason) for every
        rejected entry
    """
    patterns: list[Pattern] = []
    errors: list[tuple[str, str]] = []

    for index, entry in enumerate(raw):
        name = str(entry.get("name", f"#{index}")) if isinstance(entry, dict) else f"#{index}"
        try:
            spec = PatternSpec.model_validate(entry)
        except ValidationError as e:
            reason = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'entry'}: {err['msg']}"
                for err in e.errors()
            )
            logger.warning(f"[PatternSpec] Skipping pattern '{name}': {reason}")
            metrics.inc("patterns.invalid_spec")
            errors.append((name, reason))
            continue
        patterns.append(spec.to_pattern())

    return patterns, errors


def apply_pattern_specs(
    library: PatternLibrary,
    raw: list[dict[str, Any]],
) -> list[tuple[str, str]]:
    """Add every valid definition to library

    Returns:
        (name, reason) for each entry that was not added
    """
    patterns, errors = load_pattern_specs(raw)
    for pattern in patterns:
        try:
            library.add_pattern(pattern)
        except PatternError as e:
            logger.warning(f"[PatternSpec] Pattern '{pattern.name}' not added: {e}")
            errors.append((pattern.name, str(e)))
    return errors
