"""Bootstrap - central construction of runtime components

Responsibilities:
- Build the pattern library (built-in rules plus configured extras)
- Create the ActivityMonitor and the ActivityPoller
- Return RuntimeComponents for the caller to drive

Not responsible for:
- Starting/stopping the poll loop (owned by the caller)
"""

from dataclasses import dataclass, replace
from typing import Any

from .. import config
from ..activity import ActivityMonitor, ClassifierConfig, PatternLibrary, apply_pattern_specs
from ..adapters.tmux import TmuxClient
from ..poller import ActivityPoller
from ..telemetry import get_logger

logger = get_logger(__name__)

# Global registry to track bootstrap state and prevent dual-construction
_current_components: "RuntimeComponents | None" = None


@dataclass
class RuntimeComponents:
    """Runtime components returned by bootstrap()"""

    library: PatternLibrary
    monitor: ActivityMonitor
    poller: ActivityPoller
    rejected_patterns: list[tuple[str, str]]


def bootstrap(
    client: TmuxClient | None = None,
    classifier_config: ClassifierConfig | None = None,
    custom_patterns: list[dict[str, Any]] | None = None,
) -> RuntimeComponents:
    """Construct runtime components

    Args:
        client: Tmux client, a default-socket client when None
        classifier_config: Classifier settings shared by every pane
        custom_patterns: Extra pattern definitions, config.CUSTOM_PATTERNS
            when None

    Returns:
        RuntimeComponents with every component wired

    Raises:
        RuntimeError: If bootstrap() was already called
    """
    global _current_components

    if _current_components is not None:
        raise RuntimeError(
            "bootstrap() has already been called. "
            "Use get_current_components() to access existing components."
        )

    # 1. Pattern library: an isolated one unless the caller supplied one
    cfg = replace(classifier_config) if classifier_config else ClassifierConfig()
    library = cfg.pattern_library or PatternLibrary()
    cfg.pattern_library = library

    # 2. Configured extras, invalid entries are logged and reported
    if custom_patterns is None:
        custom_patterns = config.CUSTOM_PATTERNS
    rejected = apply_pattern_specs(library, custom_patterns)
    if rejected:
        logger.warning(f"[Bootstrap] {len(rejected)} custom pattern(s) rejected")

    # 3. Monitor and poller
    monitor = ActivityMonitor(cfg)
    poller = ActivityPoller(monitor, client or TmuxClient())

    logger.info(f"[Bootstrap] Components created, {library.pattern_count()} patterns")

    _current_components = RuntimeComponents(
        library=library,
        monitor=monitor,
        poller=poller,
        rejected_patterns=rejected,
    )

    return _current_components


def get_current_components() -> "RuntimeComponents | None":
    """Currently running RuntimeComponents

    None if bootstrap() has not been called.
    """
    return _current_components


def _reset_for_testing() -> None:
    """Reset bootstrap state (tests only)"""
    global _current_components
    _current_components = None
