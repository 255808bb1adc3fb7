"""Activity module

Activity classification engine:
- types: AgentState, PatternCategory, samples, transitions, snapshots
- patterns: PatternLibrary and the shared default rule set
- pattern_specs: validation of pattern definitions from configuration
- velocity: VelocityTracker, VelocityManager
- classifier: StateClassifier (debounced per-pane state)
- monitor: ActivityMonitor (per-pane classifier registry)
- summary: fleet-level aggregation
"""

from .classifier import ClassifierConfig, StateClassifier
from .monitor import ActivityMonitor
from .pattern_specs import PatternSpec, apply_pattern_specs, load_pattern_specs
from .patterns import (
    DEFAULT_LIBRARY_VERSION,
    DuplicatePatternError,
    Pattern,
    PatternCompileError,
    PatternError,
    PatternLibrary,
    default_patterns,
    get_default_library,
    has_error_pattern,
    has_idle_pattern,
    has_thinking_pattern,
    match_first_pattern,
    match_patterns,
)
from .summary import ActivitySummary, summarize_activities, summarize_states
from .types import (
    AgentActivity,
    AgentState,
    PatternCategory,
    PatternMatch,
    StateTransition,
    VelocitySample,
)
from .velocity import VelocityManager, VelocityTracker

__all__ = [
    # Types
    "AgentState",
    "PatternCategory",
    "PatternMatch",
    "VelocitySample",
    "StateTransition",
    "AgentActivity",
    # Patterns
    "Pattern",
    "PatternLibrary",
    "PatternError",
    "PatternCompileError",
    "DuplicatePatternError",
    "DEFAULT_LIBRARY_VERSION",
    "default_patterns",
    "get_default_library",
    "match_patterns",
    "match_first_pattern",
    "has_error_pattern",
    "has_idle_pattern",
    "has_thinking_pattern",
    "PatternSpec",
    "load_pattern_specs",
    "apply_pattern_specs",
    # Velocity
    "VelocityTracker",
    "VelocityManager",
    # Classifier
    "ClassifierConfig",
    "StateClassifier",
    # Monitor
    "ActivityMonitor",
    "ActivitySummary",
    "summarize_activities",
    "summarize_states",
]
