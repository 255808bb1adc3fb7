"""Activity data types

Contains:
- AgentState: classified pane state
- PatternCategory: pattern grouping
- PatternMatch: single pattern hit
- VelocitySample: one output-rate measurement
- StateTransition: committed state change
- AgentActivity: per-pane classification snapshot
- TypedDict shapes returned by to_dict()
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TypedDict


class AgentState(str, Enum):
    """Agent activity state

    UNKNOWN is the only initial state; there is no terminal state.
    """

    GENERATING = "GENERATING"  # Actively producing output
    WAITING = "WAITING"  # Idle, ready for input
    THINKING = "THINKING"  # Processing, thinking indicator visible
    ERROR = "ERROR"  # Error condition detected
    STALLED = "STALLED"  # Was generating, output stopped
    UNKNOWN = "UNKNOWN"  # Not enough signal

    @property
    def is_available(self) -> bool:
        """Ready to take a new prompt"""
        return self == AgentState.WAITING

    @property
    def is_busy(self) -> bool:
        return self in {AgentState.GENERATING, AgentState.THINKING}

    @property
    def is_problem(self) -> bool:
        """Needs a human to look at it"""
        return self in {AgentState.ERROR, AgentState.STALLED}


class PatternCategory(str, Enum):
    """Pattern category"""

    IDLE = "idle"  # Prompt visible, agent waiting
    ERROR = "error"  # Something went wrong
    THINKING = "thinking"  # Processing indicator
    COMPLETION = "completion"  # Task finished

    @property
    def default_state(self) -> AgentState:
        """State suggested by a match in this category"""
        return _CATEGORY_STATES[self]


_CATEGORY_STATES = {
    PatternCategory.IDLE: AgentState.WAITING,
    PatternCategory.ERROR: AgentState.ERROR,
    PatternCategory.THINKING: AgentState.THINKING,
    PatternCategory.COMPLETION: AgentState.WAITING,
}


class VelocitySampleDict(TypedDict):
    timestamp: float
    chars_added: int
    velocity: float


class StateTransitionDict(TypedDict):
    from_state: str
    to_state: str
    at: float
    confidence: float
    trigger: str


class AgentActivityDict(TypedDict):
    """AgentActivity.to_dict() return type."""

    pane_id: str
    agent_type: str
    state: str
    confidence: float
    trigger: str
    velocity: float
    average_velocity: float
    recent_velocity: float
    state_since: float
    detected_patterns: list[str]
    last_output: float
    last_output_age: float
    state_history: list[StateTransitionDict]


@dataclass(frozen=True)
class PatternMatch:
    """Successful pattern match"""

    pattern: str  # Rule name
    state: AgentState
    category: PatternCategory
    priority: int


@dataclass(frozen=True)
class VelocitySample:
    """Velocity measurement

    chars_added == 0 means the capture happened but nothing new was
    printed since the previous one.
    """

    timestamp: float
    chars_added: int
    velocity: float  # chars/sec

    def to_dict(self) -> VelocitySampleDict:
        return {
            "timestamp": self.timestamp,
            "chars_added": self.chars_added,
            "velocity": self.velocity,
        }


@dataclass(frozen=True)
class StateTransition:
    """Committed state change"""

    from_state: AgentState
    to_state: AgentState
    at: float
    confidence: float
    trigger: str  # Pattern name or velocity rule that caused it

    def __str__(self) -> str:
        ts = datetime.fromtimestamp(self.at).strftime("%H:%M:%S")
        return (
            f"{ts} | {self.from_state.value} → {self.to_state.value} "
            f"({self.confidence:.2f}, {self.trigger})"
        )

    def to_dict(self) -> StateTransitionDict:
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "at": self.at,
            "confidence": self.confidence,
            "trigger": self.trigger,
        }


@dataclass
class AgentActivity:
    """Current activity of one agent pane

    Returned by StateClassifier.classify(); a copy, safe to hand to
    other threads.
    """

    pane_id: str
    agent_type: str
    state: AgentState
    confidence: float  # 0.0-1.0, of the latest classification
    trigger: str
    velocity: float  # Latest chars/sec
    average_velocity: float = 0.0
    recent_velocity: float = 0.0
    state_since: float = 0.0
    detected_patterns: list[str] = field(default_factory=list)
    last_output: float = 0.0  # 0.0 = never saw output
    last_output_age: float = 0.0
    state_history: list[StateTransition] = field(default_factory=list)

    def to_dict(self) -> AgentActivityDict:
        """Convert to a plain dict"""
        return {
            "pane_id": self.pane_id,
            "agent_type": self.agent_type,
            "state": self.state.value,
            "confidence": self.confidence,
            "trigger": self.trigger,
            "velocity": self.velocity,
            "average_velocity": self.average_velocity,
            "recent_velocity": self.recent_velocity,
            "state_since": self.state_since,
            "detected_patterns": list(self.detected_patterns),
            "last_output": self.last_output,
            "last_output_age": self.last_output_age,
            "state_history": [t.to_dict() for t in self.state_history],
        }
