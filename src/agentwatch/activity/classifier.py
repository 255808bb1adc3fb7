"""StateClassifier - per-pane activity state machine

Responsibilities:
- Turn (velocity, pattern matches) into a candidate state
- Debounce candidates with a hysteresis window
- Keep a bounded transition history

Classification order (first hit wins):
1. error pattern                   → ERROR (0.95)
2. velocity > high threshold       → GENERATING (0.85)
3. velocity > medium threshold     → GENERATING (0.70)
4. idle pattern, velocity < idle   → WAITING (0.90)
5. thinking pattern                → THINKING (0.80)
6. velocity == 0, no matches       → STALLED (after GENERATING) or WAITING
7. anything else                   → UNKNOWN (0.50)

Hysteresis:
- ERROR commits at once, errors are never held back
- The first real classification commits at once
- Any other change must stay the same candidate for hysteresis_duration
"""

import threading
import time
from collections import deque
from dataclasses import dataclass

from .. import config
from ..telemetry import format_pane_log, get_logger, metrics
from .patterns import PatternLibrary, get_default_library
from .types import AgentActivity, AgentState, PatternCategory, PatternMatch, StateTransition
from .velocity import DEFAULT_MAX_SAMPLES, VelocityTracker

logger = get_logger(__name__)

VELOCITY_HIGH_THRESHOLD = config.VELOCITY_HIGH_THRESHOLD
VELOCITY_MEDIUM_THRESHOLD = config.VELOCITY_MEDIUM_THRESHOLD
VELOCITY_IDLE_THRESHOLD = config.VELOCITY_IDLE_THRESHOLD
DEFAULT_STALL_THRESHOLD = config.DEFAULT_STALL_THRESHOLD_SECONDS
DEFAULT_HYSTERESIS_DURATION = config.DEFAULT_HYSTERESIS_SECONDS
MAX_STATE_HISTORY = config.MAX_STATE_HISTORY

TRIGGER_HIGH_VELOCITY = "high_velocity"
TRIGGER_MEDIUM_VELOCITY = "medium_velocity"
TRIGGER_STALLED = "stalled_after_generating"
TRIGGER_IDLE_NO_OUTPUT = "idle_no_output"
TRIGGER_INSUFFICIENT = "insufficient_signals"


@dataclass
class ClassifierConfig:
    """Shared classifier settings

    Non-positive durations and sizes fall back to the config defaults;
    a missing pattern_library means the shared default library.
    """

    agent_type: str = ""
    stall_threshold: float = DEFAULT_STALL_THRESHOLD
    hysteresis_duration: float = DEFAULT_HYSTERESIS_DURATION
    pattern_library: PatternLibrary | None = None
    max_samples: int = DEFAULT_MAX_SAMPLES
    max_history: int = MAX_STATE_HISTORY
    high_velocity_threshold: float = VELOCITY_HIGH_THRESHOLD
    medium_velocity_threshold: float = VELOCITY_MEDIUM_THRESHOLD
    idle_velocity_threshold: float = VELOCITY_IDLE_THRESHOLD

    def __post_init__(self):
        if self.stall_threshold <= 0:
            self.stall_threshold = DEFAULT_STALL_THRESHOLD
        if self.hysteresis_duration <= 0:
            self.hysteresis_duration = DEFAULT_HYSTERESIS_DURATION
        if self.max_samples <= 0:
            self.max_samples = DEFAULT_MAX_SAMPLES
        if self.max_history <= 0:
            self.max_history = MAX_STATE_HISTORY
        if not (
            self.high_velocity_threshold
            > self.medium_velocity_threshold
            > self.idle_velocity_threshold
        ):
            raise ValueError(
                "velocity thresholds must satisfy high > medium > idle, got "
                f"{self.high_velocity_threshold} / {self.medium_velocity_threshold} / "
                f"{self.idle_velocity_threshold}"
            )


class StateClassifier:
    """Debounced activity state for one pane

    Every public method takes the classifier lock, so concurrent calls for
    the same pane are serialized and see each other's effects.
    """

    def __init__(self, pane_id: str, cfg: ClassifierConfig | None = None):
        if cfg is None:
            cfg = ClassifierConfig()
        self.pane_id = pane_id
        self._config = cfg
        self._library = cfg.pattern_library or get_default_library()
        self._tracker = VelocityTracker(pane_id, cfg.max_samples)
        self._agent_type = cfg.agent_type
        self._lock = threading.RLock()

        self._current_state = AgentState.UNKNOWN
        self._state_since = time.time()
        self._pending_state: AgentState | None = None
        self._pending_since = 0.0
        self._last_confidence = 0.0
        self._last_trigger = ""
        self._last_patterns: list[str] = []
        self._history: deque[StateTransition] = deque(maxlen=cfg.max_history)

    # === Properties ===

    @property
    def config(self) -> ClassifierConfig:
        return self._config

    @property
    def pattern_library(self) -> PatternLibrary:
        return self._library

    @property
    def velocity_tracker(self) -> VelocityTracker:
        return self._tracker

    @property
    def agent_type(self) -> str:
        with self._lock:
            return self._agent_type

    # === Pipeline ===

    def classify(self, content: str, now: float | None = None) -> AgentActivity:
        """Classify a fresh capture of the pane

        Args:
            content: Capture with escape sequences removed; "" when nothing
                was captured this cycle
            now: Capture time, defaults to time.time()

        Returns:
            Snapshot of the pane after this classification
        """
        if now is None:
            now = time.time()
        with self._lock:
            sample = self._tracker.update(content, now)
            matches = self._library.match(content, self._agent_type)
            return self._observe_locked(sample.velocity, matches, now)

    def observe(
        self,
        velocity: float,
        matches: list[PatternMatch],
        now: float | None = None,
    ) -> AgentActivity:
        """Classify precomputed signals (velocity already sampled)"""
        if now is None:
            now = time.time()
        with self._lock:
            return self._observe_locked(velocity, matches, now)

    def _observe_locked(
        self,
        velocity: float,
        matches: list[PatternMatch],
        now: float,
    ) -> AgentActivity:
        self._last_patterns = [m.pattern for m in matches]
        state, confidence, trigger = self.classify_state(velocity, matches)
        self._last_confidence = confidence
        self._last_trigger = trigger
        self.apply_hysteresis(state, confidence, trigger, now)
        metrics.inc("activity.classified", {"state": self._current_state.value})
        return self._snapshot_locked(velocity, now)

    def classify_state(
        self,
        velocity: float,
        matches: list[PatternMatch],
    ) -> tuple[AgentState, float, str]:
        """Candidate state from one set of signals

        Returns:
            (state, confidence, trigger)
        """
        cfg = self._config

        for m in matches:
            if m.category == PatternCategory.ERROR:
                return AgentState.ERROR, 0.95, m.pattern

        if velocity > cfg.high_velocity_threshold:
            return AgentState.GENERATING, 0.85, TRIGGER_HIGH_VELOCITY
        if velocity > cfg.medium_velocity_threshold:
            return AgentState.GENERATING, 0.70, TRIGGER_MEDIUM_VELOCITY

        if velocity < cfg.idle_velocity_threshold:
            for m in matches:
                if m.category == PatternCategory.IDLE:
                    return AgentState.WAITING, 0.90, m.pattern

        for m in matches:
            if m.category == PatternCategory.THINKING:
                return AgentState.THINKING, 0.80, m.pattern

        if velocity == 0 and not matches:
            with self._lock:
                was_generating = self._current_state == AgentState.GENERATING
            if was_generating and self._tracker.last_output_age() > cfg.stall_threshold:
                return AgentState.STALLED, 0.75, TRIGGER_STALLED
            return AgentState.WAITING, 0.60, TRIGGER_IDLE_NO_OUTPUT

        return AgentState.UNKNOWN, 0.50, TRIGGER_INSUFFICIENT

    def apply_hysteresis(
        self,
        candidate: AgentState,
        confidence: float,
        trigger: str,
        now: float | None = None,
    ) -> AgentState:
        """Debounce a candidate state

        Returns:
            The committed state after this step
        """
        if now is None:
            now = time.time()

        with self._lock:
            if candidate == AgentState.ERROR:
                if self._current_state != AgentState.ERROR:
                    self._commit(candidate, confidence, trigger, now)
                self._clear_pending()
                return self._current_state

            if (
                not self._history
                and self._current_state == AgentState.UNKNOWN
                and candidate != AgentState.UNKNOWN
            ):
                self._commit(candidate, confidence, trigger, now)
                return self._current_state

            if candidate == self._current_state:
                self._clear_pending()
                return self._current_state

            if candidate != self._pending_state:
                self._pending_state = candidate
                self._pending_since = now
                return self._current_state

            if now - self._pending_since >= self._config.hysteresis_duration:
                self._commit(candidate, confidence, trigger, now)

            return self._current_state

    def _commit(self, state: AgentState, confidence: float, trigger: str, now: float) -> None:
        old_state = self._current_state
        self.record_transition(old_state, state, confidence, trigger, now)
        self._current_state = state
        self._state_since = now
        self._clear_pending()
        logger.debug(
            format_pane_log(
                "Classifier",
                self.pane_id,
                f"{old_state.value} → {state.value} conf={confidence:.2f} trigger={trigger}",
            )
        )
        metrics.inc("activity.transition", {"from": old_state.value, "to": state.value})

    def _clear_pending(self) -> None:
        self._pending_state = None
        self._pending_since = 0.0

    def record_transition(
        self,
        from_state: AgentState,
        to_state: AgentState,
        confidence: float,
        trigger: str,
        now: float | None = None,
    ) -> None:
        """Append to the history; the oldest entry drops out when full"""
        if now is None:
            now = time.time()
        with self._lock:
            self._history.append(
                StateTransition(
                    from_state=from_state,
                    to_state=to_state,
                    at=now,
                    confidence=confidence,
                    trigger=trigger,
                )
            )

    # === Queries ===

    def _snapshot_locked(self, velocity: float, now: float) -> AgentActivity:
        tracker = self._tracker
        return AgentActivity(
            pane_id=self.pane_id,
            agent_type=self._agent_type,
            state=self._current_state,
            confidence=self._last_confidence,
            trigger=self._last_trigger,
            velocity=velocity,
            average_velocity=tracker.average_velocity(),
            recent_velocity=tracker.recent_velocity(config.RECENT_VELOCITY_WINDOW),
            state_since=self._state_since,
            detected_patterns=list(self._last_patterns),
            last_output=tracker.last_output_time(),
            last_output_age=tracker.last_output_age(),
            state_history=list(self._history),
        )

    def snapshot(self, now: float | None = None) -> AgentActivity:
        """Current activity without classifying again"""
        if now is None:
            now = time.time()
        with self._lock:
            return self._snapshot_locked(self._tracker.current_velocity(), now)

    def current_state(self) -> AgentState:
        with self._lock:
            return self._current_state

    def pending_state(self) -> AgentState | None:
        """Candidate waiting out the hysteresis window, if any"""
        with self._lock:
            return self._pending_state

    def state_duration(self, now: float | None = None) -> float:
        """Seconds spent in the current state"""
        if now is None:
            now = time.time()
        with self._lock:
            return max(0.0, now - self._state_since)

    def get_state_history(self) -> list[StateTransition]:
        with self._lock:
            return list(self._history)

    def last_patterns(self) -> list[str]:
        """Names matched by the latest classification"""
        with self._lock:
            return list(self._last_patterns)

    # === Mutation ===

    def set_agent_type(self, agent_type: str) -> None:
        with self._lock:
            self._agent_type = agent_type

    def reset(self) -> None:
        """Back to UNKNOWN with empty history"""
        with self._lock:
            self._tracker.reset()
            self._current_state = AgentState.UNKNOWN
            self._state_since = time.time()
            self._history.clear()
            self._clear_pending()
            self._last_confidence = 0.0
            self._last_trigger = ""
            self._last_patterns = []
