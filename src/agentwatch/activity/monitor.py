"""ActivityMonitor - registry of per-pane state classifiers

Responsibilities:
- Create classifiers lazily with the shared ClassifierConfig
- Route captures to the right classifier
- Aggregate states for fleet-level views
- Drop classifiers for panes that went away
"""

import threading
from collections.abc import Iterable
from dataclasses import replace

from ..telemetry import format_pane_log, get_logger, metrics
from .classifier import ClassifierConfig, StateClassifier
from .summary import ActivitySummary, summarize_states
from .types import AgentActivity, AgentState

logger = get_logger(__name__)


class ActivityMonitor:
    """Pane id → StateClassifier

    Registry operations share one lock, so two callers racing on
    get_or_create for a new pane end up with the same classifier.
    Classification itself runs outside the registry lock.
    """

    def __init__(self, config: ClassifierConfig | None = None):
        self._config = config
        self._classifiers: dict[str, StateClassifier] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> ClassifierConfig | None:
        return self._config

    # === Registry ===

    def get_or_create(self, pane_id: str, agent_type: str | None = None) -> StateClassifier:
        """Classifier for pane_id, created on first use

        Args:
            pane_id: Pane identifier
            agent_type: When non-empty, applied to the classifier (new or
                existing)
        """
        with self._lock:
            classifier = self._classifiers.get(pane_id)
            if classifier is None:
                # Each classifier gets its own copy; the library stays shared
                cfg = replace(self._config) if self._config else ClassifierConfig()
                if agent_type:
                    cfg.agent_type = agent_type
                classifier = StateClassifier(pane_id, cfg)
                self._classifiers[pane_id] = classifier
                metrics.gauge("monitor.panes", len(self._classifiers))
                logger.debug(
                    format_pane_log("Monitor", pane_id, f"created agent={cfg.agent_type or '*'}")
                )
                return classifier

        if agent_type and classifier.agent_type != agent_type:
            classifier.set_agent_type(agent_type)
        return classifier

    def get(self, pane_id: str) -> StateClassifier | None:
        with self._lock:
            return self._classifiers.get(pane_id)

    def remove(self, pane_id: str) -> bool:
        """Drop a pane

        Returns:
            Whether a classifier was removed
        """
        with self._lock:
            removed = self._classifiers.pop(pane_id, None) is not None
            metrics.gauge("monitor.panes", len(self._classifiers))
        if removed:
            logger.debug(format_pane_log("Monitor", pane_id, "removed"))
        return removed

    def retain(self, pane_ids: Iterable[str]) -> list[str]:
        """Keep only the given panes

        Returns:
            Pane ids that were dropped
        """
        keep = set(pane_ids)
        with self._lock:
            dropped = [pid for pid in self._classifiers if pid not in keep]
            for pid in dropped:
                del self._classifiers[pid]
            metrics.gauge("monitor.panes", len(self._classifiers))
        for pid in dropped:
            logger.debug(format_pane_log("Monitor", pid, "pane gone, removed"))
        return dropped

    def clear(self) -> None:
        with self._lock:
            self._classifiers = {}
            metrics.gauge("monitor.panes", 0)

    def count(self) -> int:
        with self._lock:
            return len(self._classifiers)

    def pane_ids(self) -> list[str]:
        with self._lock:
            return list(self._classifiers)

    def _items(self) -> list[tuple[str, StateClassifier]]:
        with self._lock:
            return list(self._classifiers.items())

    # === Classification ===

    def classify(
        self,
        pane_id: str,
        content: str,
        agent_type: str | None = None,
        now: float | None = None,
    ) -> AgentActivity:
        """Classify one capture for pane_id (creating the classifier)"""
        return self.get_or_create(pane_id, agent_type).classify(content, now)

    def classify_all(
        self,
        contents: dict[str, str],
        now: float | None = None,
    ) -> tuple[dict[str, AgentActivity], dict[str, Exception]]:
        """Classify captures for several panes

        A failure on one pane is logged and reported without affecting
        the others.

        Returns:
            (activities, errors) keyed by pane id
        """
        activities: dict[str, AgentActivity] = {}
        errors: dict[str, Exception] = {}

        for pane_id, content in contents.items():
            try:
                activities[pane_id] = self.classify(pane_id, content, now=now)
            except Exception as e:
                logger.error(format_pane_log("Monitor", pane_id, f"classification failed: {e}"))
                errors[pane_id] = e

        return activities, errors

    # === Aggregates ===

    def get_all_states(self) -> dict[str, AgentState]:
        """pane_id → committed state"""
        return {pid: c.current_state() for pid, c in self._items()}

    def get_all_activities(self, now: float | None = None) -> dict[str, AgentActivity]:
        """pane_id → snapshot, without classifying again"""
        return {pid: c.snapshot(now) for pid, c in self._items()}

    def summarize(self) -> ActivitySummary:
        return summarize_states(self.get_all_states())
