"""ActivityPoller - periodic capture and classification of tmux panes

Responsibilities:
- List panes and infer the agent kind from the pane title
- Capture and clean pane content
- Feed the ActivityMonitor and drop classifiers of vanished panes

Not responsible for:
- Rendering or notifying (callers consume the returned activities)
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable

from . import config
from .activity import ActivityMonitor, AgentActivity
from .adapters.tmux import TmuxClient
from .analysis import ContentCleaner
from .core import detect_agent_type
from .telemetry import format_pane_log, get_logger, metrics

logger = get_logger(__name__)

ActivityCallback = Callable[[dict[str, AgentActivity]], Awaitable[None]]


class ActivityPoller:
    """Capture → clean → classify, one round per poll_once()"""

    def __init__(
        self,
        monitor: ActivityMonitor,
        client: TmuxClient,
        capture_lines: int = config.CAPTURE_LINES,
        exclude_agent_types: Iterable[str] | None = None,
    ):
        self._monitor = monitor
        self._client = client
        self._capture_lines = capture_lines
        if exclude_agent_types is None:
            exclude_agent_types = config.EXCLUDED_AGENT_TYPES
        self._exclude = set(exclude_agent_types)
        self._callbacks: list[ActivityCallback] = []
        self._running = False

    @property
    def monitor(self) -> ActivityMonitor:
        return self._monitor

    def add_callback(self, callback: ActivityCallback) -> None:
        """Register an async callback invoked after every round"""
        self._callbacks.append(callback)

    async def poll_once(self, now: float | None = None) -> dict[str, AgentActivity]:
        """Run one capture round

        Panes whose capture fails are skipped for this round but keep
        their classifier; panes no longer listed (or now excluded) are
        dropped from the monitor. A failed listing skips the round and
        drops nothing.

        Returns:
            pane_id → AgentActivity for the panes classified this round
        """
        panes = await self._client.list_panes()
        activities: dict[str, AgentActivity] = {}
        if panes is None:
            # Listing failed: keep every classifier, nothing is fed this round
            metrics.inc("poller.list_failed")
            logger.warning("[Poller] pane listing failed, round skipped")
            return activities

        live: list[str] = []

        for pane in panes:
            pane_id = pane["pane_id"]
            agent_type = detect_agent_type(pane.get("pane_title", ""))
            if agent_type in self._exclude:
                continue
            live.append(pane_id)

            raw = await self._client.capture_pane(pane_id, lines=self._capture_lines)
            if raw is None:
                metrics.inc("poller.capture_failed")
                logger.warning(format_pane_log("Poller", pane_id, "capture failed, skipped"))
                continue

            content = ContentCleaner.clean_capture(raw)
            activities[pane_id] = self._monitor.classify(pane_id, content, agent_type, now)

        self._monitor.retain(live)
        metrics.inc("poller.rounds")
        return activities

    async def _notify_callbacks(self, activities: dict[str, AgentActivity]) -> None:
        for callback in self._callbacks:
            try:
                await callback(activities)
            except Exception as e:
                logger.error(f"[Poller] callback error: {e}")

    async def run(self, interval: float = config.POLL_INTERVAL) -> None:
        """Poll until stop() is called or the task is cancelled"""
        self._running = True
        logger.info(f"[Poller] started, interval={interval}s")

        while self._running:
            try:
                activities = await self.poll_once()
                await self._notify_callbacks(activities)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"[Poller] round failed: {e}")
            await asyncio.sleep(interval)

        logger.info("[Poller] stopped")

    def stop(self) -> None:
        self._running = False
