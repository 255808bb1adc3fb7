"""Telemetry - logging and metrics entry point

Log format: [Component:pane[:8]] msg
Metric examples: activity.transition, patterns.rejected, poller.capture_failed
"""

import logging
import threading

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Get a module logger

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def configure_logging(level: str | None = None) -> None:
    """Install the root handler once

    Args:
        level: Log level name, None uses config.LOG_LEVEL
    """
    global _configured
    from . import config

    if _configured:
        if level:
            logging.getLogger().setLevel(level.upper())
        return
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format=config.LOG_FORMAT,
    )
    _configured = True


def format_pane_log(module: str, pane_id: str, msg: str) -> str:
    """Format a log message carrying a pane id

    Args:
        module: Component name
        pane_id: Pane identifier
        msg: Message

    Returns:
        Message formatted as [module:pane_id[:8]] msg
    """
    pane_short = pane_id[:8] if pane_id else "unknown"
    return f"[{module}:{pane_short}] {msg}"


class Metrics:
    """Metrics facade

    Simple counters and gauges kept in memory. Safe to call from
    several threads.
    """

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._gauges: dict[str, float] = {}
        self._lock = threading.Lock()

    def inc(self, name: str, labels: dict[str, str] | None = None, value: int = 1) -> None:
        """Increment a counter

        Args:
            name: Metric name (e.g. "activity.transition")
            labels: Optional labels (e.g. {"to": "ERROR"})
            value: Increment, default 1
        """
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + value

    def gauge(self, name: str, value: float, labels: dict[str, str] | None = None) -> None:
        """Set a gauge value"""
        key = self._make_key(name, labels)
        with self._lock:
            self._gauges[key] = value

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Read a counter (for tests)"""
        key = self._make_key(name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Read a gauge (for tests)"""
        key = self._make_key(name, labels)
        with self._lock:
            return self._gauges.get(key, 0.0)

    def reset(self) -> None:
        """Reset all metrics (for tests)"""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()

    def _make_key(self, name: str, labels: dict[str, str] | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get_all_counters(self) -> dict[str, int]:
        """All counters (for debugging)"""
        with self._lock:
            return dict(self._counters)

    def get_all_gauges(self) -> dict[str, float]:
        """All gauges (for debugging)"""
        with self._lock:
            return dict(self._gauges)


# Process-wide metrics instance
metrics = Metrics()
