"""Output velocity tracking

VelocityTracker keeps a bounded window of samples for one pane;
VelocityManager maps pane ids to trackers.
"""

import threading
import time
from collections import deque

from .. import config
from ..telemetry import get_logger, metrics
from .types import VelocitySample

logger = get_logger(__name__)

DEFAULT_MAX_SAMPLES = config.DEFAULT_MAX_SAMPLES


class VelocityTracker:
    """Sliding window of output-rate samples for one pane

    Attributes:
        pane_id: Pane identifier
        max_samples: Window size (non-positive values use DEFAULT_MAX_SAMPLES)
        last_capture: Previous cleaned capture, used for the next delta
        last_capture_at: When the last capture happened, 0.0 if never
    """

    def __init__(self, pane_id: str, max_samples: int = DEFAULT_MAX_SAMPLES):
        if max_samples <= 0:
            max_samples = DEFAULT_MAX_SAMPLES
        self.pane_id = pane_id
        self.max_samples = max_samples
        self.last_capture = ""
        self.last_capture_at = 0.0
        self._samples: deque[VelocitySample] = deque(maxlen=max_samples)
        self._lock = threading.Lock()

    def update(self, content: str, now: float | None = None) -> VelocitySample:
        """Record a new capture and derive a sample from it

        Characters are counted on the cleaned text. A shrinking buffer
        (clear, scroll) counts as zero growth. The first capture has no
        elapsed time and yields velocity 0.

        Args:
            content: Capture with escape sequences already removed
            now: Capture time, defaults to time.time()

        Returns:
            The appended sample
        """
        if now is None:
            now = time.time()

        with self._lock:
            chars_added = max(0, len(content) - len(self.last_capture))

            velocity = 0.0
            if self.last_capture_at > 0:
                elapsed = now - self.last_capture_at
                if elapsed > 0:
                    velocity = chars_added / elapsed

            sample = VelocitySample(timestamp=now, chars_added=chars_added, velocity=velocity)
            self._samples.append(sample)
            self.last_capture = content
            self.last_capture_at = now

        return sample

    def add_sample(self, sample: VelocitySample) -> None:
        """Append a sample, evicting the oldest when full"""
        with self._lock:
            self._samples.append(sample)

    def current_velocity(self) -> float:
        """Most recent velocity, 0 when empty"""
        with self._lock:
            if not self._samples:
                return 0.0
            return self._samples[-1].velocity

    def average_velocity(self) -> float:
        """Mean velocity over the whole window, 0 when empty"""
        with self._lock:
            if not self._samples:
                return 0.0
            return sum(s.velocity for s in self._samples) / len(self._samples)

    def recent_velocity(self, n: int) -> float:
        """Mean velocity over the last n samples

        n <= 0 or n larger than the window uses the whole window.
        """
        with self._lock:
            count = len(self._samples)
            if count == 0:
                return 0.0
            if n <= 0 or n > count:
                n = count
            recent = list(self._samples)[count - n:]
            return sum(s.velocity for s in recent) / n

    def sample_count(self) -> int:
        with self._lock:
            return len(self._samples)

    def get_samples(self) -> list[VelocitySample]:
        """Copy of the window, oldest first"""
        with self._lock:
            return list(self._samples)

    def _last_output_sample(self) -> VelocitySample | None:
        for sample in reversed(self._samples):
            if sample.chars_added > 0:
                return sample
        return None

    def last_output_age(self) -> float:
        """Seconds between the last output and the last capture

        Falls back to the oldest retained sample when no sample carried
        output, and to 0 when there are no samples at all.
        """
        with self._lock:
            if not self._samples:
                return 0.0
            reference = self.last_capture_at or self._samples[-1].timestamp
            last_output = self._last_output_sample()
            if last_output is not None:
                return max(0.0, reference - last_output.timestamp)
            return max(0.0, reference - self._samples[0].timestamp)

    def last_output_time(self) -> float:
        """Timestamp of the latest sample with output, 0.0 if none"""
        with self._lock:
            last_output = self._last_output_sample()
            return last_output.timestamp if last_output is not None else 0.0

    def reset(self) -> None:
        """Drop all samples and capture bookkeeping"""
        with self._lock:
            self._samples.clear()
            self.last_capture = ""
            self.last_capture_at = 0.0


class VelocityManager:
    """Registry of velocity trackers keyed by pane id"""

    def __init__(self, max_samples: int = DEFAULT_MAX_SAMPLES):
        self._max_samples = max_samples
        self._trackers: dict[str, VelocityTracker] = {}
        self._lock = threading.Lock()

    def get_or_create(self, pane_id: str) -> VelocityTracker:
        """Tracker for pane_id, created on first use"""
        with self._lock:
            tracker = self._trackers.get(pane_id)
            if tracker is None:
                tracker = VelocityTracker(pane_id, self._max_samples)
                self._trackers[pane_id] = tracker
                logger.debug(f"[Velocity] Tracking pane {pane_id[:8]}")
            return tracker

    def get(self, pane_id: str) -> VelocityTracker | None:
        with self._lock:
            return self._trackers.get(pane_id)

    def remove(self, pane_id: str) -> bool:
        """Forget a pane

        Returns:
            Whether a tracker was removed
        """
        with self._lock:
            return self._trackers.pop(pane_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._trackers = {}

    def tracker_count(self) -> int:
        with self._lock:
            return len(self._trackers)

    def pane_ids(self) -> list[str]:
        with self._lock:
            return list(self._trackers)

    def update_all(
        self,
        contents: dict[str, str],
        now: float | None = None,
    ) -> dict[str, VelocitySample]:
        """Feed captures to the trackers that already exist

        Panes without a tracker are ignored.

        Returns:
            pane_id → new sample
        """
        with self._lock:
            trackers = {pid: t for pid, t in self._trackers.items() if pid in contents}

        samples = {pid: tracker.update(contents[pid], now) for pid, tracker in trackers.items()}
        metrics.inc("velocity.updated", value=len(samples))
        return samples

    def get_all_velocities(self) -> dict[str, float]:
        """pane_id → current velocity"""
        with self._lock:
            trackers = dict(self._trackers)
        return {pid: tracker.current_velocity() for pid, tracker in trackers.items()}
