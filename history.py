"""History buffers: fading trails and the energy history.

Trails are sliding time windows (entries older than the window are
evicted on every append). The energy history is a fixed-capacity FIFO.
"""

from __future__ import annotations

from collections import deque
from typing import NamedTuple

import numpy as np

TRAIL_WINDOW_MS = 3000.0
ENERGY_CAPACITY = 200

# The conservation diagnostic is reported once more samples than this exist
MIN_CONSERVATION_SAMPLES = 10


def normalize(values) -> np.ndarray:
    """Map samples to [0, 1] by min/max; a flat series maps to zeros."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return values
    lo, hi = values.min(), values.max()
    span = hi - lo
    if span == 0:
        return np.zeros_like(values)
    return (values - lo) / span


class TrailPoint(NamedTuple):
    x: float
    y: float
    timestamp: float  # ms


class TrailBuffer:
    """Time-windowed queue of trail points for one mass."""

    def __init__(self, window_ms: float = TRAIL_WINDOW_MS):
        self.window_ms = window_ms
        self._points: deque[TrailPoint] = deque()

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(self._points)

    def append(self, x: float, y: float, timestamp: float) -> None:
        """Add a point and evict everything outside the window ending at timestamp."""
        self._points.append(TrailPoint(x, y, timestamp))
        self.evict(timestamp)

    def evict(self, now: float) -> None:
        """Drop points with now - timestamp >= window_ms."""
        # Timestamps are appended in order, so expired points sit at the left
        while self._points and now - self._points[0].timestamp >= self.window_ms:
            self._points.popleft()

    def points(self) -> list[TrailPoint]:
        return list(self._points)

    def alphas(self, now: float) -> np.ndarray:
        """Fade alpha in [0, 1] for every point, all against the same now."""
        if not self._points:
            return np.zeros(0)
        stamps = np.fromiter(
            (p.timestamp for p in self._points), dtype=np.float64,
            count=len(self._points),
        )
        return np.clip(1.0 - (now - stamps) / self.window_ms, 0.0, 1.0)

    def clear(self) -> None:
        self._points.clear()


class EnergyHistory:
    """Most recent total-energy samples, oldest dropped first."""

    def __init__(self, capacity: int = ENERGY_CAPACITY):
        self.capacity = capacity
        self._values: deque[float] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._values)

    def append(self, value: float) -> None:
        self._values.append(value)

    def values(self) -> np.ndarray:
        return np.array(self._values, dtype=np.float64)

    @property
    def first(self) -> float | None:
        return self._values[0] if self._values else None

    @property
    def latest(self) -> float | None:
        return self._values[-1] if self._values else None

    def clear(self) -> None:
        self._values.clear()


def conservation_percent(history: EnergyHistory, scale: float,
                         current: float | None = None) -> float | None:
    """Percentage of the first recorded energy still conserved.

    Compares *current* (default: the latest sample) with the oldest sample
    in *history*. The difference is normalized by max(|E0|, scale) so a
    start with E0 close to zero does not blow up. Returns None until the
    history holds more than MIN_CONSERVATION_SAMPLES samples.
    """
    if len(history) <= MIN_CONSERVATION_SAMPLES:
        return None
    e0 = history.first
    if current is None:
        current = history.latest
    reference = max(abs(e0), abs(scale))
    if reference == 0:
        return None
    return (1.0 - abs(current - e0) / reference) * 100.0
