"""Aggregate latency trend."""

from __future__ import annotations

import math
import threading


class LatencyTrend:
    """Collects duration samples in milliseconds and summarizes them."""

    def __init__(self, name: str):
        self.name = name
        self._samples: list[float] = []
        self._lock = threading.Lock()

    def add(self, value_ms: float) -> None:
        if value_ms < 0 or math.isnan(value_ms):
            raise ValueError(f"Invalid latency sample: {value_ms}")
        with self._lock:
            self._samples.append(value_ms)

    def _sorted(self) -> list[float]:
        with self._lock:
            return sorted(self._samples)

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._samples)

    @property
    def min(self) -> float | None:
        samples = self._sorted()
        return samples[0] if samples else None

    @property
    def max(self) -> float | None:
        samples = self._sorted()
        return samples[-1] if samples else None

    @property
    def avg(self) -> float | None:
        samples = self._sorted()
        return sum(samples) / len(samples) if samples else None

    @property
    def med(self) -> float | None:
        return self.percentile(50)

    def percentile(self, p: float) -> float | None:
        """Linearly interpolated percentile, ``p`` in [0, 100]."""
        if not 0 <= p <= 100:
            raise ValueError("percentile must be between 0 and 100")
        samples = self._sorted()
        if not samples:
            return None
        rank = (len(samples) - 1) * p / 100
        lower = math.floor(rank)
        upper = math.ceil(rank)
        if lower == upper:
            return samples[lower]
        return samples[lower] + (samples[upper] - samples[lower]) * (rank - lower)

    def summary(self) -> dict[str, float | None]:
        return {
            "avg": self.avg,
            "min": self.min,
            "med": self.med,
            "max": self.max,
            "p(90)": self.percentile(90),
            "p(95)": self.percentile(95),
        }
