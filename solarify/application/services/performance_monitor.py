"""In-memory ring buffer of recent request timings."""

from __future__ import annotations

import math
import threading
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any

from solarify.shared.utils.datetime import utc_now


@dataclass(frozen=True)
class RequestSample:
    method: str
    path: str
    status: int
    duration_ms: float
    recorded_at: str


class PerformanceMonitor:
    """Keeps the last `capacity` request samples; older samples fall off the front."""

    def __init__(self, capacity: int = 100) -> None:
        self._samples: deque[RequestSample] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    def record(self, method: str, path: str, status: int, duration_ms: float) -> None:
        sample = RequestSample(method, path, status, round(duration_ms, 3), utc_now().isoformat())
        with self._lock:
            self._samples.append(sample)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def samples(self) -> list[RequestSample]:
        with self._lock:
            return list(self._samples)

    def snapshot(self) -> dict[str, Any]:
        """Samples (oldest first) plus count, average and p95 duration and 5xx error rate."""
        samples = self.samples()
        durations = sorted(s.duration_ms for s in samples)
        count = len(samples)
        if count:
            p95 = durations[max(0, math.ceil(0.95 * count) - 1)]
            average = sum(durations) / count
            error_rate = sum(1 for s in samples if s.status >= 500) / count
        else:
            p95 = average = error_rate = 0.0
        return {
            "capacity": self.capacity,
            "count": count,
            "average_duration_ms": round(average, 3),
            "p95_duration_ms": round(p95, 3),
            "error_rate": round(error_rate, 4),
            "samples": [asdict(s) for s in samples],
        }
