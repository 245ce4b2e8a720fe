"""Counter and latency histogram primitives for ticket workflow metrics."""
from __future__ import annotations

from bisect import bisect_left
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from time import perf_counter
from typing import Iterable, Iterator, Mapping, Tuple

LabelValues = Tuple[str, ...]

# Upper bounds in seconds; a status change is one read plus one transaction.
DEFAULT_LATENCY_BUCKETS: Tuple[float, ...] = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)


class Metric:
    kind = "untyped"

    def __init__(self, name: str, *, description: str = "", label_names: Iterable[str] = ()) -> None:
        self.name = name
        self.description = description
        self.label_names: Tuple[str, ...] = tuple(label_names)
        self._lock = Lock()

    def label_values(self, labels: Mapping[str, str] | None) -> LabelValues:
        given = dict(labels or {})
        if set(given) != set(self.label_names):
            raise ValueError(
                f"Metric '{self.name}' expects labels {sorted(self.label_names)}, got {sorted(given)}"
            )
        return tuple(str(given[name]) for name in self.label_names)


class CounterMetric(Metric):
    kind = "counter"

    def __init__(self, name: str, *, description: str = "", label_names: Iterable[str] = ()) -> None:
        super().__init__(name, description=description, label_names=label_names)
        self._values: dict[LabelValues, float] = {}

    def inc(self, amount: float = 1.0, *, labels: Mapping[str, str] | None = None) -> None:
        if amount < 0:
            raise ValueError("Counters can only be incremented")
        key = self.label_values(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + amount

    def value(self, *, labels: Mapping[str, str] | None = None) -> float:
        key = self.label_values(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def samples(self) -> list[tuple[LabelValues, float]]:
        with self._lock:
            return sorted(self._values.items())


@dataclass
class HistogramSeries:
    bounds: Tuple[float, ...]
    bucket_counts: list[int] = field(default_factory=list)
    count: int = 0
    total: float = 0.0

    def __post_init__(self) -> None:
        if not self.bucket_counts:
            self.bucket_counts = [0] * len(self.bounds)

    def observe(self, value: float) -> None:
        self.count += 1
        self.total += value
        index = bisect_left(self.bounds, value)
        if index < len(self.bounds):
            self.bucket_counts[index] += 1

    def cumulative(self) -> list[tuple[float, int]]:
        running = 0
        buckets: list[tuple[float, int]] = []
        for bound, hits in zip(self.bounds, self.bucket_counts):
            running += hits
            buckets.append((bound, running))
        return buckets


class HistogramMetric(Metric):
    """Cumulative latency buckets with count and sum, as Prometheus histograms expect."""

    kind = "histogram"

    def __init__(
        self,
        name: str,
        *,
        description: str = "",
        label_names: Iterable[str] = (),
        buckets: Iterable[float] = DEFAULT_LATENCY_BUCKETS,
    ) -> None:
        super().__init__(name, description=description, label_names=label_names)
        self.buckets: Tuple[float, ...] = tuple(sorted(buckets))
        self._series: dict[LabelValues, HistogramSeries] = {}

    def observe(self, value: float, *, labels: Mapping[str, str] | None = None) -> None:
        key = self.label_values(labels)
        with self._lock:
            series = self._series.setdefault(key, HistogramSeries(self.buckets))
            series.observe(value)

    def series(self, *, labels: Mapping[str, str] | None = None) -> HistogramSeries | None:
        key = self.label_values(labels)
        with self._lock:
            return self._series.get(key)

    def samples(self) -> list[tuple[LabelValues, HistogramSeries]]:
        with self._lock:
            return sorted(self._series.items(), key=lambda item: item[0])


@contextmanager
def track_duration(metric: HistogramMetric, *, labels: Mapping[str, str] | None = None) -> Iterator[None]:
    start = perf_counter()
    try:
        yield
    finally:
        metric.observe(perf_counter() - start, labels=labels)
