"""In-memory metrics registry."""
from __future__ import annotations

from threading import Lock
from typing import Callable, Iterable, TypeVar

from .base import DEFAULT_LATENCY_BUCKETS, CounterMetric, HistogramMetric, Metric

_M = TypeVar("_M", bound=Metric)


class MetricsRegistry:
    """Holds metric instances by name; re-registering returns the existing metric."""

    def __init__(self) -> None:
        self._metrics: dict[str, Metric] = {}
        self._lock = Lock()

    def _get_or_create(self, name: str, kind: type[_M], factory: Callable[[], _M]) -> _M:
        with self._lock:
            if name not in self._metrics:
                self._metrics[name] = factory()
            metric = self._metrics[name]
        if not isinstance(metric, kind):
            raise TypeError(f"Metric '{name}' is already registered as a {metric.kind}")
        return metric

    def counter(self, name: str, *, description: str = "", label_names: Iterable[str] = ()) -> CounterMetric:
        return self._get_or_create(
            name,
            CounterMetric,
            lambda: CounterMetric(name, description=description, label_names=label_names),
        )

    def histogram(
        self,
        name: str,
        *,
        description: str = "",
        label_names: Iterable[str] = (),
        buckets: Iterable[float] = DEFAULT_LATENCY_BUCKETS,
    ) -> HistogramMetric:
        return self._get_or_create(
            name,
            HistogramMetric,
            lambda: HistogramMetric(name, description=description, label_names=label_names, buckets=buckets),
        )

    def metrics(self) -> tuple[Metric, ...]:
        with self._lock:
            return tuple(sorted(self._metrics.values(), key=lambda metric: metric.name))
