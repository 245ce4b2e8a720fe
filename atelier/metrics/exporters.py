"""Render the metrics registry in the Prometheus text exposition format."""
from __future__ import annotations

import logging

from .base import CounterMetric, HistogramMetric, LabelValues, Metric
from .registry import MetricsRegistry

logger = logging.getLogger(__name__)

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _label_text(names: tuple[str, ...], values: LabelValues, extra: tuple[tuple[str, str], ...] = ()) -> str:
    pairs = [f'{name}="{_escape_label(value)}"' for name, value in (*zip(names, values), *extra)]
    return "{" + ",".join(pairs) + "}" if pairs else ""


def _format_bound(bound: float) -> str:
    return repr(float(bound))


class PrometheusExporter:
    def __init__(self, registry: MetricsRegistry) -> None:
        self.registry = registry

    def _metric_lines(self, metric: Metric) -> list[str]:
        lines = [f"# HELP {metric.name} {metric.description}", f"# TYPE {metric.name} {metric.kind}"]
        if isinstance(metric, CounterMetric):
            for labels, value in metric.samples():
                lines.append(f"{metric.name}{_label_text(metric.label_names, labels)} {value}")
        elif isinstance(metric, HistogramMetric):
            for labels, series in metric.samples():
                for bound, count in series.cumulative():
                    le = (("le", _format_bound(bound)),)
                    lines.append(f"{metric.name}_bucket{_label_text(metric.label_names, labels, le)} {count}")
                inf = (("le", "+Inf"),)
                lines.append(f"{metric.name}_bucket{_label_text(metric.label_names, labels, inf)} {series.count}")
                label_text = _label_text(metric.label_names, labels)
                lines.append(f"{metric.name}_sum{label_text} {series.total}")
                lines.append(f"{metric.name}_count{label_text} {series.count}")
        return lines

    def build_payload(self) -> str:
        lines: list[str] = []
        for metric in self.registry.metrics():
            lines.extend(self._metric_lines(metric))
        return "\n".join(lines) + ("\n" if lines else "")

    def export(self) -> str:
        payload = self.build_payload()
        logger.debug("Generated metrics payload with %d lines", payload.count("\n"))
        return payload
