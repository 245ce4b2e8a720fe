import pytest

from atelier.metrics import MetricsRegistry, TicketMetrics, metrics_registry
from atelier.metrics.base import CounterMetric, HistogramMetric
from atelier.metrics.definitions import STATUS_CHANGE_DURATION, STATUS_REJECTIONS_TOTAL, STATUS_TRANSITIONS_TOTAL
from atelier.metrics.exporters import PrometheusExporter
from atelier.statuses import InternalStatus


def test_counter_tracks_labelled_values():
    registry = MetricsRegistry()
    counter = registry.counter("moves_total", label_names=("from_status", "to_status"))

    counter.inc(labels={"from_status": "pending", "to_status": "sketching"})
    counter.inc(2, labels={"from_status": "pending", "to_status": "sketching"})

    assert counter.value(labels={"from_status": "pending", "to_status": "sketching"}) == 3
    assert counter.value(labels={"from_status": "pending", "to_status": "on-hold"}) == 0


def test_counter_validates_labels_and_amounts():
    counter = CounterMetric("moves_total", label_names=("reason",))

    with pytest.raises(ValueError):
        counter.inc(labels={})
    with pytest.raises(ValueError):
        counter.inc(-1, labels={"reason": "stale_status"})


def test_histogram_buckets_are_inclusive_upper_bounds():
    histogram = HistogramMetric("change_seconds", buckets=(1.0, 0.1))

    histogram.observe(0.1)
    histogram.observe(0.5)
    histogram.observe(3.0)

    series = histogram.series()
    assert series is not None
    assert series.count == 3
    assert series.total == pytest.approx(3.6)
    assert series.cumulative() == [(0.1, 1), (1.0, 2)]


def test_registry_rejects_type_conflicts():
    registry = MetricsRegistry()
    registry.counter("latency")

    with pytest.raises(TypeError):
        registry.histogram("latency")
    assert registry.counter("latency") is registry.counter("latency")


def test_ticket_metrics_register_workflow_series():
    names = {metric.name for metric in metrics_registry.metrics()}
    assert {STATUS_TRANSITIONS_TOTAL, STATUS_REJECTIONS_TOTAL, STATUS_CHANGE_DURATION} <= names

    metrics = TicketMetrics(MetricsRegistry())
    metrics.transition(InternalStatus.PENDING, InternalStatus.ON_HOLD)
    metrics.rejection("stale_status")
    with metrics.time_status_change():
        pass

    assert len(metrics.registry.metrics()) == 3
    assert metrics.transition_count(InternalStatus.PENDING, InternalStatus.ON_HOLD) == 1
    assert metrics.rejection_count("stale_status") == 1
    assert metrics.duration.series().count == 1


def test_ticket_metrics_reject_unknown_reasons():
    metrics = TicketMetrics(MetricsRegistry())

    with pytest.raises(ValueError):
        metrics.rejection("teleported")


def test_prometheus_payload():
    registry = MetricsRegistry()
    counter = registry.counter("moves_total", description="Moves.", label_names=("to_status",))
    counter.inc(labels={"to_status": 'on-"hold"'})
    registry.histogram("change_seconds", description="Latency.", buckets=(0.1, 1.0)).observe(0.5)

    payload = PrometheusExporter(registry).export()

    assert "# TYPE moves_total counter" in payload
    assert 'moves_total{to_status="on-\\"hold\\""} 1.0' in payload
    assert "# TYPE change_seconds histogram" in payload
    assert 'change_seconds_bucket{le="0.1"} 0' in payload
    assert 'change_seconds_bucket{le="1.0"} 1' in payload
    assert 'change_seconds_bucket{le="+Inf"} 1' in payload
    assert "change_seconds_sum 0.5" in payload
    assert "change_seconds_count 1" in payload
    assert payload.endswith("\n")


def test_empty_registry_exports_nothing():
    assert PrometheusExporter(MetricsRegistry()).build_payload() == ""
