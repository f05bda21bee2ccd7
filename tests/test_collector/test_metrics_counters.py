"""Tests for collector Prometheus counters."""

from unittest.mock import patch

from meshtastic_hub.collector.metrics import CollectorMetrics


def test_record_outcome_counts_per_label():
    """Outcomes are counted per label."""
    metrics = CollectorMetrics()

    metrics.record_outcome("stored")
    metrics.record_outcome("stored")
    metrics.record_outcome("dropped")

    assert metrics.get_count("stored") == 2.0
    assert metrics.get_count("dropped") == 1.0
    assert metrics.get_count("failed") == 0.0


def test_record_portnum_counts_per_label():
    """Packets are counted under the label they are recorded with."""
    metrics = CollectorMetrics()

    metrics.record_portnum("undecodable")
    metrics.record_portnum("TELEMETRY_APP")
    metrics.record_portnum("TELEMETRY_APP")

    assert (
        metrics.registry.get_sample_value(
            "meshtastic_hub_packets_total", {"portnum": "undecodable"}
        )
        == 1.0
    )
    assert (
        metrics.registry.get_sample_value(
            "meshtastic_hub_packets_total", {"portnum": "TELEMETRY_APP"}
        )
        == 2.0
    )


def test_instances_are_independent():
    """Each instance owns its registry."""
    first = CollectorMetrics()
    second = CollectorMetrics()

    first.record_outcome("stored")

    assert second.get_count("stored") == 0.0


def test_serve_starts_http_server():
    """serve exposes the instance registry."""
    metrics = CollectorMetrics()

    with patch("meshtastic_hub.collector.metrics.start_http_server") as start:
        metrics.serve(9464)

    start.assert_called_once_with(9464, registry=metrics.registry)
