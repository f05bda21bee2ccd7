"""Prometheus counters for collector message processing."""

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, start_http_server

logger = logging.getLogger(__name__)


class CollectorMetrics:
    """Counters for processed messages and packet port numbers.

    Each instance owns its own CollectorRegistry to avoid global state
    between collectors (and between tests).
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.messages = Counter(
            "meshtastic_hub_messages",
            "MQTT messages processed by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.packets = Counter(
            "meshtastic_hub_packets",
            "Decoded packets by port number",
            ["portnum"],
            registry=self.registry,
        )

    def record_outcome(self, outcome: str) -> None:
        self.messages.labels(outcome=outcome).inc()

    def record_portnum(self, label: str) -> None:
        """Count a packet under a label from a fixed set, never a raw wire value."""
        self.packets.labels(portnum=label).inc()

    def get_count(self, outcome: str) -> float:
        """Current value of the messages counter for an outcome."""
        value = self.registry.get_sample_value(
            "meshtastic_hub_messages_total", {"outcome": outcome}
        )
        return value or 0.0

    def serve(self, port: int) -> None:
        """Expose the registry over HTTP on the given port."""
        start_http_server(port, registry=self.registry)
        logger.info("Metrics endpoint listening on port %d", port)
