"""SQLAlchemy models."""

from meshtastic_hub.common.models.base import Base, TimestampMixin
from meshtastic_hub.common.models.map_report import MapReport
from meshtastic_hub.common.models.neighbour_info import NeighbourInfo
from meshtastic_hub.common.models.node import Node
from meshtastic_hub.common.models.trace_route import TraceRoute

__all__ = [
    "Base",
    "TimestampMixin",
    "MapReport",
    "NeighbourInfo",
    "Node",
    "TraceRoute",
]
