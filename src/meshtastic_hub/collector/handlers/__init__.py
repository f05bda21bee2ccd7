"""Persistence handlers, one per normalized record type."""

from typing import TYPE_CHECKING

from meshtastic_hub.collector.handlers.map_report import handle_map_report
from meshtastic_hub.collector.handlers.neighbour_info import handle_neighbour_info
from meshtastic_hub.collector.handlers.node_info import handle_node_info
from meshtastic_hub.collector.handlers.position import handle_position
from meshtastic_hub.collector.handlers.telemetry import handle_telemetry
from meshtastic_hub.collector.handlers.trace_route import handle_trace_route
from meshtastic_hub.collector.records import (
    MapReportRecord,
    NeighbourInfoRecord,
    NodeInfoRecord,
    PositionRecord,
    TelemetryRecord,
    TraceRouteRecord,
)

if TYPE_CHECKING:
    from meshtastic_hub.collector.dispatcher import Dispatcher


def register_all_handlers(dispatcher: "Dispatcher") -> None:
    """Register the default handler for every record type."""
    dispatcher.register_handler(PositionRecord, handle_position)
    dispatcher.register_handler(NodeInfoRecord, handle_node_info)
    dispatcher.register_handler(TelemetryRecord, handle_telemetry)
    dispatcher.register_handler(TraceRouteRecord, handle_trace_route)
    dispatcher.register_handler(NeighbourInfoRecord, handle_neighbour_info)
    dispatcher.register_handler(MapReportRecord, handle_map_report)


__all__ = [
    "handle_map_report",
    "handle_neighbour_info",
    "handle_node_info",
    "handle_position",
    "handle_telemetry",
    "handle_trace_route",
    "register_all_handlers",
]
