"""Handler for TRACEROUTE_APP records."""

import logging

from meshtastic_hub.collector.records import TraceRouteRecord
from meshtastic_hub.common.database import DatabaseManager
from meshtastic_hub.common.models import TraceRoute

logger = logging.getLogger(__name__)


def handle_trace_route(record: TraceRouteRecord, db: DatabaseManager) -> None:
    """Store a trace route.

    Args:
        record: Normalized route discovery
        db: Database manager
    """
    with db.session_scope() as session:
        session.add(TraceRoute(node_id=record.node_id, route=list(record.route)))

    logger.debug(
        f"Stored trace route from !{record.node_id:08x}, hops={len(record.route)}"
    )
