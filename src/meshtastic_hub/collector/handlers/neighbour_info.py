"""Handler for NEIGHBORINFO_APP records."""

import logging

from meshtastic_hub.collector.records import NeighbourInfoRecord
from meshtastic_hub.common.database import DatabaseManager
from meshtastic_hub.common.models import NeighbourInfo

logger = logging.getLogger(__name__)


def handle_neighbour_info(record: NeighbourInfoRecord, db: DatabaseManager) -> None:
    """Store a neighbour list snapshot.

    Args:
        record: Normalized neighbour info
        db: Database manager
    """
    neighbours = [
        {"node_id": neighbour.node_id, "snr": neighbour.snr}
        for neighbour in record.neighbours
    ]

    with db.session_scope() as session:
        session.add(
            NeighbourInfo(
                node_id=record.node_id,
                node_broadcast_interval_secs=record.node_broadcast_interval_secs,
                neighbours=neighbours,
            )
        )

    logger.debug(f"Stored {len(neighbours)} neighbours for !{record.node_id:08x}")
