"""Handler for POSITION_APP records."""

import logging
from datetime import datetime, timezone

from sqlalchemy import update

from meshtastic_hub.collector.records import PositionRecord
from meshtastic_hub.common.database import DatabaseManager
from meshtastic_hub.common.models import Node

logger = logging.getLogger(__name__)


def handle_position(record: PositionRecord, db: DatabaseManager) -> None:
    """Update the position of a known node.

    Positions for nodes that have not sent their user info yet are ignored.

    Args:
        record: Normalized position
        db: Database manager
    """
    with db.session_scope() as session:
        result = session.execute(
            update(Node)
            .where(Node.node_id == record.node_id)
            .values(
                latitude=record.latitude,
                longitude=record.longitude,
                altitude=record.altitude,
                updated_at=datetime.now(timezone.utc),
            )
        )

    if not result.rowcount:
        logger.debug(f"Position for unknown node !{record.node_id:08x} ignored")
