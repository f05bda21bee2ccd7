"""Handler for NODEINFO_APP records."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from meshtastic_hub.collector.records import NodeInfoRecord
from meshtastic_hub.common.database import DatabaseManager
from meshtastic_hub.common.models import Node

logger = logging.getLogger(__name__)


def handle_node_info(record: NodeInfoRecord, db: DatabaseManager) -> None:
    """Create or update a node from its user info.

    Args:
        record: Normalized node info
        db: Database manager
    """
    now = datetime.now(timezone.utc)

    with db.session_scope() as session:
        node = session.execute(
            select(Node).where(Node.node_id == record.node_id)
        ).scalar_one_or_none()

        if node is None:
            node = Node(node_id=record.node_id, created_at=now)
            session.add(node)
            logger.info(f"New node !{record.node_id:08x} ({record.long_name})")

        node.long_name = record.long_name
        node.short_name = record.short_name
        node.hardware_model = record.hardware_model
        node.is_licensed = record.is_licensed
        node.role = record.role
        node.updated_at = now

    logger.debug(f"Stored node info for !{record.node_id:08x}")
