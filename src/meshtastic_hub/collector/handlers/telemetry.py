"""Handler for TELEMETRY_APP device metrics records."""

import logging
from datetime import datetime, timezone

from sqlalchemy import update

from meshtastic_hub.collector.records import TelemetryRecord
from meshtastic_hub.common.database import DatabaseManager
from meshtastic_hub.common.models import Node

logger = logging.getLogger(__name__)


def handle_telemetry(record: TelemetryRecord, db: DatabaseManager) -> None:
    """Update the device metrics of a known node.

    Args:
        record: Normalized device metrics (zero readings already None)
        db: Database manager
    """
    with db.session_scope() as session:
        result = session.execute(
            update(Node)
            .where(Node.node_id == record.node_id)
            .values(**record.metrics(), updated_at=datetime.now(timezone.utc))
        )

    if not result.rowcount:
        logger.debug(f"Telemetry for unknown node !{record.node_id:08x} ignored")
