"""Handler for MAP_REPORT_APP records."""

import dataclasses
import logging

from meshtastic_hub.collector.records import MapReportRecord
from meshtastic_hub.common.database import DatabaseManager
from meshtastic_hub.common.models import MapReport

logger = logging.getLogger(__name__)


def handle_map_report(record: MapReportRecord, db: DatabaseManager) -> None:
    """Store a map report.

    Args:
        record: Normalized map report
        db: Database manager
    """
    with db.session_scope() as session:
        session.add(MapReport(**dataclasses.asdict(record)))

    logger.debug(f"Stored map report from !{record.node_id:08x}")
