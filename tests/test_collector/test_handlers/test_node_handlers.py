"""Tests for the node info, position and telemetry handlers."""

from datetime import datetime, timezone

from meshtastic_hub.collector.handlers.node_info import handle_node_info
from meshtastic_hub.collector.handlers.position import handle_position
from meshtastic_hub.collector.handlers.telemetry import handle_telemetry
from meshtastic_hub.collector.records import (
    NodeInfoRecord,
    PositionRecord,
    TelemetryRecord,
)
from meshtastic_hub.common.models import Node

NODE_ID = 0x0A0B0C0D


def _node_info(**overrides) -> NodeInfoRecord:
    values = {
        "node_id": NODE_ID,
        "long_name": "Test Node",
        "short_name": "TN01",
        "hardware_model": 43,
        "is_licensed": False,
        "role": 0,
    }
    values.update(overrides)
    return NodeInfoRecord(**values)


def _add_node(db_session, **values) -> Node:
    node = Node(node_id=NODE_ID, **values)
    db_session.add(node)
    db_session.commit()
    return node


def test_handle_node_info_creates_node(db_session, mock_db_manager):
    """Test that node info creates a node with its identity fields."""
    handle_node_info(_node_info(), mock_db_manager)

    node = db_session.query(Node).filter_by(node_id=NODE_ID).first()
    assert node is not None
    assert node.long_name == "Test Node"
    assert node.short_name == "TN01"
    assert node.hardware_model == 43
    assert node.is_licensed is False
    assert node.created_at is not None


def test_handle_node_info_updates_existing_node(db_session, mock_db_manager):
    """Test that node info updates names but keeps position and metrics."""
    created = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    _add_node(
        db_session,
        long_name="Old Name",
        latitude=1,
        longitude=2,
        battery_level=80,
        created_at=created,
    )

    handle_node_info(_node_info(long_name="New Name", role=2), mock_db_manager)

    db_session.expire_all()
    nodes = db_session.query(Node).filter_by(node_id=NODE_ID).all()
    assert len(nodes) == 1
    node = nodes[0]
    assert node.long_name == "New Name"
    assert node.role == 2
    assert node.latitude == 1
    assert node.battery_level == 80
    # SQLite strips timezone info
    assert node.created_at.replace(tzinfo=None) == created.replace(tzinfo=None)


def test_handle_node_info_is_idempotent(db_session, mock_db_manager):
    """Test that the same node info twice leaves one node."""
    handle_node_info(_node_info(), mock_db_manager)
    handle_node_info(_node_info(), mock_db_manager)

    assert db_session.query(Node).filter_by(node_id=NODE_ID).count() == 1


def test_handle_node_info_logs_new_node(db_session, mock_db_manager, caplog):
    """Test that a new node is announced in the log."""
    caplog.set_level("INFO", logger="meshtastic_hub")

    handle_node_info(_node_info(), mock_db_manager)

    assert "New node !0a0b0c0d (Test Node)" in caplog.text


def test_handle_position_updates_known_node(db_session, mock_db_manager):
    """Test that a position updates the coordinates of a known node."""
    _add_node(db_session, altitude=50)

    handle_position(
        PositionRecord(
            node_id=NODE_ID, latitude=377749000, longitude=-1224194000, altitude=None
        ),
        mock_db_manager,
    )

    db_session.expire_all()
    node = db_session.query(Node).filter_by(node_id=NODE_ID).first()
    assert node.latitude == 377749000
    assert node.longitude == -1224194000
    assert node.altitude is None


def test_handle_position_ignores_unknown_node(db_session, mock_db_manager):
    """Test that a position for an unknown node creates nothing."""
    handle_position(
        PositionRecord(node_id=NODE_ID, latitude=1, longitude=2, altitude=3),
        mock_db_manager,
    )

    assert db_session.query(Node).count() == 0


def test_handle_telemetry_updates_metrics(db_session, mock_db_manager):
    """Test that device metrics are written, absent readings as null."""
    _add_node(db_session, battery_level=90, voltage=4.1)

    handle_telemetry(
        TelemetryRecord(
            node_id=NODE_ID,
            battery_level=None,
            voltage=3.7,
            channel_utilization=12.5,
            air_util_tx=None,
        ),
        mock_db_manager,
    )

    db_session.expire_all()
    node = db_session.query(Node).filter_by(node_id=NODE_ID).first()
    assert node.battery_level is None
    assert node.voltage == 3.7
    assert node.channel_utilization == 12.5
    assert node.air_util_tx is None


def test_handle_telemetry_ignores_unknown_node(db_session, mock_db_manager):
    """Test that telemetry for an unknown node creates nothing."""
    handle_telemetry(
        TelemetryRecord(
            node_id=NODE_ID,
            battery_level=50,
            voltage=None,
            channel_utilization=None,
            air_util_tx=None,
        ),
        mock_db_manager,
    )

    assert db_session.query(Node).count() == 0
