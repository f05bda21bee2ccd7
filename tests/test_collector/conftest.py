"""Fixtures for collector component tests."""

from contextlib import contextmanager
from typing import Optional
from unittest.mock import MagicMock

import pytest
from meshtastic.protobuf import mesh_pb2, mqtt_pb2

from meshtastic_hub.collector.crypto import encrypt_payload
from meshtastic_hub.common.config import decode_channel_key
from meshtastic_hub.common.database import DatabaseManager

NODE_ID = 0x12345678
PACKET_ID = 0x0BADF00D


@pytest.fixture
def db_manager():
    """Create an in-memory database manager for testing."""
    manager = DatabaseManager("sqlite:///:memory:")
    manager.create_tables()
    yield manager
    manager.dispose()


@pytest.fixture
def db_session(db_manager):
    """Create a database session for testing."""
    session = db_manager.get_session()
    yield session
    session.close()


@pytest.fixture
def mock_db_manager(db_session):
    """Create a mock database manager that uses the test session."""
    mock_db = MagicMock()

    @contextmanager
    def session_scope():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    mock_db.session_scope = session_scope
    return mock_db


@pytest.fixture
def channel_key() -> bytes:
    """The default public channel key."""
    return decode_channel_key()


@pytest.fixture
def build_envelope(channel_key):
    """Factory for serialized ServiceEnvelopes as published by a gateway."""

    def _build(
        portnum: int,
        payload: bytes = b"",
        encrypted: bool = True,
        from_node: int = NODE_ID,
        packet_id: int = PACKET_ID,
        key: Optional[bytes] = None,
    ) -> bytes:
        data = mesh_pb2.Data(portnum=portnum, payload=payload)
        packet = mesh_pb2.MeshPacket(id=packet_id, to=0xFFFFFFFF)
        setattr(packet, "from", from_node)
        if encrypted:
            packet.encrypted = encrypt_payload(
                data.SerializeToString(),
                packet_id,
                from_node,
                key or channel_key,
            )
        else:
            packet.decoded.CopyFrom(data)

        envelope = mqtt_pb2.ServiceEnvelope(
            channel_id="LongFast", gateway_id="!deadbeef"
        )
        envelope.packet.CopyFrom(packet)
        return envelope.SerializeToString()

    return _build
