"""Tests for envelope and typed payload decoding."""

import pytest
from meshtastic.protobuf import mesh_pb2, mqtt_pb2, portnums_pb2

from meshtastic_hub.collector.envelope import decode_envelope
from meshtastic_hub.collector.errors import DecodeError
from meshtastic_hub.collector.payloads import (
    decode_map_report,
    decode_neighbor_info,
    decode_position,
    decode_route_discovery,
    decode_telemetry,
    decode_user,
)


class TestDecodeEnvelope:
    """Tests for decode_envelope."""

    def test_decodes_encrypted_packet(self, build_envelope) -> None:
        """An envelope with an encrypted packet is decoded as-is."""
        raw = build_envelope(portnums_pb2.PortNum.POSITION_APP, b"")

        envelope = decode_envelope(raw)

        assert envelope.channel_id == "LongFast"
        assert envelope.gateway_id == "!deadbeef"
        assert envelope.packet.WhichOneof("payload_variant") == "encrypted"
        assert getattr(envelope.packet, "from") == 0x12345678

    def test_decodes_plain_packet(self, build_envelope) -> None:
        """An envelope with a decoded packet keeps its Data message."""
        raw = build_envelope(
            portnums_pb2.PortNum.TEXT_MESSAGE_APP, b"hello", encrypted=False
        )

        envelope = decode_envelope(raw)

        assert envelope.packet.decoded.portnum == portnums_pb2.PortNum.TEXT_MESSAGE_APP
        assert envelope.packet.decoded.payload == b"hello"

    def test_malformed_bytes(self) -> None:
        """Bytes that are not a protobuf message raise DecodeError."""
        with pytest.raises(DecodeError):
            decode_envelope(b"\xff\xff\xff\xff")

    def test_missing_packet(self) -> None:
        """An envelope without a packet raises DecodeError."""
        raw = mqtt_pb2.ServiceEnvelope(channel_id="LongFast").SerializeToString()

        with pytest.raises(DecodeError):
            decode_envelope(raw)

    def test_json_payload(self) -> None:
        """JSON gateway output is not an envelope."""
        with pytest.raises(DecodeError):
            decode_envelope(b'{"from": 1, "type": "text"}')


class TestPayloadDecoders:
    """Tests for the per-portnum payload decoders."""

    def test_decode_position(self) -> None:
        position = mesh_pb2.Position(latitude_i=1, longitude_i=2)

        decoded = decode_position(position.SerializeToString())

        assert decoded.latitude_i == 1
        assert decoded.longitude_i == 2

    def test_decode_user(self) -> None:
        user = mesh_pb2.User(long_name="Test Node", short_name="TN01")

        assert decode_user(user.SerializeToString()).short_name == "TN01"

    def test_decode_route_discovery(self) -> None:
        route = mesh_pb2.RouteDiscovery(route=[1, 2, 3])

        assert list(decode_route_discovery(route.SerializeToString()).route) == [
            1,
            2,
            3,
        ]

    def test_decode_map_report(self) -> None:
        report = mqtt_pb2.MapReport(long_name="Map Node", firmware_version="2.5.0")

        decoded = decode_map_report(report.SerializeToString())

        assert decoded.firmware_version == "2.5.0"

    @pytest.mark.parametrize(
        "decoder",
        [
            decode_position,
            decode_user,
            decode_telemetry,
            decode_route_discovery,
            decode_neighbor_info,
            decode_map_report,
        ],
    )
    def test_malformed_payload(self, decoder) -> None:
        """Every decoder raises DecodeError on malformed bytes."""
        # Field 1, length-delimited, claims 100 bytes but carries 1
        with pytest.raises(DecodeError):
            decoder(b"\x0a\x64\x00")
