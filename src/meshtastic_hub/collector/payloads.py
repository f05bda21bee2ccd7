"""Typed payload decoders, one per supported port number."""

from collections.abc import Callable
from typing import TypeVar

from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.protobuf.message import Message
from meshtastic.protobuf import mesh_pb2, mqtt_pb2, telemetry_pb2

from meshtastic_hub.collector.errors import DecodeError

MessageT = TypeVar("MessageT", bound=Message)


def _parse(message_type: Callable[[], MessageT], payload: bytes) -> MessageT:
    message = message_type()
    try:
        message.ParseFromString(payload)
    except ProtobufDecodeError as e:
        name = message.DESCRIPTOR.name
        raise DecodeError(f"Invalid {name} payload: {e}") from e
    return message


def decode_position(payload: bytes) -> mesh_pb2.Position:
    """Decode a POSITION_APP payload."""
    return _parse(mesh_pb2.Position, payload)


def decode_user(payload: bytes) -> mesh_pb2.User:
    """Decode a NODEINFO_APP payload."""
    return _parse(mesh_pb2.User, payload)


def decode_telemetry(payload: bytes) -> telemetry_pb2.Telemetry:
    """Decode a TELEMETRY_APP payload."""
    return _parse(telemetry_pb2.Telemetry, payload)


def decode_route_discovery(payload: bytes) -> mesh_pb2.RouteDiscovery:
    """Decode a TRACEROUTE_APP payload."""
    return _parse(mesh_pb2.RouteDiscovery, payload)


def decode_neighbor_info(payload: bytes) -> mesh_pb2.NeighborInfo:
    """Decode a NEIGHBORINFO_APP payload."""
    return _parse(mesh_pb2.NeighborInfo, payload)


def decode_map_report(payload: bytes) -> mqtt_pb2.MapReport:
    """Decode a MAP_REPORT_APP payload."""
    return _parse(mqtt_pb2.MapReport, payload)
