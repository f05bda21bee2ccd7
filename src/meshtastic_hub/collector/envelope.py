"""Outer MQTT envelope decoding."""

from google.protobuf.message import DecodeError as ProtobufDecodeError
from meshtastic.protobuf import mqtt_pb2

from meshtastic_hub.collector.errors import DecodeError


def decode_envelope(raw: bytes) -> mqtt_pb2.ServiceEnvelope:
    """Parse raw MQTT payload bytes into a ServiceEnvelope.

    Args:
        raw: Message payload as published by a gateway

    Returns:
        The envelope; its `packet` is guaranteed to be set

    Raises:
        DecodeError: If the bytes are not a ServiceEnvelope with a packet
    """
    envelope = mqtt_pb2.ServiceEnvelope()
    try:
        envelope.ParseFromString(raw)
    except ProtobufDecodeError as e:
        raise DecodeError(f"Invalid service envelope: {e}") from e
    if not envelope.HasField("packet"):
        raise DecodeError("Service envelope carries no packet")
    return envelope
