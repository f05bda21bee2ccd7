"""Packet dispatcher: decrypt, classify by port number, normalize and store.

Processing is split in two stages. `decode_message` decodes, decrypts and
normalizes a raw MQTT payload; `store` hands the resulting record to its
persistence handler. The transport runs the first stage on the network thread
and the second on a worker pool. `process_message` runs both in sequence.

Each stage is a per-message boundary: every failure inside is turned into a
drop or a log line, and nothing propagates back to the caller.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from google.protobuf import text_format
from meshtastic.protobuf import mesh_pb2, mqtt_pb2, portnums_pb2
from sqlalchemy.exc import SQLAlchemyError

from meshtastic_hub.collector.crypto import decrypt_data
from meshtastic_hub.collector.envelope import decode_envelope
from meshtastic_hub.collector.errors import DecodeError, DecryptError, PersistenceError
from meshtastic_hub.collector.metrics import CollectorMetrics
from meshtastic_hub.collector.payloads import (
    decode_map_report,
    decode_neighbor_info,
    decode_position,
    decode_route_discovery,
    decode_telemetry,
    decode_user,
)
from meshtastic_hub.collector.records import (
    NormalizedRecord,
    normalize_map_report,
    normalize_neighbor_info,
    normalize_position,
    normalize_route_discovery,
    normalize_telemetry,
    normalize_user,
)
from meshtastic_hub.common.config import (
    SUPPRESSED_PORTNUM_DEFAULTS,
    CollectorSettings,
    decode_channel_key,
)
from meshtastic_hub.common.database import DatabaseManager

logger = logging.getLogger(__name__)

PortNum = portnums_pb2.PortNum

# Port number of a packet whose encrypted payload could not be decoded
UNDECODABLE = None

DEFAULT_SUPPRESSED_PORTNUMS: frozenset[Optional[int]] = frozenset(
    {UNDECODABLE, *SUPPRESSED_PORTNUM_DEFAULTS}
)

# Port numbers with a decoder and a persistence handler
RECOGNIZED_PORTNUMS = frozenset(
    {
        PortNum.POSITION_APP,
        PortNum.NODEINFO_APP,
        PortNum.TELEMETRY_APP,
        PortNum.TRACEROUTE_APP,
        PortNum.NEIGHBORINFO_APP,
        PortNum.MAP_REPORT_APP,
    }
)

# Handler type: receives (record, db_manager)
RecordHandler = Callable[[Any, DatabaseManager], None]


class DispatchOutcome(str, Enum):
    """What happened to one inbound message."""

    STORED = "stored"
    SKIPPED = "skipped"
    SUPPRESSED = "suppressed"
    UNHANDLED = "unhandled"
    DROPPED = "dropped"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration of the decode/dispatch pipeline.

    Attributes:
        channel_key: AES key used to decrypt encrypted packets
        suppressed_portnums: Unrecognized port numbers dropped without logging;
            may contain UNDECODABLE
        log_known_packets: Log every recognized packet at INFO level
        log_unknown_packets: Log unrecognized, unsuppressed packets
    """

    channel_key: bytes = field(default_factory=decode_channel_key)
    suppressed_portnums: frozenset[Optional[int]] = DEFAULT_SUPPRESSED_PORTNUMS
    log_known_packets: bool = False
    log_unknown_packets: bool = True

    @classmethod
    def from_settings(cls, settings: CollectorSettings) -> "PipelineConfig":
        """Build the pipeline configuration from collector settings.

        Undecodable packets are always suppressed.
        """
        suppressed: set[Optional[int]] = {UNDECODABLE}
        suppressed.update(settings.collector_suppressed_portnums_list)
        return cls(
            channel_key=decode_channel_key(settings.collector_channel_key),
            suppressed_portnums=frozenset(suppressed),
            log_known_packets=settings.collector_log_known_packets,
            log_unknown_packets=settings.collector_log_unknown_packets,
        )


class Dispatcher:
    """Routes decoded mesh packets to the handler of their record type."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        config: Optional[PipelineConfig] = None,
        metrics: Optional[CollectorMetrics] = None,
    ):
        """Initialize dispatcher.

        Args:
            db_manager: Database manager passed to handlers
            config: Pipeline configuration (defaults to the public channel key)
            metrics: Optional metrics sink
        """
        self.db = db_manager
        self.config = config or PipelineConfig()
        self.metrics = metrics
        self._handlers: dict[type, RecordHandler] = {}

    def register_handler(self, record_type: type, handler: RecordHandler) -> None:
        """Register the persistence handler for a record type.

        Args:
            record_type: Normalized record class (e.g. PositionRecord)
            handler: Handler function
        """
        self._handlers[record_type] = handler
        logger.debug(f"Registered handler for {record_type.__name__}")

    def process_message(self, raw: bytes) -> DispatchOutcome:
        """Decode and store one raw MQTT payload on the calling thread.

        Args:
            raw: Message payload bytes

        Returns:
            Outcome of the message
        """
        result = self.decode_message(raw)
        if isinstance(result, DispatchOutcome):
            return result
        return self.store(result)

    def decode_message(self, raw: bytes) -> Union[NormalizedRecord, DispatchOutcome]:
        """Decode, decrypt and normalize one raw MQTT payload.

        Decode and decrypt failures are dropped silently, and any other error
        is dropped with a debug trace.

        Returns:
            The record to store, or the final outcome when there is nothing
            to store
        """
        try:
            result = self.classify(decode_envelope(raw))
        except DecodeError:
            result = DispatchOutcome.DROPPED
        except Exception:
            logger.debug("Dropped message after unexpected error", exc_info=True)
            result = DispatchOutcome.DROPPED

        if isinstance(result, DispatchOutcome):
            self._record_outcome(result)
        return result

    def store(self, record: NormalizedRecord) -> DispatchOutcome:
        """Persist a normalized record with its registered handler.

        Persistence failures are logged, and any other error is dropped with
        a debug trace.
        """
        try:
            outcome = self._persist(record)
        except PersistenceError as e:
            logger.error(f"Error storing packet: {e}")
            outcome = DispatchOutcome.FAILED
        except Exception:
            logger.debug("Dropped record after unexpected error", exc_info=True)
            outcome = DispatchOutcome.DROPPED

        self._record_outcome(outcome)
        return outcome

    def classify(
        self, envelope: mqtt_pb2.ServiceEnvelope
    ) -> Union[NormalizedRecord, DispatchOutcome]:
        """Classify the packet carried by an envelope and normalize its payload.

        Raises:
            DecodeError: If the typed payload does not parse
        """
        packet = envelope.packet
        portnum = self._resolve_portnum(packet)
        if self.metrics:
            self.metrics.record_portnum(self._portnum_label(portnum))

        if portnum is UNDECODABLE:
            return self._handle_unrecognized(portnum, envelope)

        record = self._decode_payload(portnum, packet)
        if record is NotImplemented:
            return self._handle_unrecognized(portnum, envelope)
        if record is None:
            return DispatchOutcome.SKIPPED

        if self.config.log_known_packets:
            logger.info(
                "%s from !%08x: %s",
                PortNum.Name(portnum),
                getattr(packet, "from"),
                record,
            )
        return record

    def _portnum_label(self, portnum: Optional[int]) -> str:
        """Metrics label for a port number, from a fixed set of values."""
        if portnum is UNDECODABLE:
            return "undecodable"
        if portnum in RECOGNIZED_PORTNUMS:
            return PortNum.Name(portnum)
        if portnum in self.config.suppressed_portnums:
            return "suppressed"
        return "other"

    def _record_outcome(self, outcome: DispatchOutcome) -> None:
        if self.metrics:
            self.metrics.record_outcome(outcome.value)

    def _resolve_portnum(self, packet: mesh_pb2.MeshPacket) -> Optional[int]:
        """Decrypt the packet if needed and return its port number."""
        if packet.WhichOneof("payload_variant") == "encrypted":
            try:
                data = decrypt_data(packet, self.config.channel_key)
            except DecryptError as e:
                logger.debug(f"Undecodable packet {packet.id}: {e}")
                return UNDECODABLE
            packet.decoded.CopyFrom(data)

        if not packet.HasField("decoded"):
            return UNDECODABLE
        return packet.decoded.portnum

    def _decode_payload(self, portnum: int, packet: mesh_pb2.MeshPacket) -> Any:
        """Decode and normalize the typed payload for a port number.

        Returns:
            The normalized record, None when the record has nothing to store,
            or NotImplemented for unrecognized port numbers
        """
        node_id = getattr(packet, "from")
        payload = packet.decoded.payload

        match portnum:
            case PortNum.POSITION_APP:
                return normalize_position(node_id, decode_position(payload))
            case PortNum.NODEINFO_APP:
                return normalize_user(node_id, decode_user(payload))
            case PortNum.TELEMETRY_APP:
                return normalize_telemetry(node_id, decode_telemetry(payload))
            case PortNum.TRACEROUTE_APP:
                return normalize_route_discovery(
                    node_id, decode_route_discovery(payload)
                )
            case PortNum.NEIGHBORINFO_APP:
                return normalize_neighbor_info(node_id, decode_neighbor_info(payload))
            case PortNum.MAP_REPORT_APP:
                return normalize_map_report(node_id, decode_map_report(payload))
            case _:
                return NotImplemented

    def _handle_unrecognized(
        self, portnum: Optional[int], envelope: mqtt_pb2.ServiceEnvelope
    ) -> DispatchOutcome:
        """Apply the suppression policy to an unrecognized packet."""
        if portnum in self.config.suppressed_portnums:
            return DispatchOutcome.SUPPRESSED
        if self.config.log_unknown_packets:
            logger.info(
                "Unhandled portnum %s: %s",
                portnum,
                text_format.MessageToString(envelope, as_one_line=True),
            )
        return DispatchOutcome.UNHANDLED

    def _persist(self, record: NormalizedRecord) -> DispatchOutcome:
        handler = self._handlers.get(type(record))
        if handler is None:
            logger.warning(f"No handler registered for {type(record).__name__}")
            return DispatchOutcome.SKIPPED
        try:
            handler(record, self.db)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"{type(record).__name__} from !{record.node_id:08x}: {e}"
            ) from e
        return DispatchOutcome.STORED
