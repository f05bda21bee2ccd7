"""MQTT client wrapper and topic helpers."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

logger = logging.getLogger(__name__)

# Message handler: receives (topic, subscription pattern, raw payload bytes)
MessageHandler = Callable[[str, str, bytes], Any]


@dataclass
class MQTTConfig:
    """MQTT connection settings."""

    host: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    prefix: str = "msh"
    client_id: Optional[str] = None
    keepalive: int = 60
    tls: bool = False
    transport: str = "tcp"
    ws_path: str = "/mqtt"


class TopicBuilder:
    """Builds and inspects Meshtastic MQTT topics.

    Meshtastic gateways publish to `<prefix>/<region>/2/e/<channel>/<gateway>`
    (protobuf envelopes), `.../2/map/` (map reports) and `.../2/json/...`.
    """

    def __init__(self, prefix: str = "msh"):
        self.prefix = prefix.strip("/")

    def all_packets_topic(self) -> str:
        """Wildcard topic covering everything below the prefix."""
        if not self.prefix:
            return "#"
        return f"{self.prefix}/#"

    def is_json_topic(self, topic: str) -> bool:
        """Return True for the gateway JSON mirror topics (not protobuf)."""
        return "/json/" in f"/{topic}/"


class MQTTClient:
    """Thin wrapper around paho-mqtt with per-pattern handlers."""

    def __init__(self, config: MQTTConfig):
        self.config = config
        self.topic_builder = TopicBuilder(prefix=config.prefix)
        self._handlers: dict[str, MessageHandler] = {}
        self._lock = threading.Lock()
        self._connected = threading.Event()

        self._client = mqtt.Client(
            CallbackAPIVersion.VERSION2,
            client_id=config.client_id or "",
            transport=config.transport,
        )
        if config.transport == "websockets":
            self._client.ws_set_options(path=config.ws_path)
        if config.username:
            self._client.username_pw_set(config.username, config.password)
        if config.tls:
            self._client.tls_set()

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

    @property
    def is_connected(self) -> bool:
        """True while the broker connection is up."""
        return self._connected.is_set()

    def connect(self) -> None:
        """Connect to the broker (non-blocking network loop not started)."""
        logger.info(
            "Connecting to MQTT broker %s:%d (transport=%s, tls=%s)",
            self.config.host,
            self.config.port,
            self.config.transport,
            self.config.tls,
        )
        self._client.connect(
            self.config.host, self.config.port, keepalive=self.config.keepalive
        )

    def start_background(self) -> None:
        """Run the paho network loop in a background thread."""
        self._client.loop_start()

    def stop(self) -> None:
        """Stop the background network loop."""
        self._client.loop_stop()

    def disconnect(self) -> None:
        """Disconnect from the broker."""
        self._client.disconnect()
        self._connected.clear()

    def subscribe(self, topic: str, handler: MessageHandler, qos: int = 0) -> None:
        """Subscribe to a topic pattern and route its messages to a handler.

        Args:
            topic: Topic pattern (may contain + and # wildcards)
            handler: Called with (topic, pattern, payload)
            qos: Subscription QoS
        """
        with self._lock:
            self._handlers[topic] = handler
        self._client.subscribe(topic, qos=qos)
        logger.debug("Subscribed to %s", topic)

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        if reason_code.is_failure:
            logger.error("MQTT connection refused: %s", reason_code)
            return
        self._connected.set()
        logger.info("Connected to MQTT broker %s", self.config.host)
        # Re-subscribe after a reconnect
        with self._lock:
            patterns = list(self._handlers)
        for pattern in patterns:
            client.subscribe(pattern)

    def _on_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        self._connected.clear()
        logger.warning("Disconnected from MQTT broker: %s", reason_code)

    def _on_message(
        self, client: mqtt.Client, userdata: Any, message: mqtt.MQTTMessage
    ) -> None:
        with self._lock:
            handlers = list(self._handlers.items())
        for pattern, handler in handlers:
            if not mqtt.topic_matches_sub(pattern, message.topic):
                continue
            try:
                handler(message.topic, pattern, message.payload)
            except Exception as e:
                logger.error(f"Error in MQTT handler for {message.topic}: {e}")
