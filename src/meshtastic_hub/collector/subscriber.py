"""MQTT subscriber that feeds Meshtastic packets into the database.

Packets are decoded and decrypted on the paho network thread. Storing the
resulting record happens on a small worker pool, so a slow or failing write
never holds up the messages behind it or the broker keepalive.
"""

import logging
import signal
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional

from meshtastic_hub.collector.dispatcher import (
    Dispatcher,
    DispatchOutcome,
    PipelineConfig,
)
from meshtastic_hub.collector.metrics import CollectorMetrics
from meshtastic_hub.common.database import DatabaseManager
from meshtastic_hub.common.mqtt import MQTTClient, MQTTConfig

logger = logging.getLogger(__name__)


class Subscriber:
    """Subscribes below the topic prefix and stores every decoded packet."""

    def __init__(
        self,
        mqtt_client: MQTTClient,
        db_manager: DatabaseManager,
        dispatcher: Dispatcher,
        persist_workers: int = 4,
    ):
        """Initialize subscriber.

        Args:
            mqtt_client: MQTT client instance
            db_manager: Database manager instance
            dispatcher: Packet dispatcher with registered handlers
            persist_workers: Threads storing records concurrently
        """
        self.mqtt = mqtt_client
        self.db = db_manager
        self.dispatcher = dispatcher
        self._running = False
        self._shutdown_event = threading.Event()
        self._mqtt_connected = False
        self._db_connected = False
        self._executor = ThreadPoolExecutor(
            max_workers=persist_workers, thread_name_prefix="persist"
        )

    @property
    def is_healthy(self) -> bool:
        """True if running with MQTT and database connected."""
        return self._running and self._mqtt_connected and self._db_connected

    def get_health_status(self) -> dict[str, Any]:
        """Get detailed health status.

        Returns:
            Dictionary with health status details
        """
        return {
            "healthy": self.is_healthy,
            "running": self._running,
            "mqtt_connected": self._mqtt_connected,
            "database_connected": self._db_connected,
        }

    def _handle_mqtt_message(
        self, topic: str, pattern: str, payload: bytes
    ) -> Optional[Future]:
        """Decode a message on the network thread and queue its record.

        Args:
            topic: MQTT topic
            pattern: Subscription pattern
            payload: Raw message payload

        Returns:
            Future of the store call, or None if nothing needs storing
        """
        if self.mqtt.topic_builder.is_json_topic(topic):
            return None

        result = self.dispatcher.decode_message(payload)
        if isinstance(result, DispatchOutcome):
            logger.debug("Message on %s: %s", topic, result.value)
            return None

        future = self._executor.submit(self.dispatcher.store, result)
        future.add_done_callback(self._on_store_done)
        return future

    @staticmethod
    def _on_store_done(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Error in persistence worker: {error}", exc_info=error)
            return
        logger.debug("Stored record: %s", future.result().value)

    def start(self) -> None:
        """Start the subscriber."""
        logger.info("Starting collector subscriber")

        # Create missing tables (also verifies the connection)
        try:
            self.db.create_tables()
            self._db_connected = True
            logger.info("Database connection verified")
        except Exception as e:
            self._db_connected = False
            logger.error(f"Failed to connect to database: {e}")
            raise

        try:
            self.mqtt.connect()
            self.mqtt.start_background()
            self._mqtt_connected = True
            logger.info("Connected to MQTT broker")
        except Exception as e:
            self._mqtt_connected = False
            logger.error(f"Failed to connect to MQTT broker: {e}")
            raise

        packet_topic = self.mqtt.topic_builder.all_packets_topic()
        self.mqtt.subscribe(packet_topic, self._handle_mqtt_message)
        logger.info(f"Subscribed to packet topic: {packet_topic}")

        self._running = True

    def run(self) -> None:
        """Run the subscriber event loop (blocking)."""
        if not self._running:
            self.start()

        logger.info("Collector running. Press Ctrl+C to stop.")

        try:
            while self._running and not self._shutdown_event.is_set():
                time.sleep(0.1)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop receiving, then wait for queued records to be stored."""
        if not self._running:
            return

        logger.info("Stopping collector subscriber")
        self._running = False
        self._shutdown_event.set()

        self.mqtt.stop()
        self.mqtt.disconnect()
        self._mqtt_connected = False

        self._executor.shutdown(wait=True)

        logger.info("Collector subscriber stopped")


def create_subscriber(
    mqtt_host: str = "localhost",
    mqtt_port: int = 1883,
    mqtt_username: Optional[str] = None,
    mqtt_password: Optional[str] = None,
    mqtt_prefix: str = "msh",
    mqtt_tls: bool = False,
    mqtt_transport: str = "tcp",
    mqtt_ws_path: str = "/mqtt",
    database_url: str = "sqlite:///./meshtastic.db",
    pipeline_config: Optional[PipelineConfig] = None,
    metrics: Optional[CollectorMetrics] = None,
    persist_workers: int = 4,
) -> Subscriber:
    """Create a configured subscriber instance.

    Args:
        mqtt_host: MQTT broker host
        mqtt_port: MQTT broker port
        mqtt_username: MQTT username
        mqtt_password: MQTT password
        mqtt_prefix: MQTT topic prefix
        mqtt_tls: Enable TLS/SSL for MQTT connection
        mqtt_transport: MQTT transport protocol (tcp or websockets)
        mqtt_ws_path: WebSocket path (used when transport=websockets)
        database_url: Database connection URL
        pipeline_config: Decrypt/dispatch configuration (default channel key)
        metrics: Optional metrics sink
        persist_workers: Threads storing records concurrently

    Returns:
        Configured Subscriber instance
    """
    # Unique client ID so several collectors can share a broker
    unique_id = uuid.uuid4().hex[:8]
    mqtt_config = MQTTConfig(
        host=mqtt_host,
        port=mqtt_port,
        username=mqtt_username,
        password=mqtt_password,
        prefix=mqtt_prefix,
        client_id=f"meshtastic-collector-{unique_id}",
        tls=mqtt_tls,
        transport=mqtt_transport,
        ws_path=mqtt_ws_path,
    )
    mqtt_client = MQTTClient(mqtt_config)

    db_manager = DatabaseManager(database_url)

    dispatcher = Dispatcher(db_manager, pipeline_config, metrics=metrics)

    from meshtastic_hub.collector.handlers import register_all_handlers

    register_all_handlers(dispatcher)

    return Subscriber(
        mqtt_client, db_manager, dispatcher, persist_workers=persist_workers
    )


def run_collector(
    mqtt_host: str = "localhost",
    mqtt_port: int = 1883,
    mqtt_username: Optional[str] = None,
    mqtt_password: Optional[str] = None,
    mqtt_prefix: str = "msh",
    mqtt_tls: bool = False,
    mqtt_transport: str = "tcp",
    mqtt_ws_path: str = "/mqtt",
    database_url: str = "sqlite:///./meshtastic.db",
    pipeline_config: Optional[PipelineConfig] = None,
    metrics_port: int = 0,
    persist_workers: int = 4,
) -> None:
    """Run the collector (blocking).

    Args:
        mqtt_host: MQTT broker host
        mqtt_port: MQTT broker port
        mqtt_username: MQTT username
        mqtt_password: MQTT password
        mqtt_prefix: MQTT topic prefix
        mqtt_tls: Enable TLS/SSL for MQTT connection
        mqtt_transport: MQTT transport protocol (tcp or websockets)
        mqtt_ws_path: WebSocket path (used when transport=websockets)
        database_url: Database connection URL
        pipeline_config: Decrypt/dispatch configuration (default channel key)
        metrics_port: Serve Prometheus metrics on this port (0 disables)
        persist_workers: Threads storing records concurrently
    """
    metrics = CollectorMetrics()
    if metrics_port:
        metrics.serve(metrics_port)

    subscriber = create_subscriber(
        mqtt_host=mqtt_host,
        mqtt_port=mqtt_port,
        mqtt_username=mqtt_username,
        mqtt_password=mqtt_password,
        mqtt_prefix=mqtt_prefix,
        mqtt_tls=mqtt_tls,
        mqtt_transport=mqtt_transport,
        mqtt_ws_path=mqtt_ws_path,
        database_url=database_url,
        pipeline_config=pipeline_config,
        metrics=metrics,
        persist_workers=persist_workers,
    )

    # Set up signal handlers
    def signal_handler(signum: int, frame: Any) -> None:
        logger.info(f"Received signal {signum}")
        subscriber.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    subscriber.run()
