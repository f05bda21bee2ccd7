"""Configuration settings for Meshtastic Hub components.

Settings are read from environment variables (and an optional `.env` file)
using pydantic-settings.
"""

import base64
import os
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Publicly known default key of the Meshtastic "LongFast" primary channel.
DEFAULT_CHANNEL_KEY = "1PG7OiApB1nwvP+rz05pAQ=="

# TEXT_MESSAGE_APP, ROUTING_APP, PAXCOUNTER_APP, STORE_FORWARD_APP, RANGE_TEST_APP
SUPPRESSED_PORTNUM_DEFAULTS = (1, 5, 34, 65, 66)

VALID_KEY_SIZES = (16, 32)


def decode_channel_key(value: str = DEFAULT_CHANNEL_KEY) -> bytes:
    """Decode a base64 channel key.

    Raises:
        ValueError: If the value is not base64 or not an AES-128/256 key
    """
    try:
        key = base64.b64decode(value, validate=True)
    except ValueError as e:
        raise ValueError(f"Channel key is not valid base64: {e}") from e
    if len(key) not in VALID_KEY_SIZES:
        raise ValueError(f"Channel key must be 16 or 32 bytes, got {len(key)}")
    return key


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class MQTTTransport(str, Enum):
    """MQTT transport protocol options."""

    TCP = "tcp"
    WEBSOCKETS = "websockets"


class CommonSettings(BaseSettings):
    """Settings shared by all components."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_home: str = Field(
        default="./data",
        description="Base directory for runtime data",
    )

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    mqtt_host: str = Field(default="mqtt.meshtastic.org", description="MQTT host")
    mqtt_port: int = Field(default=1883, description="MQTT port")
    mqtt_username: Optional[str] = Field(
        default="meshdev", description="MQTT username"
    )
    mqtt_password: Optional[str] = Field(
        default="large4cats", description="MQTT password"
    )
    mqtt_prefix: str = Field(default="msh", description="MQTT topic prefix")
    mqtt_tls: bool = Field(default=False, description="Enable TLS/SSL for MQTT")
    mqtt_transport: MQTTTransport = Field(
        default=MQTTTransport.TCP,
        description="MQTT transport protocol (tcp or websockets)",
    )
    mqtt_ws_path: str = Field(
        default="/mqtt",
        description="WebSocket path (used when transport=websockets)",
    )


class CollectorSettings(CommonSettings):
    """Settings for the collector component."""

    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy database URL (default: sqlite under data_home)",
    )

    collector_channel_key: str = Field(
        default=DEFAULT_CHANNEL_KEY,
        description="Base64 channel key used to decrypt packets (AES-128 or AES-256)",
    )
    collector_suppressed_portnums: str = Field(
        default=",".join(str(portnum) for portnum in SUPPRESSED_PORTNUM_DEFAULTS),
        description="Comma/space separated port numbers that are dropped silently",
    )
    collector_log_known_packets: bool = Field(
        default=False,
        description="Log every recognized packet type at INFO level",
    )
    collector_log_unknown_packets: bool = Field(
        default=True,
        description="Log unrecognized (and unsuppressed) packet types",
    )
    collector_metrics_port: int = Field(
        default=0,
        description="Port for the Prometheus metrics endpoint (0 disables it)",
    )
    collector_persist_workers: int = Field(
        default=4,
        ge=1,
        description="Worker threads that store decoded packets",
    )

    @field_validator("collector_channel_key")
    @classmethod
    def validate_channel_key(cls, value: str) -> str:
        """Ensure the channel key is base64 for a 128 or 256 bit AES key."""
        decode_channel_key(value)
        return value

    @field_validator("collector_suppressed_portnums")
    @classmethod
    def validate_suppressed_portnums(cls, value: str) -> str:
        """Ensure every suppressed port number is an integer."""
        for token in value.replace(",", " ").split():
            if not token.isdigit():
                raise ValueError(f"Invalid port number in suppressed list: {token}")
        return value

    @property
    def collector_data_dir(self) -> str:
        """Directory holding collector data."""
        return os.path.join(self.data_home, "collector")

    @property
    def effective_database_url(self) -> str:
        """Database URL, falling back to a SQLite file under data_home."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{os.path.join(self.collector_data_dir, 'meshtastic.db')}"

    @property
    def collector_suppressed_portnums_list(self) -> list[int]:
        """Suppressed port numbers parsed from the comma/space separated value."""
        tokens = self.collector_suppressed_portnums.replace(",", " ").split()
        return [int(token) for token in tokens]


def get_collector_settings() -> CollectorSettings:
    """Load collector settings from the environment."""
    return CollectorSettings()
