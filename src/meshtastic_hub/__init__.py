"""Meshtastic Hub - collect Meshtastic mesh telemetry from MQTT into a database."""

__version__ = "0.1.0"
