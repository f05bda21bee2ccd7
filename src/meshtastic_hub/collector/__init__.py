"""Collector component: decodes Meshtastic MQTT traffic and stores it."""
