"""Shared components: configuration, database, MQTT and logging."""
