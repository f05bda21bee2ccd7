"""Command line interface for Meshtastic Hub."""

import logging

import click

from meshtastic_hub import __version__
from meshtastic_hub.common.config import get_collector_settings
from meshtastic_hub.common.logging import configure_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(__version__, prog_name="meshtastic-hub")
def cli() -> None:
    """Meshtastic Hub - collect Meshtastic MQTT traffic into a database.

    Settings are read from environment variables and an optional .env file.
    """


@cli.command()
def collector() -> None:
    """Run the MQTT collector."""
    from meshtastic_hub.collector.dispatcher import PipelineConfig
    from meshtastic_hub.collector.subscriber import run_collector

    settings = get_collector_settings()
    configure_logging(settings.log_level.value)

    logger.info("Starting collector")
    logger.info(
        "MQTT: %s:%d (prefix=%s)",
        settings.mqtt_host,
        settings.mqtt_port,
        settings.mqtt_prefix,
    )

    run_collector(
        mqtt_host=settings.mqtt_host,
        mqtt_port=settings.mqtt_port,
        mqtt_username=settings.mqtt_username,
        mqtt_password=settings.mqtt_password,
        mqtt_prefix=settings.mqtt_prefix,
        mqtt_tls=settings.mqtt_tls,
        mqtt_transport=settings.mqtt_transport.value,
        mqtt_ws_path=settings.mqtt_ws_path,
        database_url=settings.effective_database_url,
        pipeline_config=PipelineConfig.from_settings(settings),
        metrics_port=settings.collector_metrics_port,
        persist_workers=settings.collector_persist_workers,
    )


@cli.command("init-db")
def init_db() -> None:
    """Create the database tables."""
    from meshtastic_hub.common.database import DatabaseManager

    settings = get_collector_settings()
    configure_logging(settings.log_level.value)
    db = DatabaseManager(settings.effective_database_url)
    try:
        db.create_tables()
    finally:
        db.dispose()
    click.echo(f"Initialized database at {settings.effective_database_url}")


if __name__ == "__main__":
    cli()
