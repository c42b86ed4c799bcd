#!/usr/bin/env python3
"""
run_gateway.py - CLI entrypoint for the RELAYGATE HTTP gateway.

Usage:
    python run_gateway.py
    python run_gateway.py --config config/gateway.yaml --port 8080
"""

import sys

import click
import uvicorn

from api.app import create_app
from config.settings import load_settings
from core.exceptions import ConfigError
from core.logging import get_logger, set_global_context, setup_logging

logger = get_logger("relaygate.server")

VERSION = "0.1.0"


@click.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Gateway YAML config (default: config/gateway.yaml)",
)
@click.option(
    "--host",
    "-h",
    default="0.0.0.0",
    help="Bind address",
)
@click.option(
    "--port",
    "-p",
    default=3000,
    type=int,
    help="Bind port",
)
@click.option(
    "--log-level",
    "-l",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON log format",
)
def main(
    config_path: str | None,
    host: str,
    port: int,
    log_level: str,
    json_logs: bool,
) -> None:
    """
    RELAYGATE gateway.

    Serves the unified blockchain API in front of the configured nodes.
    """
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(
        service="relaygate",
        version=VERSION,
    )

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}", extra={"context": e.to_dict()})
        sys.exit(2)

    logger.info(
        "Starting RELAYGATE",
        extra={
            "context": {
                "host": host,
                "port": port,
                "nodes": len(settings.nodes),
                "cache_backend": settings.cache.backend.value,
                "network_version": settings.network_version,
            }
        },
    )

    # log_config=None keeps our handlers instead of uvicorn's defaults
    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_config=None,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
