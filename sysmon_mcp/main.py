"""Entry point for the system resource monitor MCP server."""

from __future__ import annotations

from typing import Optional

import click
from fastmcp import FastMCP

from .config import Settings
from .log import get_logger, setup_logging
from .tools import create_monitor_tools, create_snapshot

SERVER_NAME = "SystemResourceMonitor"
SNAPSHOT_URI = "system://resources"


def create_app(settings: Optional[Settings] = None) -> FastMCP:
    """Instantiate the MCP server and register the metric tools and snapshot."""
    settings = settings or Settings()
    mcp = FastMCP(SERVER_NAME)
    for tool in create_monitor_tools(settings):
        mcp.tool(tool)
    mcp.resource(
        SNAPSHOT_URI,
        name="system_resources",
        mime_type="text/plain",
    )(create_snapshot(settings))
    return mcp


@click.command()
@click.option("--log-level", default=None, help="Logging level (default: SYSMON_LOG_LEVEL or INFO).")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Also append logs to this file.")
@click.option("--timeout", default=None, type=float, help="Per-source speed test timeout in seconds.")
@click.option("--env-file", default=None, type=click.Path(exists=True, dir_okay=False), help="Load settings from this .env file.")
def main(log_level, log_file, timeout, env_file):
    """Run the server over stdio."""
    settings = Settings.from_env(env_file=env_file).with_overrides(
        log_level=log_level.upper() if log_level else None,
        log_file=log_file,
        speedtest_timeout=timeout,
    )
    setup_logging(settings.log_level, settings.log_file)
    logger = get_logger(__name__)
    logger.info("System Resource Monitor Server is running...")
    create_app(settings).run("stdio")


if __name__ == "__main__":
    main()
