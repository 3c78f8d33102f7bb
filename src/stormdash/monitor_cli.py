"""Command-line entry point for the long-running dashboard monitor."""

from __future__ import annotations

import asyncio
import logging

import click

from .logging_utils import configure_logging
from .monitor import Dashboard
from .render import ConsoleRenderer
from .settings import get_settings

LOGGER = logging.getLogger(__name__)


@click.command()
@click.option("--once", is_flag=True, help="Run a single tick of every loop then exit.")
@click.option(
    "--show-polygons", is_flag=True, help="Print warning polygon add events."
)
def main(once: bool, show_polygons: bool) -> None:
    """Poll alerts, outlooks and mesoscale discussions on fixed intervals."""
    configure_logging()
    settings = get_settings()
    dashboard = Dashboard(settings, ConsoleRenderer(show_polygons=show_polygons))

    async def runner() -> None:
        if once:
            await dashboard.run_once()
        else:
            await dashboard.run_forever()

    try:
        asyncio.run(runner())
    except KeyboardInterrupt:
        LOGGER.info("Interrupted; polling loops stopped")


if __name__ == "__main__":  # pragma: no cover
    main()
