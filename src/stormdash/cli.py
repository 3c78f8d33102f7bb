"""CLI entry point for a one-shot dashboard snapshot."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .alerts import load_alert_features
from .classifier import DEFAULT_RULES, load_damage_threat_rules
from .logging_utils import configure_logging
from .monitor import Dashboard
from .outlook import resolve_image_url
from .reconciler import count_by_kind, filter_by_category, reconcile
from .render import ConsoleRenderer
from .settings import get_settings

LOGGER = logging.getLogger(__name__)
CONSOLE = Console()


async def snapshot(
    report_dir: Path | None = None, categories: list[str] | None = None
) -> Dashboard:
    settings = get_settings()
    renderer = ConsoleRenderer(CONSOLE)
    dashboard = Dashboard(settings, renderer)
    if categories:
        dashboard.alerts.categories = set(categories)
    await dashboard.run_once()

    state = dashboard.store.current
    table = Table(title="Snapshot Summary")
    table.add_column("Feed")
    table.add_column("Value")
    table.add_row("alerts", str(len(state.alerts)))
    table.add_row("counts", json.dumps(count_by_kind(state.alerts)))
    table.add_row("outlook", state.outlook_url or "")
    table.add_row("discussions", ", ".join(r.number for r in state.discussions))
    for name, error in (
        ("alert error", state.alert_error),
        ("discussion error", state.discussion_error),
    ):
        if error:
            table.add_row(name, f"[red]{error}[/red]")
    CONSOLE.print(table)

    if report_dir is not None:
        for monitor in (dashboard.alerts, dashboard.outlook, dashboard.discussions):
            if monitor.last_report is not None:
                path = monitor.last_report.persist(report_dir)
                CONSOLE.print(f"Saved {monitor.feed} report to [cyan]{path}[/cyan]")
    return dashboard


def classify_file(alerts_file: Path, categories: list[str]) -> None:
    settings = get_settings()
    rules = DEFAULT_RULES
    if settings.damage_threat_rules_path:
        rules = load_damage_threat_rules(Path(settings.damage_threat_rules_path))
    features = load_alert_features(alerts_file)
    result = reconcile(features, (), first_load=True, rules=rules)
    CONSOLE.print(
        f"Classified [bold]{len(result.alerts)}[/bold] of {len(features)} alerts "
        f"from [cyan]{alerts_file}[/cyan]"
    )
    ConsoleRenderer(CONSOLE).render(filter_by_category(result.alerts, categories))


@click.command()
@click.option(
    "--alerts-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Classify a saved NWS alerts GeoJSON response instead of polling",
)
@click.option(
    "--category",
    "categories",
    multiple=True,
    type=click.Choice(["warning", "watch", "advisory", "other"], case_sensitive=False),
    help="Only show these alert categories (defaults to settings)",
)
@click.option(
    "--outlook-day",
    type=click.Choice(["1", "2", "3", "4-8"]),
    default=None,
    help="Print the outlook image URL for this day and exit",
)
@click.option(
    "--outlook-type",
    type=click.Choice(["categorical", "tornado", "wind", "hail"], case_sensitive=False),
    default="categorical",
    show_default=True,
)
@click.option(
    "--report-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for persisted poll summaries (defaults to settings.report_dir)",
)
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
def main(
    alerts_file: Path | None,
    categories: tuple[str, ...],
    outlook_day: str | None,
    outlook_type: str,
    report_dir: Path | None,
    verbose: bool,
) -> None:
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    settings = get_settings()

    if outlook_day is not None:
        CONSOLE.print(resolve_image_url(outlook_day, outlook_type, settings.spc_base_url))
        return

    if alerts_file is not None:
        classify_file(alerts_file, list(categories) or settings.alert_categories)
        return

    target_report_dir = report_dir or Path(settings.report_dir)
    asyncio.run(snapshot(report_dir=target_report_dir, categories=list(categories)))


if __name__ == "__main__":  # pragma: no cover
    main()
