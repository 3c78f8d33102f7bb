"""Renderer interface consumed by the monitors, plus a console implementation."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from rich.console import Console
from rich.table import Table

from .classifier import ClassifiedAlert
from .discussions import DiscussionRecord
from .reconciler import count_by_kind

TAG_STYLES = {3: "bold white on red", 2: "bold red", 1: "yellow", 0: "dim"}


class Renderer(Protocol):
    def render(self, alerts: Sequence[ClassifiedAlert]) -> None: ...

    def render_warning_polygon(
        self, alert_id: str, geometry: dict[str, Any], style: dict[str, Any]
    ) -> None: ...

    def remove_warning_polygon(self, alert_id: str) -> None: ...

    def play_notification(self, kind: str, alert: ClassifiedAlert) -> None: ...

    def render_outlook(self, url: str) -> None: ...

    def render_discussions(self, records: Sequence[DiscussionRecord]) -> None: ...

    def render_error(self, feed: str, message: str) -> None: ...


class ConsoleRenderer:
    """Print the alert feed and discussions as rich tables."""

    def __init__(self, console: Console | None = None, show_polygons: bool = False):
        self.console = console or Console()
        self.show_polygons = show_polygons
        self.polygons: dict[str, dict[str, Any]] = {}

    def render(self, alerts: Sequence[ClassifiedAlert]) -> None:
        counts = count_by_kind(alerts)
        self.console.print(
            "  ".join(f"[bold]{value}[/bold] {label}" for label, value in counts.items())
        )
        if not alerts:
            self.console.print("[dim]No active alerts match your filters.[/dim]")
            return

        table = Table(title="Active Alerts")
        table.add_column("Priority", justify="right")
        table.add_column("Event")
        table.add_column("Threat")
        table.add_column("Area")
        table.add_column("Expires")
        for alert in alerts:
            tag = alert.damage_threat_tag or ""
            if tag:
                style = TAG_STYLES.get(alert.damage_threat_tier or 0, "dim")
                tag = f"[{style}]{tag}[/]"
            table.add_row(
                f"{alert.priority:.1f}",
                alert.event,
                tag,
                alert.area_desc,
                alert.expires,
            )
        self.console.print(table)

    def render_warning_polygon(
        self, alert_id: str, geometry: dict[str, Any], style: dict[str, Any]
    ) -> None:
        self.polygons[alert_id] = style
        if self.show_polygons:
            self.console.print(
                f"[{style.get('color', 'white')}]{style.get('layer')}[/] polygon "
                f"{alert_id} ({geometry.get('type')})"
            )

    def remove_warning_polygon(self, alert_id: str) -> None:
        self.polygons.pop(alert_id, None)

    def play_notification(self, kind: str, alert: ClassifiedAlert) -> None:
        self.console.bell()
        self.console.print(
            f"[bold red]NEW[/bold red] {alert.event} ({kind}) - Counties: {alert.area_desc}"
        )

    def render_outlook(self, url: str) -> None:
        self.console.print(f"Outlook image: [cyan]{url}[/cyan]")

    def render_discussions(self, records: Sequence[DiscussionRecord]) -> None:
        if not records:
            self.console.print("[dim]No active mesoscale discussions.[/dim]")
            return
        table = Table(title="Mesoscale Discussions")
        table.add_column("MD #")
        table.add_column("Title")
        table.add_column("Issued")
        table.add_column("Link")
        for record in records:
            issued = record.issued_at.isoformat() if record.issued_at else "unknown"
            table.add_row(record.number, record.title, issued, record.link)
        self.console.print(table)

    def render_error(self, feed: str, message: str) -> None:
        self.console.print(f"[bold red]{message}[/bold red]")
