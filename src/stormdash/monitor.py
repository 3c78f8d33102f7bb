"""Polling monitors that own carried-forward state and drive the renderer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection
from datetime import datetime, timezone
from pathlib import Path

from .classifier import DEFAULT_RULES, DamageThreatRules, load_damage_threat_rules
from .discussions import DiscussionRecord, fetch_discussions
from .fetcher import FeedError, FeedFetcher
from .outlook import OutlookSelection, cache_busted, normalize_selection, resolve_image_url
from .reconciler import ReconcileResult, filter_by_category, polygon_style, reconcile
from .render import Renderer
from .reporting import PollReporter
from .scheduler import PollingLoop
from .settings import Settings
from .state import DashboardStateStore

LOGGER = logging.getLogger(__name__)

ERROR_MESSAGE = "Error loading {what}. Will retry."


class _Monitor:
    feed = "feed"

    def __init__(
        self,
        store: DashboardStateStore,
        renderer: Renderer,
        metrics_path: Path | None = None,
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.metrics_path = metrics_path
        self.loop: PollingLoop | None = None
        self.last_report: PollReporter | None = None

    def attach(self, loop: PollingLoop) -> None:
        self.loop = loop

    @property
    def torn_down(self) -> bool:
        return self.loop is not None and not self.loop.active

    def _start_report(self) -> PollReporter:
        reporter = PollReporter(feed=self.feed)
        reporter.start_run()
        return reporter

    def _finish_report(self, reporter: PollReporter) -> None:
        reporter.finish_run()
        self.last_report = reporter
        if self.metrics_path is not None:
            reporter.emit_metrics(self.metrics_path)


class AlertMonitor(_Monitor):
    """Fetch active alerts, reconcile them and notify on newly issued ones."""

    feed = "alerts"

    def __init__(
        self,
        fetcher: FeedFetcher,
        url: str,
        store: DashboardStateStore,
        renderer: Renderer,
        rules: DamageThreatRules = DEFAULT_RULES,
        categories: Collection[str] = ("warning", "watch", "advisory"),
        metrics_path: Path | None = None,
    ) -> None:
        super().__init__(store, renderer, metrics_path)
        self.fetcher = fetcher
        self.url = url
        self.rules = rules
        self.categories = set(categories)
        # cleared after the first applied reconciliation
        self.first_load = True
        self._drawn: set[str] = set()

    async def poll(self) -> ReconcileResult | None:
        reporter = self._start_report()
        try:
            features = await self.fetcher.get_features(self.url)
        except FeedError as exc:
            LOGGER.warning("Alert poll failed: %s", exc)
            reporter.record_error(exc)
            self._finish_report(reporter)
            if not self.torn_down:
                message = ERROR_MESSAGE.format(what="alert data")
                self.store.update(alert_error=message)
                self.renderer.render_error(self.feed, message)
            return None

        if self.torn_down:
            LOGGER.info("Discarding alert poll result; loop already stopped")
            return None

        reporter.record_fetch(len(features))
        previous_ids = self.store.current.alert_ids
        result = reconcile(
            features, previous_ids, first_load=self.first_load, rules=self.rules
        )
        self.first_load = False
        self.store.update(
            alerts=tuple(result.alerts),
            alert_ids=result.ids,
            alerts_updated_at=datetime.now(timezone.utc),
            alert_error=None,
        )
        reporter.record_reconcile(result)
        self._finish_report(reporter)

        self.renderer.render(filter_by_category(result.alerts, self.categories))
        self._update_polygons(result)
        for alert in result.newly_appeared:
            LOGGER.info(
                "New alert %s (%s, priority=%s)", alert.id, alert.event, alert.priority
            )
            self.renderer.play_notification(alert.notification_kind, alert)
        return result

    def set_categories(self, categories: Collection[str]) -> None:
        self.categories = set(categories)
        alerts = self.store.current.alerts
        self.renderer.render(filter_by_category(alerts, self.categories))

    def _update_polygons(self, result: ReconcileResult) -> None:
        with_geometry = {alert.id: alert for alert in result.alerts if alert.geometry}
        for alert_id in sorted(self._drawn - set(with_geometry)):
            self.renderer.remove_warning_polygon(alert_id)
        for alert_id, alert in with_geometry.items():
            self.renderer.render_warning_polygon(
                alert_id, alert.geometry, polygon_style(alert)
            )
        self._drawn = set(with_geometry)


class OutlookMonitor(_Monitor):
    """Refresh the cache-busted outlook image URL for the current selection."""

    feed = "outlook"

    def __init__(
        self,
        base_url: str,
        store: DashboardStateStore,
        renderer: Renderer,
        day: str = "1",
        product_type: str = "categorical",
        metrics_path: Path | None = None,
    ) -> None:
        super().__init__(store, renderer, metrics_path)
        self.base_url = base_url
        self.selection: OutlookSelection = normalize_selection(day, product_type)

    def select(self, day: str, product_type: str) -> str:
        self.selection = normalize_selection(day, product_type)
        return self.refresh()

    def refresh(self) -> str:
        reporter = self._start_report()
        url = cache_busted(
            resolve_image_url(
                self.selection.day, self.selection.product_type, self.base_url
            )
        )
        self.store.update(outlook_url=url, outlook_error=None)
        reporter.record_outlook(url)
        self._finish_report(reporter)
        self.renderer.render_outlook(url)
        return url

    async def poll(self) -> str | None:
        if self.torn_down:
            return None
        return self.refresh()


class DiscussionMonitor(_Monitor):
    """Keep the mesoscale discussion list current."""

    feed = "discussions"

    def __init__(
        self,
        fetcher: FeedFetcher,
        base_url: str,
        store: DashboardStateStore,
        renderer: Renderer,
        metrics_path: Path | None = None,
    ) -> None:
        super().__init__(store, renderer, metrics_path)
        self.fetcher = fetcher
        self.base_url = base_url

    async def poll(self) -> list[DiscussionRecord] | None:
        reporter = self._start_report()
        try:
            records = await fetch_discussions(self.fetcher, self.base_url)
        except FeedError as exc:
            LOGGER.warning("Discussion poll failed: %s", exc)
            reporter.record_error(exc)
            self._finish_report(reporter)
            if not self.torn_down:
                message = ERROR_MESSAGE.format(what="mesoscale discussions")
                self.store.update(discussion_error=message)
                self.renderer.render_error(self.feed, message)
            return None

        if self.torn_down:
            LOGGER.info("Discarding discussion poll result; loop already stopped")
            return None

        self.store.update(
            discussions=tuple(records),
            discussions_updated_at=datetime.now(timezone.utc),
            discussion_error=None,
        )
        reporter.record_discussions([record.number for record in records])
        self._finish_report(reporter)
        self.renderer.render_discussions(records)
        return records


class Dashboard:
    """Wire the three monitors to their polling loops."""

    def __init__(
        self,
        settings: Settings,
        renderer: Renderer,
        fetcher: FeedFetcher | None = None,
        store: DashboardStateStore | None = None,
    ) -> None:
        self.settings = settings
        self.store = store or DashboardStateStore()
        self.fetcher = fetcher or FeedFetcher(
            user_agent=settings.user_agent,
            timeout_seconds=settings.fetch_timeout_seconds,
        )
        rules = DEFAULT_RULES
        if settings.damage_threat_rules_path:
            rules = load_damage_threat_rules(Path(settings.damage_threat_rules_path))
        metrics_path = Path(settings.metrics_path)

        self.alerts = AlertMonitor(
            self.fetcher,
            settings.alerts_url,
            self.store,
            renderer,
            rules=rules,
            categories=settings.alert_categories,
            metrics_path=metrics_path,
        )
        self.outlook = OutlookMonitor(
            settings.spc_base_url,
            self.store,
            renderer,
            day=settings.outlook_day,
            product_type=settings.outlook_product_type,
            metrics_path=metrics_path,
        )
        self.discussions = DiscussionMonitor(
            self.fetcher,
            settings.spc_base_url,
            self.store,
            renderer,
            metrics_path=metrics_path,
        )
        self.loops = [
            PollingLoop("alerts", self.alerts.poll, settings.alerts_poll_seconds),
            PollingLoop("outlook", self.outlook.poll, settings.outlook_poll_seconds),
            PollingLoop(
                "discussions",
                self.discussions.poll,
                settings.discussion_poll_seconds,
            ),
        ]
        for monitor, loop in zip((self.alerts, self.outlook, self.discussions), self.loops):
            monitor.attach(loop)

    async def run_once(self) -> None:
        await asyncio.gather(*(loop.run_once() for loop in self.loops))

    async def run_forever(self) -> None:
        tasks = [loop.start() for loop in self.loops]
        try:
            await asyncio.gather(*tasks)
        finally:
            await self.stop()

    async def stop(self) -> None:
        for loop in self.loops:
            await loop.stop()
