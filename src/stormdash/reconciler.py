"""Turn a raw alert batch into the ranked active set and its delta."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .classifier import (
    DEFAULT_RULES,
    ClassifiedAlert,
    DamageThreatRules,
    EventKind,
    classify_all,
)

LOGGER = logging.getLogger(__name__)

COUNTER_LABELS: dict[EventKind, str] = {
    EventKind.TORNADO_WARNING: "TOR",
    EventKind.SEVERE_THUNDERSTORM_WARNING: "SVR",
    EventKind.FLASH_FLOOD_WARNING: "FFW",
    EventKind.TORNADO_WATCH: "TOR WTCH",
    EventKind.SEVERE_THUNDERSTORM_WATCH: "SVR WTCH",
    EventKind.FLASH_FLOOD_WATCH: "FFW WTCH",
}

POLYGON_COLOURS: dict[EventKind, str] = {
    EventKind.TORNADO_WARNING: "#FF0000",
    EventKind.SEVERE_THUNDERSTORM_WARNING: "#FFFF00",
    EventKind.FLASH_FLOOD_WARNING: "#00FF00",
}
DEFAULT_POLYGON_COLOUR = "#FF00FF"


@dataclass(frozen=True)
class ReconcileResult:
    alerts: list[ClassifiedAlert] = field(default_factory=list)
    newly_appeared: list[ClassifiedAlert] = field(default_factory=list)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(alert.id for alert in self.alerts)


def reconcile(
    raw_batch: Sequence[Mapping[str, Any]],
    previous_ids: Collection[str],
    *,
    first_load: bool,
    rules: DamageThreatRules = DEFAULT_RULES,
) -> ReconcileResult:
    """Classify, deduplicate and rank a batch of raw alert features.

    ``first_load`` is owned by the caller; while it is set, nothing counts as
    newly appeared so the initial load never produces a notification storm.
    """
    classified = classify_all(raw_batch, rules)
    survivors = _dedupe_last_wins(classified)
    survivors.sort(key=lambda alert: alert.priority)

    if first_load:
        newly_appeared: list[ClassifiedAlert] = []
    else:
        previous = set(previous_ids)
        newly_appeared = [alert for alert in survivors if alert.id not in previous]

    LOGGER.debug(
        "Reconciled batch; raw=%s kept=%s new=%s",
        len(raw_batch),
        len(survivors),
        len(newly_appeared),
    )
    return ReconcileResult(alerts=survivors, newly_appeared=newly_appeared)


def _dedupe_last_wins(alerts: Iterable[ClassifiedAlert]) -> list[ClassifiedAlert]:
    latest: dict[str, ClassifiedAlert] = {}
    for alert in alerts:
        latest[alert.id] = alert
    # a repeated id sits at the feed position of its last occurrence
    return sorted(latest.values(), key=lambda alert: alert.feed_index)


def filter_by_category(
    alerts: Iterable[ClassifiedAlert], categories: Collection[str]
) -> list[ClassifiedAlert]:
    wanted = {str(category).lower() for category in categories}
    return [alert for alert in alerts if alert.category.value in wanted]


def count_by_kind(alerts: Iterable[ClassifiedAlert]) -> dict[str, int]:
    counts = Counter(alert.event_kind for alert in alerts)
    return {label: counts.get(kind, 0) for kind, label in COUNTER_LABELS.items()}


def polygon_style(alert: ClassifiedAlert) -> dict[str, Any]:
    colour = POLYGON_COLOURS.get(alert.event_kind, DEFAULT_POLYGON_COLOUR)
    if alert.event_kind.is_watch:
        return {
            "layer": "watch",
            "color": colour,
            "weight": 1,
            "opacity": 0.6,
            "fillColor": colour,
            "fillOpacity": 0.05,
        }
    return {
        "layer": "warning",
        "color": colour,
        "weight": 2,
        "opacity": 0.8,
        "fillColor": colour,
        "fillOpacity": 0.2,
    }
