"""Poll cycle reporting helpers."""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pyproj import Geod
from shapely.errors import ShapelyError
from shapely.geometry import shape

from .classifier import ClassifiedAlert
from .fetcher import FeedError
from .reconciler import ReconcileResult, count_by_kind

GEOD = Geod(ellps="WGS84")


@dataclass
class PollReporter:
    feed: str
    run_id: str | None = None
    started_at: float = field(default=0.0, init=False)
    finished_at: float = field(default=0.0, init=False)
    status: str = field(default="ok", init=False)
    steps: dict[str, Any] = field(default_factory=dict, init=False)

    def start_run(self) -> None:
        self.run_id = self.run_id or uuid.uuid4().hex
        self.started_at = time.time()

    def record_fetch(self, record_count: int) -> None:
        self.steps["fetch"] = {"records": record_count}

    def record_reconcile(self, result: ReconcileResult) -> None:
        self.steps["reconcile"] = {
            "kept": len(result.alerts),
            "new": len(result.newly_appeared),
            "new_ids": [alert.id for alert in result.newly_appeared],
            "counts": count_by_kind(result.alerts),
            "warned_area_km2": warned_area_km2(result.alerts),
        }

    def record_discussions(self, numbers: list[str]) -> None:
        self.steps["discussions"] = {"count": len(numbers), "numbers": numbers}

    def record_outlook(self, url: str) -> None:
        self.steps["outlook"] = {"url": url}

    def record_error(self, error: FeedError) -> None:
        self.status = "failed"
        self.steps["error"] = {
            "kind": error.kind,
            "url": error.url,
            "detail": error.detail,
        }

    def finish_run(self) -> None:
        self.finished_at = time.time()

    def summary(self) -> dict[str, Any]:
        if self.finished_at and self.started_at:
            duration = self.finished_at - self.started_at
        else:
            duration = 0.0
        return {
            "run_id": self.run_id,
            "feed": self.feed,
            "status": self.status,
            "duration_seconds": round(duration, 2),
            "steps": self.steps,
        }

    def emit_metrics(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fp:
            fp.write(json.dumps(self.summary()) + "\n")

    def persist(self, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{self.feed}-{self.run_id}.json"
        path.write_text(json.dumps(self.summary(), indent=2), encoding="utf-8")
        return path


def warned_area_km2(alerts: list[ClassifiedAlert]) -> float:
    """Total geodesic area of warning polygons; watches are not counted."""
    total = 0.0
    for alert in alerts:
        if alert.event_kind.is_watch or not alert.geometry:
            continue
        area = _area_km2(alert.geometry)
        if area is not None:
            total += area
    return round(total, 2)


def _area_km2(geometry: dict[str, Any]) -> float | None:
    if not geometry:
        return None
    try:
        geom = shape(geometry)
    except (ShapelyError, KeyError, TypeError, ValueError):
        return None
    area, _ = GEOD.geometry_area_perimeter(geom)
    return round(abs(area) / 1_000_000, 2)
