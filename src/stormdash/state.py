"""In-memory dashboard state, replaced atomically on every applied poll."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from threading import Lock
from typing import Any

from .classifier import ClassifiedAlert
from .discussions import DiscussionRecord


@dataclass(frozen=True)
class DashboardState:
    """One consistent view of everything the renderer shows."""

    alerts: tuple[ClassifiedAlert, ...] = ()
    alert_ids: frozenset[str] = field(default_factory=frozenset)
    alerts_updated_at: datetime | None = None
    alert_error: str | None = None

    outlook_url: str | None = None
    outlook_error: str | None = None

    discussions: tuple[DiscussionRecord, ...] = ()
    discussions_updated_at: datetime | None = None
    discussion_error: str | None = None


class DashboardStateStore:
    """Holds the current :class:`DashboardState`; readers never see a partial update."""

    def __init__(self, initial: DashboardState | None = None):
        self._lock = Lock()
        self._state = initial or DashboardState()

    @property
    def current(self) -> DashboardState:
        return self._state

    def update(self, **changes: Any) -> DashboardState:
        with self._lock:
            self._state = replace(self._state, **changes)
            return self._state
