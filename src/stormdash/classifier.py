"""Rule-based classification and ranking of NWS alerts.

Every in-scope alert is matched to one of a fixed, ranked list of convective
event kinds. The description is then scanned for damage-threat wording using
per-family lookup tables. Each table entry maps a trigger phrase to a tag and a
tier, and the tier pulls the alert's priority below its base rank by at most 0.3.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .alerts import MalformedAlert, RawAlertPayload, parse_alert_payload

LOGGER = logging.getLogger(__name__)


class Category(str, Enum):
    WARNING = "warning"
    WATCH = "watch"
    ADVISORY = "advisory"
    OTHER = "other"


class EventKind(str, Enum):
    TORNADO_WARNING = "tornado warning"
    SEVERE_THUNDERSTORM_WARNING = "severe thunderstorm warning"
    FLASH_FLOOD_WARNING = "flash flood warning"
    TORNADO_WATCH = "tornado watch"
    SEVERE_THUNDERSTORM_WATCH = "severe thunderstorm watch"
    FLASH_FLOOD_WATCH = "flash flood watch"

    @property
    def base_rank(self) -> int:
        return RANKED_EVENT_KINDS.index(self)

    @property
    def family(self) -> str:
        if "tornado" in self.value:
            return "tornado"
        if "thunderstorm" in self.value:
            return "thunderstorm"
        return "flash_flood"

    @property
    def is_watch(self) -> bool:
        return self.value.endswith("watch")


# most severe first; the index is the base priority
RANKED_EVENT_KINDS: tuple[EventKind, ...] = tuple(EventKind)

TIER_OFFSETS: dict[int, float] = {0: 0.0, 1: 0.1, 2: 0.2, 3: 0.3}


class DamageThreatRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    trigger: str
    tag: str
    tier: int = Field(ge=0, le=3)

    def matches(self, description_lower: str) -> bool:
        return self.trigger.lower() in description_lower


class DamageThreatRules(BaseModel):
    """Ordered trigger tables keyed by event family."""

    model_config = ConfigDict(frozen=True)

    tornado: tuple[DamageThreatRule, ...] = ()
    thunderstorm: tuple[DamageThreatRule, ...] = ()
    flash_flood: tuple[DamageThreatRule, ...] = ()

    def for_family(self, family: str) -> tuple[DamageThreatRule, ...]:
        return getattr(self, family, ())


def _rules(*entries: tuple[str, str, int]) -> tuple[DamageThreatRule, ...]:
    return tuple(
        DamageThreatRule(trigger=trigger, tag=tag, tier=tier)
        for trigger, tag, tier in entries
    )


DEFAULT_RULES = DamageThreatRules(
    tornado=_rules(
        ("tornado emergency", "TORNADO EMERGENCY", 3),
        ("catastrophic", "CATASTROPHIC DAMAGE THREAT", 3),
        ("considerable", "CONSIDERABLE DAMAGE THREAT", 2),
        ("radar indicated", "RADAR INDICATED", 0),
        ("observed", "OBSERVED", 1),
        ("confirmed", "OBSERVED", 1),
    ),
    thunderstorm=_rules(
        ("destructive", "DESTRUCTIVE DAMAGE THREAT", 3),
        ("considerable", "CONSIDERABLE DAMAGE THREAT", 2),
        ("significant", "SIGNIFICANT DAMAGE THREAT", 0),
        ("baseline", "BASE DAMAGE THREAT", 0),
        ("observed", "OBSERVED", 1),
    ),
    flash_flood=_rules(
        ("flash flood emergency", "FLASH FLOOD EMERGENCY", 3),
        ("catastrophic", "CATASTROPHIC FLOOD", 3),
        ("considerable", "CONSIDERABLE FLOOD THREAT", 2),
        ("observed", "OBSERVED", 1),
    ),
)


def load_damage_threat_rules(path: Path) -> DamageThreatRules:
    """Load trigger tables from JSON, keeping defaults for omitted families."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, Mapping):
        raise ValueError(f"{path} must contain a JSON object keyed by family")
    unknown = set(data) - set(DamageThreatRules.model_fields)
    if unknown:
        raise ValueError(f"Unknown event families in {path}: {sorted(unknown)}")
    merged = DEFAULT_RULES.model_dump()
    merged.update(data)
    return DamageThreatRules.model_validate(merged)


@dataclass(frozen=True, slots=True)
class DamageThreat:
    tag: str
    tier: int

    @property
    def offset(self) -> float:
        return TIER_OFFSETS[self.tier]


@dataclass(frozen=True, slots=True)
class ClassifiedAlert:
    id: str
    event: str
    category: Category
    event_kind: EventKind
    damage_threat_tag: str | None
    damage_threat_tier: int | None
    priority: float
    notification_kind: str
    headline: str = ""
    description: str = ""
    instruction: str | None = None
    severity: str = "Unknown"
    urgency: str = "Unknown"
    area_desc: str = ""
    effective: str = ""
    expires: str = ""
    geometry: dict[str, Any] | None = None
    feed_index: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "event": self.event,
            "category": self.category.value,
            "event_kind": self.event_kind.value,
            "damage_threat_tag": self.damage_threat_tag,
            "damage_threat_tier": self.damage_threat_tier,
            "priority": self.priority,
            "notification_kind": self.notification_kind,
            "headline": self.headline,
            "severity": self.severity,
            "urgency": self.urgency,
            "area_desc": self.area_desc,
            "effective": self.effective,
            "expires": self.expires,
            "has_geometry": self.geometry is not None,
        }


def categorize(event: str) -> Category:
    event_lower = event.lower()
    if "warning" in event_lower:
        return Category.WARNING
    if "watch" in event_lower:
        return Category.WATCH
    if "advisory" in event_lower:
        return Category.ADVISORY
    return Category.OTHER


def match_event_kind(event: str) -> EventKind | None:
    event_lower = event.lower()
    for kind in RANKED_EVENT_KINDS:
        if kind.value in event_lower:
            return kind
    return None


def find_damage_threat(
    kind: EventKind,
    description: str | None,
    rules: DamageThreatRules = DEFAULT_RULES,
) -> DamageThreat | None:
    if not description:
        return None
    description_lower = description.lower()
    for rule in rules.for_family(kind.family):
        if rule.matches(description_lower):
            return DamageThreat(tag=rule.tag, tier=rule.tier)
    return None


def notification_kind(kind: EventKind, threat: DamageThreat | None) -> str:
    if kind.is_watch:
        return "watch"
    if kind is EventKind.TORNADO_WARNING:
        if threat is not None and threat.tier == 3:
            return "tornado-emergency"
        return "tornado"
    if kind is EventKind.SEVERE_THUNDERSTORM_WARNING:
        return "severe-thunderstorm"
    return "flash-flood"


def classify_payload(
    payload: RawAlertPayload,
    rules: DamageThreatRules = DEFAULT_RULES,
    feed_index: int = 0,
) -> ClassifiedAlert | None:
    kind = match_event_kind(payload.event)
    if kind is None:
        return None
    threat = find_damage_threat(kind, payload.description, rules)
    priority = float(kind.base_rank)
    if threat is not None:
        # round away float noise so equal tiers compare equal
        priority = round(priority - threat.offset, 1)
    return ClassifiedAlert(
        id=payload.id,
        event=payload.event,
        category=categorize(payload.event),
        event_kind=kind,
        damage_threat_tag=threat.tag if threat else None,
        damage_threat_tier=threat.tier if threat else None,
        priority=priority,
        notification_kind=notification_kind(kind, threat),
        headline=payload.headline,
        description=payload.description,
        instruction=payload.instruction,
        severity=payload.severity,
        urgency=payload.urgency,
        area_desc=payload.area_desc,
        effective=payload.effective,
        expires=payload.expires,
        geometry=payload.geometry,
        feed_index=feed_index,
    )


def classify(
    feature: Mapping[str, Any],
    rules: DamageThreatRules = DEFAULT_RULES,
    feed_index: int = 0,
) -> ClassifiedAlert | None:
    """Classify one raw feed feature; ``None`` means the alert is excluded."""
    try:
        payload = parse_alert_payload(feature)
    except MalformedAlert as exc:
        LOGGER.debug("Excluding malformed alert at index %s: %s", feed_index, exc)
        return None
    return classify_payload(payload, rules, feed_index)


def classify_all(
    features: Sequence[Mapping[str, Any]],
    rules: DamageThreatRules = DEFAULT_RULES,
) -> list[ClassifiedAlert]:
    results = []
    for index, feature in enumerate(features):
        alert = classify(feature, rules, feed_index=index)
        if alert is not None:
            results.append(alert)
    return results
