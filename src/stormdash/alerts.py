"""Alert ingestion and normalisation utilities."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError


class MalformedAlert(ValueError):
    """Raised when a feed entry cannot be read as an NWS alert."""


class RawAlertPayload(BaseModel):
    id: str
    event: str
    headline: str = ""
    description: str = ""
    instruction: str | None = None
    severity: str = "Unknown"
    urgency: str = "Unknown"
    area_desc: str = ""
    effective: str = ""
    expires: str = ""
    geometry: dict[str, Any] | None = None


def load_alert_features(path: Path) -> list[dict[str, Any]]:
    """Read the features of a saved NWS alerts response."""
    with path.open("r", encoding="utf-8") as fp:
        payload = json.load(fp)
    if isinstance(payload, Mapping):
        return list(payload.get("features") or [])
    return list(payload)


def parse_alert_payload(feature: Mapping[str, Any]) -> RawAlertPayload:
    if not isinstance(feature, Mapping):
        raise MalformedAlert("Alert feature must be a mapping")

    properties = feature.get("properties")
    if not isinstance(properties, Mapping):
        raise MalformedAlert("Alert feature has no properties")
    event = properties.get("event")
    if not isinstance(event, str) or not event.strip():
        raise MalformedAlert("Alert feature has no event name")

    alert_id = (
        properties.get("id")
        or feature.get("id")
        or properties.get("@id")
        or properties.get("identifier")
    )
    if not alert_id:
        raise MalformedAlert(f"{event} alert has no identifier")

    geometry = feature.get("geometry")
    try:
        return RawAlertPayload(
            id=str(alert_id),
            event=event.strip(),
            headline=_text(properties.get("headline")),
            description=_text(properties.get("description")),
            instruction=properties.get("instruction") or None,
            severity=_text(properties.get("severity")) or "Unknown",
            urgency=_text(properties.get("urgency")) or "Unknown",
            area_desc=_text(properties.get("areaDesc")),
            effective=_text(
                properties.get("effective")
                or properties.get("onset")
                or properties.get("sent")
            ),
            expires=_text(properties.get("expires") or properties.get("ends")),
            geometry=geometry if isinstance(geometry, Mapping) else None,
        )
    except ValidationError as exc:
        raise MalformedAlert(str(exc)) from exc


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
