import json
from pathlib import Path

import pytest

from stormdash.classifier import (
    DEFAULT_RULES,
    RANKED_EVENT_KINDS,
    Category,
    EventKind,
    categorize,
    classify,
    load_damage_threat_rules,
)


def _feature(event, description=None, alert_id="a-1", geometry=None):
    properties = {"id": alert_id, "event": event}
    if description is not None:
        properties["description"] = description
    return {"properties": properties, "geometry": geometry}


def test_tornado_emergency_is_most_severe() -> None:
    alert = classify(
        _feature(
            "Tornado Warning",
            "...TORNADO EMERGENCY FOR DOWNTOWN MOORE...\nThis is a PARTICULARLY DANGEROUS SITUATION.",
        )
    )

    assert alert.event_kind is EventKind.TORNADO_WARNING
    assert alert.damage_threat_tag == "TORNADO EMERGENCY"
    assert alert.priority == pytest.approx(-0.3)
    assert alert.notification_kind == "tornado-emergency"
    assert alert.category is Category.WARNING


def test_watch_without_description_keeps_base_rank() -> None:
    alert = classify(_feature("Severe Thunderstorm Watch"))

    assert alert.event_kind is EventKind.SEVERE_THUNDERSTORM_WATCH
    assert alert.damage_threat_tag is None
    assert alert.priority == 4
    assert alert.notification_kind == "watch"
    assert alert.category is Category.WATCH


@pytest.mark.parametrize(
    "event",
    ["Flood Warning", "Special Weather Statement", "Winter Storm Warning", "Tornado"],
)
def test_events_outside_the_ranked_list_are_excluded(event) -> None:
    assert classify(_feature(event, "considerable damage")) is None


def test_event_match_is_a_case_insensitive_substring() -> None:
    alert = classify(_feature("EXTREME severe THUNDERSTORM warning (test)"))

    assert alert.event_kind is EventKind.SEVERE_THUNDERSTORM_WARNING
    assert alert.priority == 1


@pytest.mark.parametrize(
    "event, description, tag, priority",
    [
        ("Tornado Warning", "TORNADO DAMAGE THREAT...CATASTROPHIC", "CATASTROPHIC DAMAGE THREAT", -0.3),
        ("Tornado Warning", "TORNADO DAMAGE THREAT...CONSIDERABLE", "CONSIDERABLE DAMAGE THREAT", -0.2),
        ("Tornado Warning", "TORNADO...OBSERVED", "OBSERVED", -0.1),
        ("Tornado Warning", "A confirmed tornado was located", "OBSERVED", -0.1),
        ("Tornado Warning", "TORNADO...RADAR INDICATED", "RADAR INDICATED", 0.0),
        ("Severe Thunderstorm Warning", "THUNDERSTORM DAMAGE THREAT...DESTRUCTIVE", "DESTRUCTIVE DAMAGE THREAT", 0.7),
        ("Severe Thunderstorm Warning", "THUNDERSTORM DAMAGE THREAT...CONSIDERABLE", "CONSIDERABLE DAMAGE THREAT", 0.8),
        ("Severe Thunderstorm Warning", "THUNDERSTORM DAMAGE THREAT...SIGNIFICANT", "SIGNIFICANT DAMAGE THREAT", 1.0),
        ("Severe Thunderstorm Warning", "baseline damage threat", "BASE DAMAGE THREAT", 1.0),
        ("Flash Flood Warning", "This is a FLASH FLOOD EMERGENCY for Houston", "FLASH FLOOD EMERGENCY", 1.7),
        ("Flash Flood Warning", "FLASH FLOOD DAMAGE THREAT...CONSIDERABLE", "CONSIDERABLE FLOOD THREAT", 1.8),
        ("Flash Flood Warning", "Flooding is ongoing or expected to begin shortly.", None, 2.0),
    ],
)
def test_damage_threat_tags_by_family(event, description, tag, priority) -> None:
    alert = classify(_feature(event, description))

    assert alert.damage_threat_tag == tag
    assert alert.priority == pytest.approx(priority)


def test_first_matching_trigger_wins() -> None:
    alert = classify(
        _feature("Tornado Warning", "TORNADO EMERGENCY. Tornado OBSERVED. CONSIDERABLE")
    )

    assert alert.damage_threat_tag == "TORNADO EMERGENCY"


def test_radar_indicated_outranks_observed_in_table_order() -> None:
    alert = classify(
        _feature("Tornado Warning", "TORNADO...RADAR INDICATED. Hail observed at 1 inch.")
    )

    assert alert.damage_threat_tag == "RADAR INDICATED"
    assert alert.damage_threat_tier == 0
    assert alert.priority == 0


def test_tag_vocabulary_is_family_specific() -> None:
    # "destructive" only tags thunderstorms; "flash flood emergency" only flash floods
    tornado = classify(_feature("Tornado Warning", "destructive flash flood emergency"))
    storm = classify(_feature("Severe Thunderstorm Warning", "tornado emergency"))

    assert tornado.damage_threat_tag is None
    assert storm.damage_threat_tag is None


@pytest.mark.parametrize("kind", RANKED_EVENT_KINDS)
@pytest.mark.parametrize(
    "description",
    [None, "", "catastrophic", "considerable", "observed", "destructive", "flash flood emergency"],
)
def test_priority_stays_within_rank_band(kind, description) -> None:
    alert = classify(_feature(kind.value.title(), description))

    assert kind.base_rank - 0.3 <= alert.priority <= kind.base_rank


def test_malformed_payloads_are_excluded() -> None:
    assert classify({"geometry": None}) is None
    assert classify({"properties": {"id": "x"}}) is None


def test_categorize() -> None:
    assert categorize("Tornado Warning") is Category.WARNING
    assert categorize("Flash Flood Watch") is Category.WATCH
    assert categorize("Wind Advisory") is Category.ADVISORY
    assert categorize("Special Weather Statement") is Category.OTHER


def test_load_damage_threat_rules_overrides_one_family(tmp_path: Path) -> None:
    path = tmp_path / "rules.json"
    path.write_text(
        json.dumps(
            {"thunderstorm": [{"trigger": "baseline", "tag": "BASE DAMAGE THREAT", "tier": 0}]}
        )
    )

    rules = load_damage_threat_rules(path)
    storm = classify(_feature("Severe Thunderstorm Warning", "BASELINE"), rules)
    tornado = classify(_feature("Tornado Warning", "tornado emergency"), rules)

    assert storm.damage_threat_tag == "BASE DAMAGE THREAT"
    assert storm.priority == 1
    assert rules.tornado == DEFAULT_RULES.tornado
    assert tornado.priority == pytest.approx(-0.3)


def test_load_damage_threat_rules_rejects_unknown_family(tmp_path: Path) -> None:
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"hurricane": []}))

    with pytest.raises(ValueError):
        load_damage_threat_rules(path)


def test_load_damage_threat_rules_rejects_bad_tier(tmp_path: Path) -> None:
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"tornado": [{"trigger": "x", "tag": "X", "tier": 5}]}))

    with pytest.raises(ValueError):
        load_damage_threat_rules(path)
