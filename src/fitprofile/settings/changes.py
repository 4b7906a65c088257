"""Detect what the user changed on the settings form.

Profile changes are partial: only fields that differ are written. Stats
changes are all-or-nothing: if any of height, weight, age or gender differs,
the full set of four values is returned, because a stats write always creates
a new entry rather than patching the previous one.
"""

import json
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from fitprofile.schemas.profile import GENDER_OPTIONS, Equipment, ProfileRead, ProfileUpdate
from fitprofile.schemas.settings import SettingsForm, SettingsSnapshot
from fitprofile.schemas.stats import PhysicalStatsRead, StatsUpdate

logger = logging.getLogger(__name__)


def serialize_equipment(items: Iterable[Equipment | str]) -> str:
    """Encode an equipment list in its stored form, e.g. '["Dumbbells","Barbell"]'."""
    values = [item.value if isinstance(item, Enum) else str(item) for item in items]
    return json.dumps(values, separators=(",", ":"))


def parse_equipment(raw: object) -> list[Equipment]:
    """Decode a stored equipment value. Never raises.

    Accepts the JSON string form or an already-decoded list. Malformed JSON
    and unknown entries are logged and dropped.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Could not parse available_equipment %r, using empty list", raw)
            return []
    if not isinstance(raw, list):
        logger.warning("available_equipment is not a list (%r), using empty list", raw)
        return []

    items: list[Equipment] = []
    for value in raw:
        try:
            items.append(Equipment(value))
        except ValueError:
            logger.warning("Ignoring unknown equipment value %r", value)
    return items


@dataclass
class SettingsChanges:
    """Pending writes computed from one submit."""

    profile: ProfileUpdate
    stats: StatsUpdate | None = None

    @property
    def is_empty(self) -> bool:
        return self.profile.is_empty and self.stats is None


def diff_profile(form: SettingsForm, original: ProfileRead | None) -> ProfileUpdate:
    original_name = (original.name if original else None) or ""
    original_equipment = original.available_equipment if original else []

    changes: dict[str, object] = {}
    if form.name != original_name:
        changes["name"] = form.name
    if serialize_equipment(form.available_equipment) != serialize_equipment(original_equipment):
        changes["available_equipment"] = list(form.available_equipment)
    return ProfileUpdate(**changes)


def stored_number(value: float | int | None) -> float | int | None:
    """A stored height, weight or age, or None when it holds no usable value.

    Zero, negative and non-finite values count as missing.
    """
    if value is None or not math.isfinite(value) or value <= 0:
        return None
    return value


def stored_gender(value: str | None) -> str | None:
    """A stored gender, or None when it is not one of the form's options."""
    return value if value in GENDER_OPTIONS else None


def _decimal(value: object) -> float | None:
    if value is None or value == "":
        return None
    return float(value)  # type: ignore[arg-type]


def _integer(value: object) -> int | None:
    if value is None or value == "":
        return None
    return int(value)  # type: ignore[call-overload]


def _text(value: object) -> str | None:
    return str(value) if value else None


def diff_stats(form: SettingsForm, original: PhysicalStatsRead | None) -> StatsUpdate | None:
    """Return a full stats entry if any stats field changed, else None.

    Stored values go through the same normalization as the seeded form, so
    an untouched field is never reported as a change.
    """
    current = (
        _decimal(form.height_cm),
        _decimal(form.weight_kg),
        _integer(form.age),
        _text(form.gender),
    )
    if original is None:
        previous: tuple[object, ...] = (None, None, None, None)
    else:
        previous = (
            _decimal(stored_number(original.height_cm)),
            _decimal(stored_number(original.weight_kg)),
            _integer(stored_number(original.age)),
            stored_gender(original.gender),
        )

    if current == previous:
        return None

    height_cm, weight_kg, age, gender = current
    return StatsUpdate(height_cm=height_cm, weight_kg=weight_kg, age=age, gender=gender)


def detect_changes(form: SettingsForm, snapshot: SettingsSnapshot | None) -> SettingsChanges:
    profile = snapshot.profile if snapshot else None
    stats = snapshot.stats if snapshot else None
    return SettingsChanges(profile=diff_profile(form, profile), stats=diff_stats(form, stats))
