"""
Raw catalog record normalization.

Activity records arrive with inconsistent optional fields: `difficulty` vs
`difficultyLevel`, `cost` vs `costRange`, a boolean `indoor` instead of
`indoorOutdoor`, a single `location` string instead of a `locations` list, and
legacy difficulty names such as `intermediate`. Everything is folded into the
canonical `Activity` shape here, once, so scorers and filters never see aliases.
"""

from __future__ import annotations

from typing import Any, Mapping

from fearmatch.domain.models import (
    COST_RANGES,
    DIFFICULTY_LEVELS,
    ENVIRONMENTS,
    FEAR_CATEGORIES,
    TIME_COMMITMENTS,
    Activity,
    Location,
)

LEGACY_DIFFICULTY_ALIASES: dict[str, str] = {
    "intermediate": "moderate",
    "advanced": "challenging",
    "extreme": "difficult",
}

_TIME_ALIASES: dict[str, str] = {
    "1_3_hours": "1-3_hours",
    "1-3 hours": "1-3_hours",
    "under 1 hour": "under_1_hour",
}

_EXTRA_FIELDS: dict[str, tuple[str, ...]] = {
    "image_url": ("imageUrl", "image_url", "image"),
    "safety": ("safety",),
    "min_group_size": ("minGroupSize", "min_group_size"),
    "max_group_size": ("maxGroupSize", "max_group_size"),
    "minimum_age": ("minimumAge", "minimum_age"),
    "physical_demand": ("physicalDemand", "physical_demand"),
    "weather_dependent": ("weatherDependent", "weather_dependent"),
    "progression": ("progression",),
}


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


def normalize_difficulty(value: Any) -> str | None:
    """Map a raw difficulty value (including legacy names) onto the canonical scale."""
    text = _clean(value)
    if text is None:
        return None
    text = LEGACY_DIFFICULTY_ALIASES.get(text, text)
    return text if text in DIFFICULTY_LEVELS else None


def normalize_cost(value: Any) -> str | None:
    text = _clean(value)
    return text if text in COST_RANGES else None


def normalize_time_commitment(value: Any) -> str | None:
    text = _clean(value)
    if text is None:
        return None
    text = _TIME_ALIASES.get(text, text)
    return text if text in TIME_COMMITMENTS else None


def normalize_environment(raw: Mapping[str, Any]) -> str | None:
    value = _clean(_first(raw, "indoorOutdoor", "indoor_outdoor", "environment"))
    if value in ENVIRONMENTS:
        return value
    indoor = raw.get("indoor")
    if isinstance(indoor, bool):
        return "indoor" if indoor else "outdoor"
    return None


def normalize_fear_categories(value: Any) -> list[str]:
    """Lower-case, de-duplicate and drop unknown fear tags (order preserved)."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    out: list[str] = []
    for item in value:
        text = _clean(item)
        if text in FEAR_CATEGORIES and text not in out:
            out.append(text)
    return out


def normalize_location_record(raw: Mapping[str, Any]) -> Location:
    """Build a `Location` from a raw record (accepts nested `coordinates`)."""
    coords = raw.get("coordinates") if isinstance(raw.get("coordinates"), Mapping) else {}
    return Location(
        id=str(raw["id"]).strip(),
        name=str(_first(raw, "name", "id")).strip(),
        city=raw.get("city"),
        state=raw.get("state"),
        country=str(raw.get("country") or ""),
        latitude=_first(coords, "latitude", "lat") if coords else raw.get("latitude"),
        longitude=_first(coords, "longitude", "lon") if coords else raw.get("longitude"),
    )


def _resolve_locations(raw: Mapping[str, Any], locations_by_id: Mapping[str, Location]) -> list[Location]:
    value = raw.get("locations")
    if value is None:
        # The single `location` field is free text in older records; only ids resolve.
        single = raw.get("location")
        value = [single] if isinstance(single, str) else []
    if not isinstance(value, (list, tuple)):
        return []

    resolved: list[Location] = []
    seen: set[str] = set()
    for item in value:
        loc: Location | None = None
        if isinstance(item, Location):
            loc = item
        elif isinstance(item, str):
            loc = locations_by_id.get(item.strip())
        elif isinstance(item, Mapping) and item.get("id"):
            loc = locations_by_id.get(str(item["id"])) or normalize_location_record(item)
        if loc is not None and loc.id not in seen:
            resolved.append(loc)
            seen.add(loc.id)
    return resolved


def normalize_activity_record(
    raw: Mapping[str, Any], *, locations_by_id: Mapping[str, Location] | None = None
) -> Activity:
    """Convert one raw activity record into a validated `Activity`.

    Raises:
        ValueError / pydantic.ValidationError: if a required field is missing or
            cannot be mapped onto its enumerated domain.
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"activity record must be a mapping, got {type(raw).__name__}")

    payload: dict[str, Any] = {
        "id": raw.get("id"),
        "title": _first(raw, "title", "name"),
        "description": raw.get("description") or "",
        "fear_categories": normalize_fear_categories(_first(raw, "fearCategories", "fear_categories")),
        "difficulty": normalize_difficulty(_first(raw, "difficultyLevel", "difficulty_level", "difficulty")),
        "cost": normalize_cost(_first(raw, "costRange", "cost_range", "cost")),
        "time_commitment": normalize_time_commitment(_first(raw, "timeCommitment", "time_commitment")),
        "environment": normalize_environment(raw),
        "locations": _resolve_locations(raw, locations_by_id or {}),
    }
    for field_name, keys in _EXTRA_FIELDS.items():
        value = _first(raw, *keys)
        if value is not None:
            payload[field_name] = value

    return Activity.model_validate(payload)
