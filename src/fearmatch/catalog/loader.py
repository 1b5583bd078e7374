"""
Activity catalog loader.

The catalog is a JSON array of raw activity records plus a JSON array of
locations. By default both ship inside the `fearmatch.catalog` package; a
different activity file can be configured via `catalog.path`. Records are
normalized into typed `Activity` models so downstream scoring/filtering code can
assume a consistent shape. Invalid records are skipped and logged.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from fearmatch.catalog.normalize import normalize_activity_record, normalize_location_record
from fearmatch.config.settings import Settings
from fearmatch.core.env import resolve_project_path
from fearmatch.domain.models import Activity, Location

logger = logging.getLogger(__name__)


def _read_package_json(filename: str) -> Any:
    text = resources.files("fearmatch.catalog").joinpath(filename).read_text(encoding="utf-8")
    return json.loads(text)


def parse_locations(payload: Any) -> dict[str, Location]:
    """Parse a list (or `{id: record}` mapping) of raw locations keyed by id."""
    if isinstance(payload, dict):
        payload = [{"id": k, **v} for k, v in payload.items() if isinstance(v, dict)]
    if not isinstance(payload, list):
        return {}
    out: dict[str, Location] = {}
    for record in payload:
        if not isinstance(record, dict) or not record.get("id"):
            continue
        try:
            loc = normalize_location_record(record)
        except (ValidationError, ValueError, KeyError) as e:
            logger.warning("Skipping invalid location %r: %s", record.get("id"), e)
            continue
        out[loc.id] = loc
    return out


def parse_activities(payload: Any, *, locations_by_id: dict[str, Location] | None = None) -> list[Activity]:
    """Normalize raw activity records, skipping (and logging) invalid ones and duplicate ids."""
    if not isinstance(payload, list):
        logger.warning("Activity catalog payload is not a list (%s); using an empty catalog.", type(payload).__name__)
        return []

    activities: list[Activity] = []
    seen: set[str] = set()
    for record in payload:
        record_id = record.get("id") if isinstance(record, dict) else None
        try:
            activity = normalize_activity_record(record, locations_by_id=locations_by_id)
        except (ValidationError, ValueError) as e:
            logger.warning("Skipping invalid activity %r: %s", record_id, e)
            continue
        if activity.id in seen:
            logger.warning("Skipping duplicate activity id %r", activity.id)
            continue
        seen.add(activity.id)
        activities.append(activity)
    return activities


def load_locations(path: str | Path | None = None) -> dict[str, Location]:
    """Load the location table (packaged by default)."""
    if path is None:
        return parse_locations(_read_package_json("locations.json"))
    resolved = resolve_project_path(path)
    return parse_locations(json.loads(resolved.read_text(encoding="utf-8")))


def load_activities(
    path: str | Path | None = None, *, locations_by_id: dict[str, Location] | None = None
) -> list[Activity]:
    """Load and normalize an activity catalog JSON file (packaged by default)."""
    if locations_by_id is None:
        locations_by_id = load_locations()
    if path is None:
        payload = _read_package_json("activities.json")
    else:
        payload = json.loads(resolve_project_path(path).read_text(encoding="utf-8"))
    return parse_activities(payload, locations_by_id=locations_by_id)


def load_catalog(settings: Settings) -> tuple[Activity, ...]:
    """Load the catalog configured in `settings` as an immutable tuple."""
    activities = load_activities(settings.catalog.path)
    logger.info("Loaded activity catalog: %d activities.", len(activities))
    return tuple(activities)
