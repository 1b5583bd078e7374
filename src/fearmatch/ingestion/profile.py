# src/fearmatch/ingestion/profile.py
"""
Fear profile + preference normalization (collaborator boundary).

Collaborators hand us loosely-shaped records:
- an assessment record: `{timestamp, results: [{category, score}]}` (older rows use
  `fears` instead of `results` and `fear` instead of `category`)
- a user profile row carrying a flat `key_fears: [str]` list (fallback when no assessment exists)
- a preference record with camelCase or snake_case keys and optional `experience_level`

This module turns them into the canonical `FearProfile` / `PreferenceSet`.
Malformed pieces are dropped with a warning; they never raise.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from fearmatch.catalog.normalize import (
    normalize_cost,
    normalize_difficulty,
    normalize_fear_categories,
    normalize_time_commitment,
)
from fearmatch.config.settings import Settings
from fearmatch.core.time import parse_timestamp, utc_now
from fearmatch.domain.models import ENVIRONMENTS, FEAR_CATEGORIES, FearEntry, FearProfile, PreferenceSet
from fearmatch.ingestion.sources import FearProfileSource, PreferenceSource

logger = logging.getLogger(__name__)


def fear_level(intensity: float) -> str:
    """Human label for an assessment intensity on the 1..4 scale."""
    if intensity <= 1.5:
        return "Minimal"
    if intensity <= 2.5:
        return "Mild"
    if intensity <= 3.5:
        return "Moderate"
    return "Severe"


def _entry_category(item: Mapping[str, Any]) -> str | None:
    raw = item.get("category", item.get("fear"))
    if not isinstance(raw, str):
        return None
    text = raw.strip().lower()
    return text if text in FEAR_CATEGORIES else None


def profile_from_assessment(
    record: Mapping[str, Any], *, user_id: str, settings: Settings
) -> FearProfile | None:
    """Build a profile from an assessment record. Returns None when no usable entry remains."""
    results = record.get("results", record.get("fears"))
    if not isinstance(results, list):
        logger.warning("Assessment for user %r has no results list (%s); ignoring it.", user_id, type(results).__name__)
        return None

    floor = float(settings.fear_profile.min_intensity)
    cap = float(settings.fear_profile.max_intensity)
    # Repeated categories are averaged, the same way the questionnaire aggregates answers.
    totals: dict[str, list[float]] = {}
    for item in results:
        if not isinstance(item, Mapping):
            logger.warning("Skipping malformed assessment entry for user %r: %r", user_id, item)
            continue
        category = _entry_category(item)
        score = item.get("score")
        if (
            category is None
            or isinstance(score, bool)
            or not isinstance(score, (int, float))
            or not math.isfinite(score)
        ):
            logger.warning("Skipping malformed assessment entry for user %r: %r", user_id, item)
            continue
        totals.setdefault(category, []).append(min(max(float(score), floor), cap))

    if not totals:
        return None

    entries = [FearEntry(category=c, intensity=sum(v) / len(v)) for c, v in totals.items()]
    entries.sort(key=lambda e: e.intensity, reverse=True)
    return FearProfile(
        user_id=user_id,
        timestamp=parse_timestamp(record.get("timestamp")) or utc_now(),
        entries=tuple(entries),
    )


def profile_from_key_fears(
    key_fears: Any, *, user_id: str, settings: Settings, timestamp: Any = None
) -> FearProfile | None:
    """Synthesize a profile from a flat list of selected fear tags (fixed neutral intensity)."""
    if not isinstance(key_fears, (list, tuple)):
        if key_fears is not None:
            logger.warning("key_fears for user %r is not a list (%s); ignoring it.", user_id, type(key_fears).__name__)
        return None
    categories = normalize_fear_categories(list(key_fears))
    if not categories:
        return None
    intensity = float(settings.fear_profile.synthetic_intensity)
    return FearProfile(
        user_id=user_id,
        timestamp=parse_timestamp(timestamp) or utc_now(),
        entries=tuple(FearEntry(category=c, intensity=intensity) for c in categories),
        synthetic=True,
    )


def normalize_preferences(record: Mapping[str, Any] | None, *, settings: Settings) -> PreferenceSet | None:
    """Normalize a raw preference record; None stays None ("no preferences yet").

    Absent fields get the configured neutral defaults, so downstream code sees a
    complete `PreferenceSet`.
    """
    if record is None:
        return None
    if not isinstance(record, Mapping):
        logger.warning("Preference record is not a mapping (%s); treating as empty.", type(record).__name__)
        record = {}

    defaults = settings.preferences.defaults

    def pick(*keys: str) -> Any:
        for key in keys:
            if record.get(key) is not None:
                return record[key]
        return None

    experience = pick("experience_level", "experienceLevel")
    from_experience = None
    if isinstance(experience, str):
        from_experience = settings.preferences.experience_to_difficulty.get(experience.strip().lower())

    preferred_difficulty = normalize_difficulty(pick("preferredDifficulty", "preferred_difficulty"))
    max_difficulty = normalize_difficulty(pick("maxDifficulty", "max_difficulty"))
    if from_experience is not None:
        preferred_difficulty = preferred_difficulty or from_experience
        max_difficulty = max_difficulty or from_experience

    environment = pick("indoorOutdoorPreference", "indoor_outdoor_preference", "environment")
    environment = environment.strip().lower() if isinstance(environment, str) else None
    if environment not in ENVIRONMENTS:
        environment = None

    locations = pick("preferredLocations", "preferred_locations")
    if not isinstance(locations, (list, tuple)):
        locations = []

    return PreferenceSet(
        preferred_difficulty=preferred_difficulty or max_difficulty or defaults.preferred_difficulty,
        max_difficulty=max_difficulty,
        preferred_cost=normalize_cost(pick("costRange", "cost_range", "preferred_cost")),
        max_cost=normalize_cost(pick("maxCost", "max_cost")) or defaults.max_cost,
        preferred_time_commitment=normalize_time_commitment(
            pick("timeCommitment", "time_commitment", "preferred_time_commitment")
        ),
        max_time_commitment=(
            normalize_time_commitment(pick("maxTimeCommitment", "max_time_commitment"))
            or defaults.max_time_commitment
        ),
        environment=environment or defaults.environment,
        preferred_locations=tuple(str(x).strip() for x in locations if isinstance(x, str) and x.strip()),
        fear_categories=tuple(normalize_fear_categories(pick("fearCategories", "fear_categories", "key_fears"))),
    )


async def load_fear_profile(source: FearProfileSource, user_id: str, *, settings: Settings) -> FearProfile | None:
    """Fetch the latest fear profile: assessment record first, `key_fears` as a fallback.

    A failing assessment fetch falls through to the profile row; only a failing
    profile-row fetch propagates (the orchestrator treats it as a load failure).
    """
    try:
        assessment = await source.fetch_assessment(user_id)
    except Exception as e:
        logger.warning("Fear assessment fetch failed for user %r, falling back to key_fears: %s", user_id, e)
        assessment = None

    if isinstance(assessment, Mapping):
        profile = profile_from_assessment(assessment, user_id=user_id, settings=settings)
        if profile is not None:
            return profile

    row = await source.fetch_profile(user_id)
    if not isinstance(row, Mapping):
        return None
    return profile_from_key_fears(
        row.get("key_fears", row.get("keyFears")),
        user_id=user_id,
        settings=settings,
        timestamp=row.get("last_assessment"),
    )


async def load_preferences(source: PreferenceSource, user_id: str, *, settings: Settings) -> PreferenceSet | None:
    record = await source.fetch_preferences(user_id)
    return normalize_preferences(record, settings=settings)
