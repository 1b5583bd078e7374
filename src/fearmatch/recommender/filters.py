# src/fearmatch/recommender/filters.py
"""
Filter pipeline.

`filter_activities(activities, criteria, search_text)` returns an order-preserving
subset of `activities`. Each criterion that is set is applied in sequence:

1. fear categories   (keep if ANY category is selected)
2. max difficulty    (ordinal <= ceiling)
3. max time          (ordinal <= ceiling)
4. max cost          (ordinal <= ceiling)
5. environment       (`both` selects everything; `both` activities match either side)
6. locations         (keep if ANY location is selected)
7. free-text search  (case-insensitive substring over title/description/categories/location names)

Every step accepts garbage input (None, non-lists, half-built records) and
returns an empty list instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from fearmatch.domain.models import (
    COST_RANGES,
    DIFFICULTY_LEVELS,
    TIME_COMMITMENTS,
    Activity,
    FilterCriteria,
    ordinal,
)

logger = logging.getLogger(__name__)


def _as_list(activities: Any) -> list[Any] | None:
    if isinstance(activities, (list, tuple)):
        return list(activities)
    return None


def _keep(activities: Any, predicate: Callable[[Any], bool]) -> list[Any]:
    items = _as_list(activities)
    if items is None:
        return []
    out = []
    for activity in items:
        try:
            if predicate(activity):
                out.append(activity)
        except Exception:
            # A half-built record cannot satisfy a predicate; drop it.
            logger.debug("Dropping unfilterable activity %r", getattr(activity, "id", activity))
    return out


def by_fear_categories(activities: Any, categories: Iterable[str] | None) -> list[Any]:
    selected = set(categories or ())
    if not selected:
        return _as_list(activities) or []
    return _keep(activities, lambda a: any(c in selected for c in a.fear_categories))


def _at_most(activities: Any, attr: str, ceiling: str | None, scale: tuple[str, ...]) -> list[Any]:
    limit = ordinal(ceiling, scale)
    if limit is None:
        return _as_list(activities) or []

    def predicate(activity: Any) -> bool:
        position = ordinal(getattr(activity, attr, None), scale)
        return position is not None and position <= limit

    return _keep(activities, predicate)


def by_max_difficulty(activities: Any, ceiling: str | None) -> list[Any]:
    return _at_most(activities, "difficulty", ceiling, DIFFICULTY_LEVELS)


def by_max_time_commitment(activities: Any, ceiling: str | None) -> list[Any]:
    return _at_most(activities, "time_commitment", ceiling, TIME_COMMITMENTS)


def by_max_cost(activities: Any, ceiling: str | None) -> list[Any]:
    return _at_most(activities, "cost", ceiling, COST_RANGES)


def by_environment(activities: Any, environment: str | None) -> list[Any]:
    if environment in (None, "both"):
        return _as_list(activities) or []
    return _keep(activities, lambda a: a.environment in (environment, "both"))


def by_locations(activities: Any, location_ids: Iterable[str] | None) -> list[Any]:
    selected = set(location_ids or ())
    if not selected:
        return _as_list(activities) or []
    return _keep(activities, lambda a: any(loc.id in selected for loc in a.locations))


def _search_haystack(activity: Activity) -> list[str]:
    fields = [activity.title or "", activity.description or ""]
    for category in activity.fear_categories:
        fields.append(category)
        fields.append(category.replace("_", " "))
    fields.extend(loc.name for loc in activity.locations if loc.name)
    return [f.lower() for f in fields]


def by_search_text(activities: Any, search_text: str | None) -> list[Any]:
    """Keep activities where any searchable field contains the trimmed term."""
    if not isinstance(search_text, str) or not search_text.strip():
        return _as_list(activities) or []
    needle = search_text.strip().lower()
    return _keep(activities, lambda a: any(needle in field for field in _search_haystack(a)))


def filter_activities(activities: Any, criteria: FilterCriteria | None = None, search_text: str = "") -> list[Any]:
    """Apply every set criterion, then the search term. Never raises."""
    if not isinstance(activities, (list, tuple)):
        logger.warning("filter_activities expected a list, got %s; returning [].", type(activities).__name__)
        return []

    criteria = criteria or FilterCriteria()
    result = list(activities)
    result = by_fear_categories(result, criteria.fear_categories)
    result = by_max_difficulty(result, criteria.max_difficulty)
    result = by_max_time_commitment(result, criteria.max_time_commitment)
    result = by_max_cost(result, criteria.max_cost)
    result = by_environment(result, criteria.environment)
    result = by_locations(result, criteria.locations)
    result = by_search_text(result, search_text)
    return result
