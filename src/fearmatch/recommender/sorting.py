"""
Sort engine.

All orders use Python's stable `sorted`, so ties keep their incoming relative
order and re-sorting an already sorted list is a no-op.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from fearmatch.domain.models import DIFFICULTY_LEVELS, SORT_ORDERS, ordinal

logger = logging.getLogger(__name__)


def _title_key(activity: Any) -> tuple[str, str]:
    title = str(getattr(activity, "title", "") or "")
    return (title.casefold(), title)


def _difficulty_key(activity: Any) -> int:
    # Unknown difficulty sorts after every known level.
    position = ordinal(getattr(activity, "difficulty", None), DIFFICULTY_LEVELS)
    return len(DIFFICULTY_LEVELS) if position is None else position


def _score_key(activity: Any) -> float:
    score = getattr(activity, "match_score", None)
    return float(score) if isinstance(score, (int, float)) else 0.0


_SORT_KEYS: dict[str, tuple[Callable[[Any], Any], bool]] = {
    "alphabetical": (_title_key, False),
    "difficulty_asc": (_difficulty_key, False),
    "difficulty_desc": (_difficulty_key, True),
    "recommended": (_score_key, True),
}


def sort_activities(activities: Any, order: str = "recommended") -> list[Any]:
    """Return a new list sorted by `order`; the input is never mutated.

    Raises:
        ValueError: for an unknown sort order.
    """
    if order not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order '{order}'. Expected one of: {', '.join(SORT_ORDERS)}")
    if not isinstance(activities, (list, tuple)):
        logger.warning("sort_activities expected a list, got %s; returning [].", type(activities).__name__)
        return []
    key, descending = _SORT_KEYS[order]
    # `reverse=True` keeps equal elements in their original order, so it stays stable.
    return sorted(activities, key=key, reverse=descending)
