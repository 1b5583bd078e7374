from __future__ import annotations

# This module is the stateless version of the recommendation pipeline:
#   catalog + fear profile + preferences -> score -> filter -> sort
#
# The stateful `MatchOrchestrator` reuses `select_visible` for its filter/sort
# passes. `recommend` is the library entry point for one-shot runs without a
# session (batch jobs, embedding applications).

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable

from fearmatch.config.settings import Settings, get_settings
from fearmatch.domain.models import (
    Activity,
    FearProfile,
    FilterCriteria,
    PreferenceSet,
    ScoredActivity,
    SortOrder,
)
from fearmatch.recommender.filters import filter_activities
from fearmatch.recommender.sorting import sort_activities
from fearmatch.scoring.match import score_catalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecommendationRun:
    """Output of one full pipeline pass."""

    scored: list[ScoredActivity]
    visible: list[ScoredActivity]
    timings_ms: dict[str, int] = field(default_factory=dict)

    @property
    def visible_count(self) -> int:
        return len(self.visible)

    @property
    def matched_count(self) -> int:
        return len(self.scored)


def select_visible(
    scored: Any,
    criteria: FilterCriteria | None,
    sort_order: SortOrder,
    search_text: str = "",
) -> list[Any]:
    """Filter then sort an already scored list."""
    return sort_activities(filter_activities(scored, criteria, search_text), sort_order)


def recommend(
    catalog: Iterable[Activity],
    *,
    profile: FearProfile | None = None,
    preferences: PreferenceSet | None = None,
    criteria: FilterCriteria | None = None,
    sort_order: SortOrder = "recommended",
    search_text: str = "",
    settings: Settings | None = None,
) -> RecommendationRun:
    """Run score -> filter -> sort once and return both the scored and visible lists."""
    settings = settings or get_settings()
    timings_ms: dict[str, int] = {}

    t0 = time.monotonic()
    scored = score_catalog(catalog, profile, preferences, settings=settings)
    timings_ms["score"] = int((time.monotonic() - t0) * 1000)

    t1 = time.monotonic()
    visible = select_visible(scored, criteria, sort_order, search_text)
    timings_ms["filter_sort"] = int((time.monotonic() - t1) * 1000)

    logger.debug("Pipeline run: %d scored, %d visible, timings=%s", len(scored), len(visible), timings_ms)
    return RecommendationRun(scored=scored, visible=visible, timings_ms=timings_ms)
