from __future__ import annotations

# Match scorer: (activity, fear profile, preferences) -> score in [0, 1].
#
# The four sub-scorers in `fearmatch.features` each return a Result-style
# `ComponentResult` and never raise. This module is the single place where those
# results are aggregated, errors are logged, and the weighted average is taken.
#
# Contract:
# - no preferences yet  -> neutral score (0.5), never 0
# - malformed activity  -> 0
# - otherwise           -> weighted average (fear 4, difficulty 2, location 1.5, time 1),
#                          normalized by the weights of the components actually counted

import logging
from typing import Any, Iterable

from fearmatch.config.settings import Settings, get_settings
from fearmatch.domain.models import (
    Activity,
    ComponentBreakdown,
    FearProfile,
    MatchBreakdown,
    PreferenceSet,
    ScoredActivity,
)
from fearmatch.features.difficulty_match import score_difficulty_match
from fearmatch.features.fear_match import score_fear_match
from fearmatch.features.location_match import score_location_match
from fearmatch.features.time_match import score_time_match
from fearmatch.scoring.composite import ComponentResult, clamp01, weighted_average

logger = logging.getLogger(__name__)


def _is_scorable(activity: Any) -> bool:
    # Catalog records are validated upstream, but callers may hand us anything.
    if not isinstance(activity, Activity):
        return False
    fears = getattr(activity, "fear_categories", None)
    return isinstance(fears, (list, tuple)) and len(fears) > 0


def _breakdown_component(name: str, result: ComponentResult, weight: float) -> ComponentBreakdown:
    return ComponentBreakdown(
        name=name,
        score=clamp01(result.score),
        weight=float(weight),
        counted=result.counted,
        error=result.error,
        reasons=list(result.reasons),
        details=dict(result.details),
    )


def explain_match(
    activity: Activity,
    profile: FearProfile | None,
    preferences: PreferenceSet | None,
    *,
    settings: Settings | None = None,
) -> MatchBreakdown:
    """Score one activity and return the explainable breakdown behind the number."""
    settings = settings or get_settings()
    activity_id = str(getattr(activity, "id", "") or "")
    activity_title = str(getattr(activity, "title", "") or "")

    if preferences is None:
        return MatchBreakdown(
            activity_id=activity_id,
            activity_title=activity_title,
            total_score=clamp01(settings.scoring.neutral_score),
            neutral=True,
        )

    if not _is_scorable(activity):
        logger.warning("Activity %r is malformed (no fear categories); scoring it 0.", activity_id or activity)
        return MatchBreakdown(activity_id=activity_id, activity_title=activity_title, total_score=0.0)

    weights = settings.scoring.weights
    parts: list[tuple[str, ComponentResult, float]] = [
        ("fear", score_fear_match(activity, profile=profile, settings=settings), weights.fear),
        ("difficulty", score_difficulty_match(activity, preferences=preferences, settings=settings), weights.difficulty),
        ("location", score_location_match(activity, preferences=preferences, settings=settings), weights.location),
        ("time", score_time_match(activity, preferences=preferences, settings=settings), weights.time),
    ]

    for name, result, _ in parts:
        if not result.ok:
            logger.warning("Sub-score %s failed for activity %r: %s", name, activity_id, result.error)

    total = weighted_average([(r, w) for _, r, w in parts])
    if total is None:
        # Every weight was zeroed by configuration; there is no signal to rank on.
        total = clamp01(settings.scoring.neutral_score)

    return MatchBreakdown(
        activity_id=activity_id,
        activity_title=activity_title,
        total_score=total,
        components=[_breakdown_component(n, r, w) for n, r, w in parts],
    )


def score_activity(
    activity: Activity,
    profile: FearProfile | None,
    preferences: PreferenceSet | None,
    *,
    settings: Settings | None = None,
) -> float:
    """Return the match score in [0, 1]. Never raises."""
    try:
        return explain_match(activity, profile, preferences, settings=settings).total_score
    except Exception:
        logger.exception("Scoring failed for activity %r", getattr(activity, "id", None))
        return 0.0


def score_catalog(
    activities: Iterable[Activity],
    profile: FearProfile | None,
    preferences: PreferenceSet | None,
    *,
    settings: Settings | None = None,
) -> list[ScoredActivity]:
    """Return a scored copy of the catalog in its original order. Non-activity entries are dropped."""
    settings = settings or get_settings()
    scored: list[ScoredActivity] = []
    for activity in activities:
        if not isinstance(activity, Activity):
            logger.warning("Dropping non-activity catalog entry: %r", activity)
            continue
        score = score_activity(activity, profile, preferences, settings=settings)
        scored.append(ScoredActivity.from_activity(activity, score))
    return scored
