"""Difficulty match: exact level 1.0, adjacent level partial credit, otherwise 0."""

from __future__ import annotations

from fearmatch.config.settings import Settings
from fearmatch.domain.models import DIFFICULTY_LEVELS, Activity, PreferenceSet, ordinal
from fearmatch.scoring.composite import ComponentResult, component_scorer


@component_scorer
def score_difficulty_match(
    activity: Activity, *, preferences: PreferenceSet, settings: Settings
) -> ComponentResult:
    preferred = (
        preferences.preferred_difficulty
        or preferences.max_difficulty
        or settings.preferences.defaults.preferred_difficulty
    )
    details = {"activity": activity.difficulty, "preferred": preferred}

    if activity.difficulty == preferred:
        return ComponentResult(score=1.0, details=details, reasons=[f"Right at your level ({preferred})"])

    a = ordinal(activity.difficulty, DIFFICULTY_LEVELS)
    p = ordinal(preferred, DIFFICULTY_LEVELS)
    if a is None or p is None:
        return ComponentResult(score=0.0, details=details, reasons=["Difficulty unknown"])

    distance = abs(a - p)
    details["distance"] = distance
    if distance <= settings.scoring.adjacent_difficulty_distance:
        direction = "step up" if a > p else "step down"
        return ComponentResult(
            score=settings.scoring.adjacent_difficulty_credit,
            details=details,
            reasons=[f"One {direction} from your level"],
        )
    return ComponentResult(score=0.0, details=details, reasons=[f"{distance} levels away from {preferred}"])
