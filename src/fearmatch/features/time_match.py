"""Time commitment match. Time is a soft signal: a mismatch earns partial credit, not 0."""

from __future__ import annotations

from fearmatch.config.settings import Settings
from fearmatch.domain.models import Activity, PreferenceSet
from fearmatch.scoring.composite import ComponentResult, component_scorer


@component_scorer
def score_time_match(
    activity: Activity, *, preferences: PreferenceSet, settings: Settings
) -> ComponentResult:
    preferred = (
        preferences.preferred_time_commitment
        or preferences.max_time_commitment
        or settings.preferences.defaults.max_time_commitment
    )
    details = {"activity": activity.time_commitment, "preferred": preferred}
    if activity.time_commitment == preferred:
        return ComponentResult(score=1.0, details=details, reasons=["Fits your usual time commitment"])
    return ComponentResult(
        score=settings.scoring.time_mismatch_credit,
        details=details,
        reasons=[f"Takes {activity.time_commitment.replace('_', ' ')} (you prefer {preferred.replace('_', ' ')})"],
    )
