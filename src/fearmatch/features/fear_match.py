# src/fearmatch/features/fear_match.py
"""
Fear match feature (activity-level).

This is the strongest personalization signal: how intensely does the user fear
the things this activity confronts?

- For each of the activity's fear categories that also appears in the profile,
  take the profile intensity normalized by the maximum possible intensity.
- Average those values over the matched categories only.
- If nothing matches (or there is no profile yet) the score is 0. That is not an
  error, just "no personalization signal", and the term still counts.
"""

from __future__ import annotations

from fearmatch.config.settings import Settings
from fearmatch.domain.models import Activity, FearProfile
from fearmatch.scoring.composite import ComponentResult, clamp01, component_scorer


@component_scorer
def score_fear_match(
    activity: Activity, *, profile: FearProfile | None, settings: Settings
) -> ComponentResult:
    if profile is None or not profile.entries:
        return ComponentResult(score=0.0, reasons=["No fear profile yet"], details={"matched": {}})

    # Guard the denominator so a misconfigured scale cannot divide by zero.
    max_intensity = max(float(settings.fear_profile.max_intensity), 1e-9)

    matched: dict[str, float] = {}
    for category in activity.fear_categories:
        intensity = profile.intensity_for(category)
        if intensity is not None:
            matched[category] = clamp01(float(intensity) / max_intensity)

    if not matched:
        return ComponentResult(
            score=0.0,
            reasons=["Does not target any of your assessed fears"],
            details={"matched": {}},
        )

    score = sum(matched.values()) / len(matched)
    reasons = ["Targets " + ", ".join(f"{c} ({v:.0%})" for c, v in matched.items())]
    return ComponentResult(score=score, reasons=reasons, details={"matched": matched, "max_intensity": max_intensity})
