"""
Location match feature.

- No declared location preference: the term is not counted at all (its weight
  leaves the denominator), so users without a preference are not penalized.
- Declared preference that intersects the activity's locations: 1.0.
- Declared preference with no intersection (including activities with no locations): 0.
"""

from __future__ import annotations

from fearmatch.config.settings import Settings
from fearmatch.domain.models import Activity, PreferenceSet
from fearmatch.scoring.composite import ComponentResult, component_scorer


@component_scorer
def score_location_match(
    activity: Activity, *, preferences: PreferenceSet, settings: Settings
) -> ComponentResult:
    preferred = set(preferences.preferred_locations)
    if not preferred:
        return ComponentResult.not_counted("No location preference")

    shared = [loc for loc in activity.locations if loc.id in preferred]
    if shared:
        return ComponentResult(
            score=1.0,
            details={"matched_locations": [loc.id for loc in shared]},
            reasons=["Available in " + ", ".join(loc.name for loc in shared[:3])],
        )
    return ComponentResult(
        score=0.0,
        details={"matched_locations": []},
        reasons=["Not offered in your preferred locations"],
    )
