"""Factories shared by the test modules."""

from __future__ import annotations

from datetime import datetime, timezone

from fearmatch.domain.models import Activity, FearEntry, FearProfile, Location


def make_activity(id: str = "a", **overrides) -> Activity:
    data = {
        "id": id,
        "title": f"Activity {id}",
        "description": "",
        "fear_categories": ("heights",),
        "difficulty": "beginner",
        "cost": "low",
        "time_commitment": "half_day",
        "environment": "outdoor",
        "locations": (),
    }
    data.update(overrides)
    return Activity(**data)


def make_profile(user_id: str = "u1", **intensities: float) -> FearProfile:
    entries = tuple(FearEntry(category=c, intensity=v) for c, v in intensities.items())
    return FearProfile(user_id=user_id, timestamp=datetime(2026, 1, 5, tzinfo=timezone.utc), entries=entries)


SEATTLE = Location(id="seattle", name="Seattle", country="USA")
MOAB = Location(id="moab", name="Moab Desert", country="USA")
