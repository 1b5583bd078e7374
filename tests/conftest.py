"""Shared pytest fixtures for the fearmatch tests."""

from __future__ import annotations

import pytest

from fearmatch.domain.models import Activity, PreferenceSet

from helpers import make_activity


@pytest.fixture
def neutral_preferences() -> PreferenceSet:
    return PreferenceSet(preferred_difficulty="beginner", preferred_time_commitment="half_day")


@pytest.fixture
def ten_activity_catalog() -> list[Activity]:
    titles = [
        "Indoor Climbing Introduction",
        "White Water Kayaking",
        "Open Mic Night",
        "Beginner-Friendly Escape Room",
        "Glass Floor Observation Deck",
        "Small Group Social Skills Workshop",
        "Wild Cave Adventure",
        "Tandem Skydive",
        "Guided Networking Event",
        "Wildlife Sanctuary Keeper Day",
    ]
    return [make_activity(id=f"a{i}", title=t) for i, t in enumerate(titles)]
