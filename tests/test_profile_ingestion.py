import asyncio

from fearmatch.config.settings import get_settings
from fearmatch.ingestion.profile import (
    fear_level,
    load_fear_profile,
    normalize_preferences,
    profile_from_assessment,
    profile_from_key_fears,
)
from fearmatch.ingestion.sources import InMemoryUserRecords
from fearmatch.recommender.orchestrator import MatchOrchestrator

from helpers import make_activity


def test_profile_from_assessment_accepts_legacy_keys_and_sorts_by_intensity():
    record = {
        "timestamp": "2026-02-01T10:00:00Z",
        "fears": [
            {"fear": "water", "score": 2},
            {"category": "Heights", "score": 4},
            {"category": "social", "score": 3},
        ],
    }
    profile = profile_from_assessment(record, user_id="u1", settings=get_settings())

    assert profile is not None
    assert [e.category for e in profile.entries] == ["heights", "social", "water"]
    assert profile.timestamp.year == 2026
    assert profile.synthetic is False


def test_profile_from_assessment_averages_repeats_clamps_and_skips_malformed(caplog):
    record = {
        "results": [
            {"category": "heights", "score": 3},
            {"category": "heights", "score": 4},
            {"category": "water", "score": 9},
            {"category": "lava", "score": 2},
            {"category": "social", "score": "high"},
            "junk",
        ]
    }
    profile = profile_from_assessment(record, user_id="u1", settings=get_settings())

    assert profile is not None
    assert profile.intensity_for("heights") == 3.5
    assert profile.intensity_for("water") == 4.0
    assert profile.intensity_for("social") is None
    assert "Skipping malformed assessment entry" in caplog.text


def test_profile_from_assessment_drops_non_finite_scores(caplog):
    record = {
        "results": [
            {"category": "heights", "score": float("nan")},
            {"category": "water", "score": float("inf")},
            {"category": "social", "score": 3},
        ]
    }
    profile = profile_from_assessment(record, user_id="u1", settings=get_settings())

    assert profile is not None
    assert [e.category for e in profile.entries] == ["social"]
    assert "Skipping malformed assessment entry" in caplog.text

    only_nan = {"results": [{"category": "heights", "score": float("nan")}]}
    assert profile_from_assessment(only_nan, user_id="u1", settings=get_settings()) is None


def test_profile_from_assessment_clamps_to_configured_scale():
    settings = get_settings()
    record = {"results": [{"category": "heights", "score": 0}, {"category": "water", "score": -3}]}
    profile = profile_from_assessment(record, user_id="u1", settings=settings)

    assert profile.intensity_for("heights") == settings.fear_profile.min_intensity
    assert profile.intensity_for("water") == settings.fear_profile.min_intensity


def test_nan_assessment_score_does_not_fail_the_session():
    records = InMemoryUserRecords(
        assessments={"u1": {"results": [{"category": "heights", "score": float("nan")}, {"category": "water", "score": 4}]}},
        preferences={"u1": {"preferredDifficulty": "beginner"}},
    )
    orchestrator = MatchOrchestrator([make_activity("pool", fear_categories=("water",))], records)

    snapshot = asyncio.run(orchestrator.start_session("u1"))

    assert snapshot.state == "ready"
    assert [e.category for e in orchestrator.fear_profile.entries] == ["water"]


def test_profile_from_assessment_without_usable_entries_is_none():
    settings = get_settings()
    assert profile_from_assessment({"results": []}, user_id="u1", settings=settings) is None
    assert profile_from_assessment({"results": "nope"}, user_id="u1", settings=settings) is None


def test_profile_from_key_fears_uses_synthetic_intensity():
    settings = get_settings()
    profile = profile_from_key_fears(["heights", "Water", "unknown"], user_id="u1", settings=settings)

    assert profile is not None
    assert profile.synthetic is True
    assert [e.category for e in profile.entries] == ["heights", "water"]
    assert all(e.intensity == settings.fear_profile.synthetic_intensity for e in profile.entries)

    assert profile_from_key_fears([], user_id="u1", settings=settings) is None
    assert profile_from_key_fears(None, user_id="u1", settings=settings) is None


def test_fear_level_labels():
    assert fear_level(1) == "Minimal"
    assert fear_level(2) == "Mild"
    assert fear_level(3) == "Moderate"
    assert fear_level(4) == "Severe"


def test_load_fear_profile_prefers_assessment_over_key_fears():
    records = InMemoryUserRecords(
        assessments={"u1": {"results": [{"category": "confined", "score": 4}]}},
        profiles={"u1": {"key_fears": ["heights"]}},
    )
    profile = asyncio.run(load_fear_profile(records, "u1", settings=get_settings()))

    assert profile is not None
    assert [e.category for e in profile.entries] == ["confined"]


def test_load_fear_profile_falls_back_when_assessment_fetch_fails():
    class FlakyRecords(InMemoryUserRecords):
        async def fetch_assessment(self, user_id):
            raise ConnectionError("assessment store offline")

    records = FlakyRecords(profiles={"u1": {"key_fears": ["water"]}})
    profile = asyncio.run(load_fear_profile(records, "u1", settings=get_settings()))

    assert profile is not None
    assert profile.synthetic is True
    assert profile.entries[0].category == "water"


def test_load_fear_profile_for_unknown_user_is_none():
    profile = asyncio.run(load_fear_profile(InMemoryUserRecords(), "nobody", settings=get_settings()))
    assert profile is None


def test_normalize_preferences_none_stays_none():
    assert normalize_preferences(None, settings=get_settings()) is None


def test_normalize_preferences_applies_aliases_and_defaults():
    prefs = normalize_preferences(
        {
            "maxDifficulty": "intermediate",
            "timeCommitment": "full_day",
            "indoorOutdoorPreference": "Outdoor",
            "preferredLocations": ["seattle", "", 3],
        },
        settings=get_settings(),
    )

    assert prefs.max_difficulty == "moderate"
    # No explicit preferred level: the ceiling doubles as the target.
    assert prefs.preferred_difficulty == "moderate"
    assert prefs.preferred_time_commitment == "full_day"
    assert prefs.environment == "outdoor"
    assert prefs.preferred_locations == ("seattle",)
    assert prefs.max_cost == "medium"
    assert prefs.max_time_commitment == "half_day"


def test_normalize_preferences_maps_experience_level():
    prefs = normalize_preferences({"experience_level": "experienced"}, settings=get_settings())
    assert prefs.preferred_difficulty == "challenging"
    assert prefs.max_difficulty == "challenging"

    empty = normalize_preferences({}, settings=get_settings())
    assert empty.preferred_difficulty == "beginner"
    assert empty.environment == "both"
