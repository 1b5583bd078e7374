import pytest

from fearmatch.config.settings import get_settings
from fearmatch.domain.models import Activity, PreferenceSet, ScoredActivity
from fearmatch.scoring.composite import ComponentResult, component_scorer, weighted_average
from fearmatch.scoring.explain import one_line_summary, reasons
from fearmatch.scoring.match import explain_match, score_activity, score_catalog

from helpers import MOAB, SEATTLE, make_activity, make_profile


def test_score_is_neutral_without_preferences():
    activity = make_activity(fear_categories=("water",))
    assert score_activity(activity, make_profile(heights=4), None) == 0.5
    assert score_activity(activity, None, None) == 0.5


def test_heights_profile_ranks_heights_activity_above_water_activity(neutral_preferences):
    profile = make_profile(heights=4)
    heights = make_activity("h", fear_categories=("heights",))
    water = make_activity("w", fear_categories=("water",))

    hs = score_activity(heights, profile, neutral_preferences)
    ws = score_activity(water, profile, neutral_preferences)

    assert hs > ws
    # Location is not counted without a location preference: weights 4 + 2 + 1.
    assert hs == pytest.approx(1.0)
    assert ws == pytest.approx(3 / 7)


def test_scores_stay_in_unit_interval(neutral_preferences):
    profile = make_profile(heights=4, water=1, social=2.5)
    for fears in [("heights",), ("water",), ("social", "speed"), ("animals",)]:
        for difficulty in ["beginner", "moderate", "difficult"]:
            for time in ["under_1_hour", "half_day", "multi_day"]:
                activity = make_activity(fear_categories=fears, difficulty=difficulty, time_commitment=time)
                assert 0.0 <= score_activity(activity, profile, neutral_preferences) <= 1.0


def test_malformed_activity_scores_zero(neutral_preferences):
    broken = Activity.model_construct(id="x", title="Broken", fear_categories=())
    assert score_activity(broken, make_profile(heights=4), neutral_preferences) == 0.0
    assert score_activity("not an activity", make_profile(heights=4), neutral_preferences) == 0.0


def test_fear_score_averages_matched_categories_only(neutral_preferences):
    profile = make_profile(heights=4, water=2)
    activity = make_activity(fear_categories=("heights", "water", "speed"))
    breakdown = explain_match(activity, profile, neutral_preferences)

    fear = next(c for c in breakdown.components if c.name == "fear")
    assert fear.score == pytest.approx(0.75)


def test_missing_profile_scores_fear_zero_but_keeps_other_terms(neutral_preferences):
    activity = make_activity()
    # fear 0 (weight 4), difficulty 1 (2), time 1 (1).
    assert score_activity(activity, None, neutral_preferences) == pytest.approx(3 / 7)


def test_difficulty_adjacent_level_gets_partial_credit():
    prefs = PreferenceSet(preferred_difficulty="easy", preferred_time_commitment="half_day")
    profile = make_profile(heights=4)

    def difficulty_score(level):
        breakdown = explain_match(make_activity(difficulty=level), profile, prefs)
        return next(c.score for c in breakdown.components if c.name == "difficulty")

    assert difficulty_score("easy") == 1.0
    assert difficulty_score("beginner") == 0.5
    assert difficulty_score("moderate") == 0.5
    assert difficulty_score("difficult") == 0.0


def test_location_term_counts_only_with_a_preference():
    profile = make_profile(heights=4)
    activity = make_activity(locations=(SEATTLE,))

    no_pref = explain_match(activity, profile, PreferenceSet(preferred_difficulty="beginner"))
    location = next(c for c in no_pref.components if c.name == "location")
    assert location.counted is False

    match = PreferenceSet(preferred_difficulty="beginner", preferred_time_commitment="half_day", preferred_locations=("seattle",))
    miss = PreferenceSet(preferred_difficulty="beginner", preferred_time_commitment="half_day", preferred_locations=("moab",))
    assert score_activity(activity, profile, match) == pytest.approx(1.0)
    # 4 + 2 + 0 + 1 over 8.5.
    assert score_activity(activity, profile, miss) == pytest.approx(7 / 8.5)
    assert score_activity(make_activity(locations=(MOAB,)), profile, miss) == pytest.approx(1.0)


def test_time_mismatch_is_partial_credit():
    prefs = PreferenceSet(preferred_difficulty="beginner", preferred_time_commitment="full_day")
    breakdown = explain_match(make_activity(time_commitment="half_day"), make_profile(heights=4), prefs)
    time = next(c for c in breakdown.components if c.name == "time")
    assert time.score == 0.5


def test_failing_sub_score_counts_as_zero(monkeypatch, caplog, neutral_preferences):
    @component_scorer
    def exploding(activity, *, preferences, settings):
        raise RuntimeError("boom")

    monkeypatch.setattr("fearmatch.scoring.match.score_time_match", exploding)

    breakdown = explain_match(make_activity(), make_profile(heights=4), neutral_preferences)
    time = next(c for c in breakdown.components if c.name == "time")

    assert time.error == "RuntimeError: boom"
    assert time.score == 0.0
    assert breakdown.total_score == pytest.approx(6 / 7)
    assert "Sub-score time failed" in caplog.text


def test_weighted_average_ignores_uncounted_terms():
    parts = [
        (ComponentResult(score=1.0), 2.0),
        (ComponentResult.not_counted("n/a"), 5.0),
        (ComponentResult(score=0.0), 2.0),
    ]
    assert weighted_average(parts) == 0.5
    assert weighted_average([(ComponentResult.not_counted("n/a"), 1.0)]) is None


def test_zeroed_weights_fall_back_to_neutral(neutral_preferences):
    settings = get_settings().model_copy(deep=True)
    for name in ("fear", "difficulty", "location", "time"):
        setattr(settings.scoring.weights, name, 0.0)
    assert score_activity(make_activity(), make_profile(heights=4), neutral_preferences, settings=settings) == 0.5


def test_score_catalog_preserves_order_and_drops_non_activities(neutral_preferences):
    catalog = [make_activity("a"), "junk", make_activity("b", fear_categories=("water",))]
    scored = score_catalog(catalog, make_profile(heights=4), neutral_preferences)

    assert [s.id for s in scored] == ["a", "b"]
    assert all(isinstance(s, ScoredActivity) for s in scored)
    assert scored[0].match_score > scored[1].match_score


def test_explain_summary_and_reasons(neutral_preferences):
    breakdown = explain_match(make_activity(title="Glass Floor"), make_profile(heights=4), neutral_preferences)
    summary = one_line_summary(breakdown)
    assert summary.startswith("total=1.000")
    assert "location=n/a" in summary
    lines = reasons(breakdown)
    assert lines and any("heights" in line for line in lines)

    neutral = explain_match(make_activity(), None, None)
    assert neutral.neutral is True
    assert neutral.components == []
