from __future__ import annotations

# We use pytest because the repository already standardizes on it for automated checks.
import pytest

# We import the existing Settings loader so tests run with the real default config structure.
from fearmatch.config.settings import get_settings

# We test the override helper directly because it is pure (no I/O) and guards every orchestrator.
from fearmatch.config.overrides import apply_settings_overrides


def test_apply_settings_overrides_returns_same_object_when_none():
    # Load the baseline settings once (this is a cached Pydantic model).
    settings = get_settings()

    # When no overrides are provided, we expect a no-op and the same object back (fast path).
    out = apply_settings_overrides(settings, None)

    # Identity equality is intentional here: the function returns early without rebuilding the model.
    assert out is settings


def test_apply_settings_overrides_can_override_allowed_scoring_knobs():
    # Load the baseline settings (do not mutate it; it is shared via lru_cache).
    settings = get_settings()

    # Override an allowed scoring knob: the weight of the fear-match term.
    overrides = {"scoring": {"weights": {"fear": 6.0}}}

    # Apply the override; this returns a NEW Settings model validated by Pydantic.
    out = apply_settings_overrides(settings, overrides)

    # The override should take effect on the returned model, and siblings are kept by the deep merge.
    assert out.scoring.weights.fear == 6.0
    assert out.scoring.weights.difficulty == settings.scoring.weights.difficulty

    # The original shared settings should remain unchanged (no leakage between orchestrators).
    assert settings.scoring.weights.fear != 6.0


def test_apply_settings_overrides_rejects_disallowed_keys_with_clear_path():
    settings = get_settings()

    # Catalog paths are not overridable per orchestrator.
    overrides = {"catalog": {"path": "/etc/passwd"}}

    # We expect a ValueError with a dotted path so users can find the offending key quickly.
    with pytest.raises(ValueError, match=r"settings_overrides contains a disallowed key: 'catalog'"):
        apply_settings_overrides(settings, overrides)

    # Restricted subtrees report the nested path.
    with pytest.raises(ValueError, match=r"orchestrator\.load_timeout_seconds"):
        apply_settings_overrides(settings, {"orchestrator": {"load_timeout_seconds": 1}})


def test_apply_settings_overrides_rejects_wrong_value_shapes_for_restricted_subtrees():
    settings = get_settings()

    # `preferences` is a restricted subtree (only `defaults` is allowed),
    # so its override must be an object/mapping, not a scalar.
    overrides = {"preferences": 1}

    with pytest.raises(ValueError, match=r"settings_overrides key 'preferences' must be a mapping"):
        apply_settings_overrides(settings, overrides)


def test_apply_settings_overrides_revalidates_ranges():
    settings = get_settings()

    # Pydantic re-validation still applies to allowed keys.
    with pytest.raises(ValueError):
        apply_settings_overrides(settings, {"scoring": {"neutral_score": 2}})
