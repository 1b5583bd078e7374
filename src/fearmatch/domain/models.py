"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- catalog entities (`Activity`, `Location`)
- user context (`FearProfile`, `PreferenceSet`)
- UI-owned inclusion predicates (`FilterCriteria`)
- derived output (`ScoredActivity`, `MatchBreakdown`, `MatchSnapshot`)

Ordinal enumerations are plain string literals plus an ordered tuple per scale,
so the same value works in JSON payloads, YAML config and comparisons.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

FearCategory = Literal[
    "heights",
    "water",
    "ocean",
    "social",
    "confined",
    "speed",
    "falling",
    "animals",
    "risk",
    "extreme_sports",
]
DifficultyLevel = Literal["beginner", "easy", "moderate", "challenging", "difficult"]
CostRange = Literal["free", "low", "medium", "high", "premium"]
TimeCommitment = Literal["under_1_hour", "1-3_hours", "half_day", "full_day", "multi_day"]
Environment = Literal["indoor", "outdoor", "both"]
SortOrder = Literal["alphabetical", "difficulty_asc", "difficulty_desc", "recommended"]
MatchState = Literal["uninitialized", "loading", "ready", "error"]

FEAR_CATEGORIES: tuple[str, ...] = get_args(FearCategory)
DIFFICULTY_LEVELS: tuple[str, ...] = get_args(DifficultyLevel)
COST_RANGES: tuple[str, ...] = get_args(CostRange)
TIME_COMMITMENTS: tuple[str, ...] = get_args(TimeCommitment)
ENVIRONMENTS: tuple[str, ...] = get_args(Environment)
SORT_ORDERS: tuple[str, ...] = get_args(SortOrder)


def ordinal(value: str | None, scale: tuple[str, ...]) -> int | None:
    """Return the 0-based position of `value` on an ordinal scale (None if unknown)."""
    if value is None:
        return None
    try:
        return scale.index(value)
    except ValueError:
        return None


class Location(BaseModel):
    """A place where an activity can be done."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    city: str | None = None
    state: str | None = None
    country: str = ""
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class Activity(BaseModel):
    """A catalog activity. Immutable for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    fear_categories: tuple[FearCategory, ...]
    difficulty: DifficultyLevel
    cost: CostRange
    time_commitment: TimeCommitment
    environment: Environment
    locations: tuple[Location, ...] = ()

    image_url: str | None = None
    safety: str | None = None
    min_group_size: int | None = Field(default=None, ge=1)
    max_group_size: int | None = Field(default=None, ge=1)
    minimum_age: int | None = Field(default=None, ge=0)
    physical_demand: Literal["low", "moderate", "high"] | None = None
    weather_dependent: bool | None = None
    progression: str | None = None

    @field_validator("fear_categories")
    @classmethod
    def _non_empty_unique(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("an activity needs at least one fear category")
        return tuple(dict.fromkeys(value))

    @property
    def location_ids(self) -> tuple[str, ...]:
        return tuple(loc.id for loc in self.locations)


class ScoredActivity(Activity):
    """An activity plus its transient match score (None when scoring was skipped)."""

    match_score: float | None = Field(default=None, ge=0, le=1)

    @classmethod
    def from_activity(cls, activity: Activity, match_score: float | None) -> "ScoredActivity":
        data = dict(activity)
        data["match_score"] = match_score
        return cls(**data)


class FearEntry(BaseModel):
    """One (category, intensity) pair of a fear profile."""

    model_config = ConfigDict(frozen=True)

    category: FearCategory
    intensity: float = Field(..., ge=0)
    notes: str = ""


class FearProfile(BaseModel):
    """A user's most recent fear assessment, highest intensity first."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    timestamp: datetime
    entries: tuple[FearEntry, ...] = ()
    synthetic: bool = False

    @field_validator("entries")
    @classmethod
    def _unique_categories(cls, entries: tuple[FearEntry, ...]) -> tuple[FearEntry, ...]:
        seen: set[str] = set()
        for entry in entries:
            if entry.category in seen:
                raise ValueError(f"duplicate fear category '{entry.category}' in profile")
            seen.add(entry.category)
        return entries

    def intensity_for(self, category: str) -> float | None:
        for entry in self.entries:
            if entry.category == category:
                return entry.intensity
        return None


class PreferenceSet(BaseModel):
    """Coarse persisted preferences. Every field is optional; scorers apply defaults."""

    model_config = ConfigDict(frozen=True)

    preferred_difficulty: DifficultyLevel | None = None
    max_difficulty: DifficultyLevel | None = None
    preferred_cost: CostRange | None = None
    max_cost: CostRange | None = None
    preferred_time_commitment: TimeCommitment | None = None
    max_time_commitment: TimeCommitment | None = None
    environment: Environment | None = None
    preferred_locations: tuple[str, ...] = ()
    fear_categories: tuple[FearCategory, ...] = ()


class FilterCriteria(BaseModel):
    """User-editable inclusion predicates. Unset fields are no-ops."""

    model_config = ConfigDict(frozen=True)

    fear_categories: frozenset[FearCategory] = frozenset()
    max_difficulty: DifficultyLevel | None = None
    max_time_commitment: TimeCommitment | None = None
    max_cost: CostRange | None = None
    environment: Environment | None = None
    locations: frozenset[str] = frozenset()

    def is_empty(self) -> bool:
        return self == FilterCriteria()


class ComponentBreakdown(BaseModel):
    """One explainable sub-score (fear/difficulty/location/time)."""

    name: Literal["fear", "difficulty", "location", "time"]
    score: float = Field(..., ge=0, le=1)
    weight: float = Field(..., ge=0)
    counted: bool = True
    error: str | None = None
    reasons: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)


class MatchBreakdown(BaseModel):
    """Explainable breakdown of how one activity's match score was built."""

    activity_id: str
    activity_title: str
    total_score: float = Field(..., ge=0, le=1)
    neutral: bool = False
    components: list[ComponentBreakdown] = Field(default_factory=list)


class MatchSnapshot(BaseModel):
    """What the orchestrator publishes to consumers after each recomputation."""

    state: MatchState
    activities: list[ScoredActivity] = Field(default_factory=list)
    criteria: FilterCriteria = Field(default_factory=FilterCriteria)
    sort_order: SortOrder = "recommended"
    search_text: str = ""
    visible_count: int = 0
    matched_count: int = 0
    user_id: str | None = None
    last_error: str | None = None
