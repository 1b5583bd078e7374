# src/fearmatch/recommender/orchestrator.py
"""
Match orchestrator (the only stateful component).

Owns the current fear profile, preferences, filter criteria, sort order and
search text for one user session, and republishes the visible activity list
whenever any of them changes.

State machine::

    uninitialized --start_session--> loading --loads ok--> ready
                                        |                    |
                                        +--a load failed--> error

- `start_session` always resets to `loading`; `refresh` re-enters `loading` but
  keeps the current inputs on screen until the new ones arrive.
- In `error` the last computed list stays published; the pipeline is still run
  with whatever inputs are available.

Recomputation is driven by a named-event table (`RECOMPUTE_PLAN`): profile and
preference events rescore the catalog, UI events only refilter and resort the
cached scores. Events raised while a recomputation is running (e.g. by a
subscriber) are queued, so a pass always completes before the next one starts.

Loads are tagged with a monotonically increasing token. A load that completes
after a newer load (or a session switch) has started is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Callable, Iterable, Literal, Mapping

from pydantic import ValidationError

from fearmatch.config.overrides import apply_settings_overrides
from fearmatch.config.settings import Settings, get_settings
from fearmatch.domain.models import (
    SORT_ORDERS,
    Activity,
    FearProfile,
    FilterCriteria,
    MatchSnapshot,
    MatchState,
    PreferenceSet,
    ScoredActivity,
    SortOrder,
)
from fearmatch.ingestion.profile import load_fear_profile, load_preferences
from fearmatch.ingestion.sources import FearProfileSource, PreferenceSource
from fearmatch.recommender.recommend import select_visible
from fearmatch.scoring.match import score_catalog

logger = logging.getLogger(__name__)

MatchEvent = Literal[
    "session_started",
    "session_cleared",
    "profile_loaded",
    "preferences_loaded",
    "load_settled",
    "criteria_changed",
    "sort_changed",
    "search_changed",
]

# Which pipeline stages each event re-runs.
RECOMPUTE_PLAN: dict[MatchEvent, tuple[str, ...]] = {
    "session_started": ("score", "select"),
    "session_cleared": (),
    "profile_loaded": ("score", "select"),
    "preferences_loaded": ("score", "select"),
    "load_settled": ("score", "select"),
    "criteria_changed": ("select",),
    "sort_changed": ("select",),
    "search_changed": ("select",),
}

Subscriber = Callable[[MatchSnapshot], Any]

# FilterCriteria fields that take a collection of ids.
_SET_FIELDS = frozenset({"fear_categories", "locations"})


def _as_frozenset(values: Any) -> frozenset[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        return frozenset([values])
    return frozenset(values)


class MatchOrchestrator:
    """Keeps one session's visible, ranked activity list up to date.

    Args:
        catalog: The activity catalog (treated as constant).
        profile_source: Collaborator that fetches assessment / profile rows.
        preference_source: Collaborator that fetches the preference record.
            Defaults to `profile_source` when one object implements both.
        settings: Settings to use (defaults to `get_settings()`).
        settings_overrides: Whitelisted per-orchestrator overrides
            (see `fearmatch.config.overrides`).
    """

    def __init__(
        self,
        catalog: Iterable[Activity],
        profile_source: FearProfileSource,
        preference_source: PreferenceSource | None = None,
        *,
        settings: Settings | None = None,
        settings_overrides: Mapping[str, Any] | None = None,
    ) -> None:
        self._settings = apply_settings_overrides(settings or get_settings(), settings_overrides)
        self._catalog: tuple[Activity, ...] = tuple(a for a in (catalog or ()) if isinstance(a, Activity))
        self._profile_source = profile_source
        self._preference_source = preference_source or profile_source  # type: ignore[assignment]

        self._state: MatchState = "uninitialized"
        self._user_id: str | None = None
        self._token = 0
        self._last_error: str | None = None

        self._fear_profile: FearProfile | None = None
        self._preferences: PreferenceSet | None = None

        self._criteria = FilterCriteria()
        self._sort_order: SortOrder = self._settings.orchestrator.default_sort_order
        self._search_text = ""

        self._scored: list[ScoredActivity] = []
        self._visible: list[ScoredActivity] = []

        self._subscribers: list[Subscriber] = []
        self._pending: deque[MatchEvent] = deque()
        self._dispatching = False
        self._snapshot = self._build_snapshot()

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> MatchState:
        return self._state

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def fear_profile(self) -> FearProfile | None:
        return self._fear_profile

    @property
    def preferences(self) -> PreferenceSet | None:
        return self._preferences

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    @property
    def search_text(self) -> str:
        return self._search_text

    @property
    def visible_activities(self) -> list[ScoredActivity]:
        return list(self._visible)

    @property
    def counts(self) -> tuple[int, int]:
        """(visible count, matched-before-filter count) for summary text."""
        return len(self._visible), len(self._scored)

    @property
    def snapshot(self) -> MatchSnapshot:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a consumer; it is called with every published snapshot. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def start_session(self, user_id: str) -> MatchSnapshot:
        """Switch to a new user context and load its profile and preferences."""
        self._token += 1
        token = self._token
        self._user_id = user_id
        self._state = "loading"
        self._last_error = None
        self._fear_profile = None
        self._preferences = None
        self._scored = []
        self._visible = []
        logger.info("Starting match session for user %r (load #%d)", user_id, token)
        self._dispatch("session_started")
        await self._load(token)
        return self._snapshot

    async def refresh(self) -> MatchSnapshot:
        """Re-fetch profile and preferences for the current user (e.g. after a new assessment)."""
        if self._user_id is None:
            logger.warning("refresh() called without an active session; ignoring.")
            return self._snapshot
        self._token += 1
        token = self._token
        self._state = "loading"
        self._publish()
        await self._load(token)
        return self._snapshot

    def clear_session(self) -> MatchSnapshot:
        """Drop the user context (logout). In-flight loads are ignored when they complete."""
        self._token += 1
        self._user_id = None
        self._state = "uninitialized"
        self._last_error = None
        self._fear_profile = None
        self._preferences = None
        self._scored = []
        self._visible = []
        self._dispatch("session_cleared")
        return self._snapshot

    async def _load(self, token: int) -> None:
        user_id = self._user_id
        timeout = float(self._settings.orchestrator.load_timeout_seconds)
        failures: dict[str, str] = {}

        async def fetch(name: str, coro: Any, apply: Callable[[Any], None], event: MatchEvent) -> None:
            try:
                value = await asyncio.wait_for(coro, timeout=timeout)
            except Exception as e:
                if token == self._token:
                    failures[name] = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
                    logger.warning("Loading %s for user %r failed: %s", name, user_id, failures[name])
                return
            if token != self._token:
                logger.debug("Discarding stale %s load #%d (current #%d)", name, token, self._token)
                return
            apply(value)
            self._dispatch(event)

        await asyncio.gather(
            fetch(
                "fear profile",
                load_fear_profile(self._profile_source, user_id, settings=self._settings),
                self._set_fear_profile,
                "profile_loaded",
            ),
            fetch(
                "preferences",
                load_preferences(self._preference_source, user_id, settings=self._settings),
                self._set_preferences,
                "preferences_loaded",
            ),
        )

        if token != self._token:
            return
        if failures:
            self._state = "error"
            self._last_error = "; ".join(f"{k}: {v}" for k, v in failures.items())
        else:
            self._state = "ready"
            self._last_error = None
        self._dispatch("load_settled")

    def _set_fear_profile(self, profile: FearProfile | None) -> None:
        self._fear_profile = profile

    def _set_preferences(self, preferences: PreferenceSet | None) -> None:
        self._preferences = preferences

    # ------------------------------------------------------------------
    # Mutators (UI events)
    # ------------------------------------------------------------------

    def _update_criteria(self, **changes: Any) -> MatchSnapshot:
        try:
            for key in _SET_FIELDS.intersection(changes):
                changes[key] = _as_frozenset(changes[key])
            criteria = FilterCriteria.model_validate({**self._criteria.model_dump(), **changes})
        except ValidationError as e:
            logger.warning("Ignoring invalid filter change %s: %s", changes, e.errors()[0].get("msg"))
            return self._snapshot
        except TypeError as e:
            logger.warning("Ignoring invalid filter change %s: %s", changes, e)
            return self._snapshot
        self._criteria = criteria
        self._dispatch("criteria_changed")
        return self._snapshot

    def set_fear_categories(self, categories: Iterable[str]) -> MatchSnapshot:
        return self._update_criteria(fear_categories=categories)

    def set_max_difficulty(self, level: str | None) -> MatchSnapshot:
        return self._update_criteria(max_difficulty=level)

    def set_max_time_commitment(self, commitment: str | None) -> MatchSnapshot:
        return self._update_criteria(max_time_commitment=commitment)

    def set_max_cost(self, cost: str | None) -> MatchSnapshot:
        return self._update_criteria(max_cost=cost)

    def set_environment(self, environment: str | None) -> MatchSnapshot:
        return self._update_criteria(environment=environment)

    def set_locations(self, location_ids: Iterable[str]) -> MatchSnapshot:
        return self._update_criteria(locations=location_ids)

    def set_search_text(self, text: str | None) -> MatchSnapshot:
        self._search_text = text if isinstance(text, str) else ""
        self._dispatch("search_changed")
        return self._snapshot

    def set_sort_order(self, order: str) -> MatchSnapshot:
        if order not in SORT_ORDERS:
            logger.warning("Ignoring unknown sort order %r", order)
            return self._snapshot
        self._sort_order = order  # type: ignore[assignment]
        self._dispatch("sort_changed")
        return self._snapshot

    def reset_filters(self) -> MatchSnapshot:
        """Reset criteria, sort order and search text to their defaults."""
        self._criteria = FilterCriteria()
        self._sort_order = self._settings.orchestrator.default_sort_order
        self._search_text = ""
        self._dispatch("criteria_changed")
        return self._snapshot

    # ------------------------------------------------------------------
    # Recomputation
    # ------------------------------------------------------------------

    def _dispatch(self, event: MatchEvent) -> None:
        self._pending.append(event)
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._pending:
                current = self._pending.popleft()
                ok = self._recompute(RECOMPUTE_PLAN[current])
                if not ok and self._state in ("ready", "error"):
                    self._state = "error"
                self._publish()
        finally:
            self._dispatching = False

    def _recompute(self, steps: tuple[str, ...]) -> bool:
        ok = True
        if "score" in steps:
            try:
                self._scored = score_catalog(
                    self._catalog, self._fear_profile, self._preferences, settings=self._settings
                )
            except Exception as e:
                logger.exception("Scoring pass failed; keeping the last good scores")
                self._last_error = f"scoring failed: {e}"
                # `_scored` is cleared on session switch, so anything left belongs to this session.
                self._scored = self._scored or self._unscored_catalog()
                ok = False

        if "select" in steps:
            try:
                self._visible = select_visible(self._scored, self._criteria, self._sort_order, self._search_text)
            except Exception as e:
                logger.exception("Filter/sort pass failed; keeping the last good list")
                self._last_error = f"filter/sort failed: {e}"
                self._visible = self._visible or list(self._scored) or self._unscored_catalog()
                ok = False
        return ok

    def _unscored_catalog(self) -> list[ScoredActivity]:
        try:
            return [ScoredActivity.from_activity(a, None) for a in self._catalog]
        except Exception:
            logger.exception("Could not build the unscored catalog fallback")
            return []

    def _build_snapshot(self) -> MatchSnapshot:
        return MatchSnapshot(
            state=self._state,
            activities=list(self._visible),
            criteria=self._criteria,
            sort_order=self._sort_order,
            search_text=self._search_text,
            visible_count=len(self._visible),
            matched_count=len(self._scored),
            user_id=self._user_id,
            last_error=self._last_error,
        )

    def _publish(self) -> None:
        self._snapshot = self._build_snapshot()
        for callback in list(self._subscribers):
            try:
                callback(self._snapshot)
            except Exception:
                logger.exception("Match snapshot subscriber %r failed", callback)
