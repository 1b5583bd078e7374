"""
Collaborator interfaces for user records.

Identity, persistence and transport live outside fearmatch. The orchestrator
only needs these async fetchers; a web app would back them with its database
client. `InMemoryUserRecords` serves the CLI and tests.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol


class FearProfileSource(Protocol):
    async def fetch_assessment(self, user_id: str) -> Mapping[str, Any] | None:
        """Latest assessment record for the user, or None if never assessed."""
        ...

    async def fetch_profile(self, user_id: str) -> Mapping[str, Any] | None:
        """The user's profile row (carries `key_fears` and `last_assessment`)."""
        ...


class PreferenceSource(Protocol):
    async def fetch_preferences(self, user_id: str) -> Mapping[str, Any] | None:
        ...


class InMemoryUserRecords:
    """Dict-backed implementation of both collaborator protocols."""

    def __init__(
        self,
        *,
        assessments: Mapping[str, Mapping[str, Any]] | None = None,
        profiles: Mapping[str, Mapping[str, Any]] | None = None,
        preferences: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self.assessments = dict(assessments or {})
        self.profiles = dict(profiles or {})
        self.preferences = dict(preferences or {})

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "InMemoryUserRecords":
        """Build from a single-user document: `{user_id, assessment?, key_fears?, preferences?}`."""
        user_id = str(doc.get("user_id") or "local")
        assessments = {user_id: doc["assessment"]} if isinstance(doc.get("assessment"), Mapping) else {}
        profile = {"key_fears": doc.get("key_fears"), "last_assessment": doc.get("last_assessment")}
        preferences = {user_id: doc["preferences"]} if isinstance(doc.get("preferences"), Mapping) else {}
        return cls(assessments=assessments, profiles={user_id: profile}, preferences=preferences)

    async def fetch_assessment(self, user_id: str) -> Mapping[str, Any] | None:
        return self.assessments.get(user_id)

    async def fetch_profile(self, user_id: str) -> Mapping[str, Any] | None:
        return self.profiles.get(user_id)

    async def fetch_preferences(self, user_id: str) -> Mapping[str, Any] | None:
        return self.preferences.get(user_id)
