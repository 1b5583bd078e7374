"""
FearMatch CLI entrypoint.

This CLI is intended for quick local demos and debugging without a UI.
It drives a `MatchOrchestrator` over an in-memory user document, so the
output is exactly what a UI would render for the same filter selections.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any

from fearmatch.catalog.loader import load_catalog
from fearmatch.config.settings import get_settings
from fearmatch.core.env import resolve_project_path
from fearmatch.core.logging import configure_logging
from fearmatch.domain.models import (
    COST_RANGES,
    DIFFICULTY_LEVELS,
    ENVIRONMENTS,
    FEAR_CATEGORIES,
    SORT_ORDERS,
    TIME_COMMITMENTS,
)
from fearmatch.ingestion.profile import fear_level, load_fear_profile, load_preferences
from fearmatch.ingestion.sources import InMemoryUserRecords
from fearmatch.recommender.orchestrator import MatchOrchestrator
from fearmatch.scoring.explain import one_line_summary, reasons
from fearmatch.scoring.match import explain_match


def _read_user_document(path: str | None) -> dict[str, Any]:
    """Read the `--profile` JSON document (an empty document means "no profile yet")."""
    if not path:
        return {"user_id": "local"}
    payload = json.loads(resolve_project_path(Path(path)).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Profile file {path} must contain a JSON object.")
    return payload


async def _run_recommend(args: argparse.Namespace) -> int:
    settings = get_settings()
    doc = _read_user_document(args.profile)
    records = InMemoryUserRecords.from_document(doc)
    orchestrator = MatchOrchestrator(load_catalog(settings), records, settings=settings)

    await orchestrator.start_session(str(doc.get("user_id") or "local"))
    if args.fear:
        orchestrator.set_fear_categories(args.fear)
    if args.max_difficulty:
        orchestrator.set_max_difficulty(args.max_difficulty)
    if args.max_time:
        orchestrator.set_max_time_commitment(args.max_time)
    if args.max_cost:
        orchestrator.set_max_cost(args.max_cost)
    if args.environment:
        orchestrator.set_environment(args.environment)
    if args.location:
        orchestrator.set_locations(args.location)
    if args.search:
        orchestrator.set_search_text(args.search)
    snapshot = orchestrator.set_sort_order(args.sort)

    if args.json:
        print(json.dumps(snapshot.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    print(f"State: {snapshot.state}")
    print(f"Showing {snapshot.visible_count} of {snapshot.matched_count} activities (sort: {snapshot.sort_order})")
    for i, activity in enumerate(snapshot.activities[: args.limit], start=1):
        score = "n/a" if activity.match_score is None else f"{activity.match_score:.0%}"
        fears = ", ".join(activity.fear_categories)
        print(f"{i:>2}. {activity.title}  [{score}]  {activity.difficulty} / {activity.time_commitment} / {fears}")
    if snapshot.last_error:
        print(f"Warning: {snapshot.last_error}")
    return 0


async def _run_explain(args: argparse.Namespace) -> int:
    settings = get_settings()
    doc = _read_user_document(args.profile)
    records = InMemoryUserRecords.from_document(doc)
    user_id = str(doc.get("user_id") or "local")

    catalog = {a.id: a for a in load_catalog(settings)}
    activity = catalog.get(args.activity)
    if activity is None:
        raise ValueError(f"Unknown activity '{args.activity}'.")

    profile = await load_fear_profile(records, user_id, settings=settings)
    preferences = await load_preferences(records, user_id, settings=settings)
    breakdown = explain_match(activity, profile, preferences, settings=settings)

    if args.json:
        print(json.dumps(breakdown.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    print(f"{activity.title}: {one_line_summary(breakdown)}")
    if profile is not None:
        levels = ", ".join(f"{e.category}={fear_level(e.intensity)}" for e in profile.entries)
        print(f"  fear profile: {levels}{' (from selected fears)' if profile.synthetic else ''}")
    for line in reasons(breakdown):
        print(f"  - {line}")
    return 0


def _cmd_recommend(args: argparse.Namespace) -> int:
    """Handle the `recommend` subcommand."""
    return asyncio.run(_run_recommend(args))


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the `explain` subcommand."""
    return asyncio.run(_run_explain(args))


def _cmd_catalog(_: argparse.Namespace) -> int:
    for activity in load_catalog(get_settings()):
        print(f"{activity.id:<28} {activity.title}  ({', '.join(activity.fear_categories)})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the FearMatch CLI."""
    parser = argparse.ArgumentParser(prog="fearmatch")
    sub = parser.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("recommend", help="List activities for a user profile and filter selections.")
    rec.add_argument("--profile", type=str, default=None, help="JSON: {user_id, assessment?, key_fears?, preferences?}")
    rec.add_argument("--fear", action="append", default=[], choices=FEAR_CATEGORIES, help="Repeatable.")
    rec.add_argument("--max-difficulty", choices=DIFFICULTY_LEVELS, default=None)
    rec.add_argument("--max-time", choices=TIME_COMMITMENTS, default=None)
    rec.add_argument("--max-cost", choices=COST_RANGES, default=None)
    rec.add_argument("--environment", choices=ENVIRONMENTS, default=None)
    rec.add_argument("--location", action="append", default=[], help="Location id. Repeatable.")
    rec.add_argument("--search", type=str, default=None)
    rec.add_argument("--sort", choices=SORT_ORDERS, default="recommended")
    rec.add_argument("--limit", type=int, default=20)
    rec.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    rec.set_defaults(func=_cmd_recommend)

    exp = sub.add_parser("explain", help="Show how one activity's match score is built.")
    exp.add_argument("--profile", type=str, default=None)
    exp.add_argument("--activity", required=True, help="Activity id (see `fearmatch catalog`).")
    exp.add_argument("--json", action="store_true")
    exp.set_defaults(func=_cmd_explain)

    cat = sub.add_parser("catalog", help="List catalog activities.")
    cat.set_defaults(func=_cmd_catalog)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m fearmatch.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
