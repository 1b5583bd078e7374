"""
Small explainability formatting helpers.

Used by the CLI to print compact summaries of match breakdowns.
"""

from __future__ import annotations

from fearmatch.domain.models import MatchBreakdown


def one_line_summary(breakdown: MatchBreakdown) -> str:
    """Render a compact single-line summary for a match breakdown."""
    parts = [f"total={breakdown.total_score:.3f}"]
    if breakdown.neutral:
        parts.append("neutral (no preferences yet)")
    for comp in breakdown.components:
        if not comp.counted:
            parts.append(f"{comp.name}=n/a")
            continue
        parts.append(f"{comp.name}={comp.score:.3f} (w={comp.weight:g})")
    return " | ".join(parts)


def reasons(breakdown: MatchBreakdown, *, limit: int = 4) -> list[str]:
    """Flatten component reasons for list views, most heavily weighted component first."""
    ordered = sorted(breakdown.components, key=lambda c: c.weight, reverse=True)
    out: list[str] = []
    for comp in ordered:
        out.extend(comp.reasons)
    return out[:limit]
