"""Output formatting for reputation results."""

from __future__ import annotations

import click

from devrep.models import TrustLevel
from devrep.scorer import AnalysisOutcome

_TRUST_LEVEL_COLORS: dict[TrustLevel, str] = {
    TrustLevel.ELITE: "magenta",
    TrustLevel.TRUSTED: "green",
    TrustLevel.ESTABLISHED: "cyan",
    TrustLevel.CONTRIBUTOR: "yellow",
    TrustLevel.NOVICE: "white",
}

_BREAKDOWN_ROWS: list[tuple[str, str, int]] = [
    ("account_age", "Account age", 15),
    ("repo_quality", "Repository quality", 25),
    ("activity", "Activity", 30),
    ("community", "Community", 20),
    ("consistency", "Consistency", 10),
]


def format_cli_output(outcome: AnalysisOutcome, verbose: bool = False) -> str:
    """Format an analysis for terminal display with color."""
    result = outcome.result
    stats = outcome.statistics
    color = _TRUST_LEVEL_COLORS.get(result.trust_level, "white")

    level_styled = click.style(result.trust_level.value.upper(), fg=color, bold=True)
    score_styled = click.style(f"{result.final_score}/100", bold=True)

    lines: list[str] = [
        f"Reputation: {level_styled} ({score_styled})",
        f"User: {outcome.login}",
    ]
    if result.ai_enhanced:
        lines.append(
            f"Base score: {result.base_score} | AI score: {result.ai_score}"
            f" ({result.advisory_model or 'advisory'})"
        )
    else:
        lines.append(f"Base score: {result.base_score} (no AI advisory)")

    if result.strengths:
        lines.append("")
        lines.append("Strengths:")
        lines.extend(f"  + {s}" for s in result.strengths)

    if result.improvements:
        lines.append("")
        lines.append("Improvements:")
        lines.extend(f"  - {s}" for s in result.improvements)

    if verbose:
        lines.append("")
        lines.append("Score breakdown:")
        for field, label, cap in _BREAKDOWN_ROWS:
            value = getattr(result.breakdown, field)
            lines.append(f"  {label}: {value:g}/{cap}")

        lines.append("")
        lines.append(
            f"Account age: {stats.account_age_days} days | "
            f"Repos: {stats.total_repos} ({stats.original_repos} original, "
            f"{stats.active_repos} active) | Stars: {stats.total_stars}"
        )
        lines.append(
            f"Commits: {stats.total_commits} | PRs: {stats.total_prs} "
            f"({stats.pr_merge_rate:g}% merged) | Issues: {stats.total_issues} | "
            f"Reviews: {stats.total_reviews}"
        )
        if stats.languages:
            lines.append(f"Languages: {', '.join(stats.languages)}")
        if stats.contributions_estimated:
            lines.append("Note: contribution counts estimated from public events")

        if outcome.top_projects:
            lines.append("")
            lines.append("Top projects:")
            for p in outcome.top_projects:
                lang = p.language or "N/A"
                lines.append(f"  {p.name}: {p.stars} stars ({lang})")

        if result.reasoning:
            lines.append("")
            lines.append(result.reasoning)

    return "\n".join(lines)


def format_json(outcome: AnalysisOutcome) -> str:
    """Format an analysis as JSON."""
    return outcome.model_dump_json(indent=2)
