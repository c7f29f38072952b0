"""Templated strengths, improvements and reasoning.

Used whenever the advisory step yields no usable text. Each template is
evaluated independently, in a fixed order, so identical statistics always
produce identical lists.
"""

from __future__ import annotations

from collections.abc import Sequence

from devrep.models import DeveloperStatistics, TopProject


def default_strengths(
    stats: DeveloperStatistics,
    top_projects: Sequence[TopProject] = (),
    limit: int = 5,
) -> list[str]:
    strengths: list[str] = []

    if stats.original_repos > 15:
        strengths.append(
            f"Prolific creator with {stats.original_repos} original repositories"
        )
    if stats.total_commits > 200:
        strengths.append(f"Active contributor with {stats.total_commits} commits")
    if stats.account_age_days > 730:
        strengths.append(
            f"Long-term commitment ({stats.account_age_years:.1f} years)"
        )
    if stats.total_languages > 5:
        strengths.append(
            f"Versatile developer with {stats.total_languages} languages"
        )
    if stats.total_stars > 50:
        strengths.append(
            f"Strong community recognition with {stats.total_stars} stars"
        )
    if stats.merged_prs > 20:
        strengths.append(f"Effective collaborator with {stats.merged_prs} merged PRs")
    if stats.pr_merge_rate > 70:
        strengths.append(
            f"High-quality contributions ({stats.pr_merge_rate:g}% PR merge rate)"
        )
    if top_projects and top_projects[0].stars > 10:
        top = top_projects[0]
        strengths.append(f'Successful project: "{top.name}" with {top.stars} stars')

    return strengths[:limit]


def default_improvements(stats: DeveloperStatistics, limit: int = 3) -> list[str]:
    improvements: list[str] = []

    if stats.total_commits < 100:
        improvements.append("Increase commit frequency and consistency")
    if stats.total_prs < 20:
        improvements.append("Engage more in open-source collaboration")
    if stats.followers < 30:
        improvements.append("Build community presence through networking")
    if stats.total_stars < 50:
        improvements.append("Focus on creating high-impact projects")
    if stats.total_reviews < 10:
        improvements.append("Participate more in code reviews")

    return improvements[:limit]


def default_reasoning(stats: DeveloperStatistics, base_score: int) -> str:
    """One-paragraph summary of the statistics behind a base score."""
    if base_score >= 60:
        quality = "strong"
    elif base_score >= 40:
        quality = "moderate"
    else:
        quality = "developing"

    return (
        f"Developer with {stats.account_age_years:.1f} years of GitHub activity, "
        f"maintaining {stats.original_repos} original repositories with "
        f"{stats.total_stars} total stars. Shows {quality} presence through "
        f"{stats.total_commits} commits and {stats.total_prs} pull requests. "
        f"Community engagement reflected in {stats.followers} followers and "
        f"{stats.pr_merge_rate:g}% PR merge rate."
    )
