"""Metrics aggregation: raw platform data to canonical statistics."""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from devrep.models import (
    ContributionCounts,
    DeveloperStatistics,
    PublicEvent,
    RepositorySummary,
    TopProject,
    UserActivity,
)


def months_before(moment: datetime, months: int) -> datetime:
    """Return *moment* shifted back by whole calendar months.

    The day is clamped to the length of the target month, so
    31 August minus six months is 28 (or 29) February.
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def is_active(
    repo: RepositorySummary, now: datetime, window_months: int = 6
) -> bool:
    """A repository is active if it was updated within the trailing window."""
    if repo.updated_at is None:
        return False
    return _as_utc(repo.updated_at) > months_before(now, window_months)


def aggregate_statistics(
    repos: Sequence[RepositorySummary],
    activity: UserActivity,
    now: datetime | None = None,
    active_window_months: int = 6,
) -> DeveloperStatistics:
    """Fold repository summaries and user activity into one statistics record.

    Absent per-repository counts are treated as zero. Derived ratios are
    computed on the resulting record, after every sum is final.
    """
    now = _as_utc(now) if now is not None else datetime.now(UTC)

    total_repos = len(repos)
    forked_repos = sum(1 for r in repos if r.is_fork)
    active_repos = sum(1 for r in repos if is_active(r, now, active_window_months))

    total_stars = sum(r.stargazers_count or 0 for r in repos)
    total_forks = sum(r.forks_count or 0 for r in repos)
    total_watchers = sum(r.watchers_count or 0 for r in repos)

    languages = sorted({r.language for r in repos if r.language})

    age = now - _as_utc(activity.created_at)
    account_age_days = max(0, age.days)

    counts = activity.contributions
    return DeveloperStatistics(
        total_repos=total_repos,
        original_repos=total_repos - forked_repos,
        forked_repos=forked_repos,
        active_repos=active_repos,
        total_stars=total_stars,
        total_stars_given=activity.stars_given,
        total_forks=total_forks,
        total_watchers=total_watchers,
        total_commits=counts.total_commits,
        commits_last_year=counts.total_commits,
        total_prs=counts.total_prs,
        merged_prs=counts.merged_prs,
        total_issues=counts.total_issues,
        total_reviews=counts.total_reviews,
        total_issue_comments=counts.total_issue_comments,
        total_gists=activity.total_gists,
        contributions_last_year=counts.contributions_last_year,
        account_age_days=account_age_days,
        followers=activity.followers,
        following=activity.following,
        languages=tuple(languages),
        contributions_estimated=counts.estimated,
    )


def select_top_projects(
    repos: Iterable[RepositorySummary], limit: int = 5
) -> list[TopProject]:
    """Return the most-starred original repositories, highest first."""
    originals = [r for r in repos if not r.is_fork]
    originals.sort(key=lambda r: r.stargazers_count or 0, reverse=True)
    return [
        TopProject(
            name=r.name,
            stars=r.stargazers_count or 0,
            forks=r.forks_count or 0,
            watchers=r.watchers_count or 0,
            language=r.language,
            description=r.description,
            open_issues=r.open_issues_count or 0,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )
        for r in originals[:limit]
    ]


def estimate_contributions(
    events: Iterable[PublicEvent],
    now: datetime | None = None,
    multiplier: int = 4,
) -> ContributionCounts:
    """Estimate yearly activity from the recent public event history.

    The event feed only covers a recent slice of activity, so counts are
    scaled by *multiplier* to approximate a year.
    """
    now = _as_utc(now) if now is not None else datetime.now(UTC)
    one_year_ago = months_before(now, 12)

    pushed_commits = 0
    recent_events = 0
    for event in events:
        if event.type == "PushEvent":
            pushed_commits += event.commit_count
        if _as_utc(event.created_at) > one_year_ago:
            recent_events += 1

    return ContributionCounts(
        total_commits=pushed_commits * multiplier,
        contributions_last_year=recent_events * multiplier,
        estimated=True,
    )
