"""Tests for metrics aggregation."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from devrep.aggregator import (
    aggregate_statistics,
    estimate_contributions,
    is_active,
    months_before,
    select_top_projects,
)
from devrep.models import (
    ContributionCounts,
    PublicEvent,
    RepositorySummary,
    UserActivity,
)

from .conftest import NOW


def _activity(**overrides: object) -> UserActivity:
    data: dict[str, object] = {
        "login": "octodev",
        "created_at": NOW - timedelta(days=100),
    }
    data.update(overrides)
    return UserActivity(**data)  # type: ignore[arg-type]


class TestMonthsBefore:
    def test_simple_shift(self) -> None:
        assert months_before(NOW, 6) == datetime(2025, 12, 15, 12, 0, tzinfo=UTC)

    def test_clamps_to_month_end(self) -> None:
        moment = datetime(2024, 8, 31, tzinfo=UTC)
        assert months_before(moment, 6) == datetime(2024, 2, 29, tzinfo=UTC)

    def test_crosses_year(self) -> None:
        moment = datetime(2026, 3, 31, tzinfo=UTC)
        assert months_before(moment, 6) == datetime(2025, 9, 30, tzinfo=UTC)

    def test_twelve_months(self) -> None:
        assert months_before(NOW, 12) == datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


class TestIsActive:
    def test_recent_update_is_active(self) -> None:
        repo = RepositorySummary(name="a", updated_at=NOW - timedelta(days=150))
        assert is_active(repo, NOW)

    def test_old_update_is_inactive(self) -> None:
        repo = RepositorySummary(name="a", updated_at=NOW - timedelta(days=200))
        assert not is_active(repo, NOW)

    def test_missing_timestamp_is_inactive(self) -> None:
        assert not is_active(RepositorySummary(name="a"), NOW)

    def test_naive_timestamp_treated_as_utc(self) -> None:
        repo = RepositorySummary(name="a", updated_at=datetime(2026, 6, 1))
        assert is_active(repo, NOW)


class TestAggregateStatistics:
    def test_repository_partition(self, sample_repos, sample_activity) -> None:
        stats = aggregate_statistics(sample_repos, sample_activity, now=NOW)
        assert stats.total_repos == 4
        assert stats.forked_repos == 1
        assert stats.original_repos == 3
        # tidewater (May 2026) and cpython (April 2026) fall inside six months
        assert stats.active_repos == 2

    def test_sums_treat_missing_as_zero(self, sample_repos, sample_activity) -> None:
        stats = aggregate_statistics(sample_repos, sample_activity, now=NOW)
        assert stats.total_stars == 49
        assert stats.total_forks == 6
        assert stats.total_watchers == 49

    def test_languages_are_distinct(self, sample_repos, sample_activity) -> None:
        stats = aggregate_statistics(sample_repos, sample_activity, now=NOW)
        assert stats.languages == ("Python", "Rust")
        assert stats.total_languages == 2

    def test_derived_ratios(self, sample_repos, sample_activity) -> None:
        stats = aggregate_statistics(sample_repos, sample_activity, now=NOW)
        assert stats.stars_per_repo == 12.25
        assert stats.pr_merge_rate == 80.0

    def test_activity_fields_copied(self, sample_repos, sample_activity) -> None:
        stats = aggregate_statistics(sample_repos, sample_activity, now=NOW)
        assert stats.total_commits == 310
        assert stats.commits_last_year == 310
        assert stats.contributions_last_year == 402
        assert stats.total_reviews == 11
        assert stats.total_stars_given == 57
        assert stats.total_gists == 4
        assert stats.followers == 33
        assert stats.following == 12
        assert stats.contributions_estimated is False

    def test_account_age_is_floored(self) -> None:
        activity = _activity(created_at=NOW - timedelta(days=10, hours=23))
        stats = aggregate_statistics([], activity, now=NOW)
        assert stats.account_age_days == 10

    def test_account_age_never_negative(self) -> None:
        activity = _activity(created_at=NOW + timedelta(days=3))
        stats = aggregate_statistics([], activity, now=NOW)
        assert stats.account_age_days == 0

    def test_account_age_seven_years(self, sample_activity) -> None:
        stats = aggregate_statistics([], sample_activity, now=NOW)
        assert stats.account_age_days == (NOW - sample_activity.created_at).days

    def test_no_repositories(self) -> None:
        stats = aggregate_statistics([], _activity(), now=NOW)
        assert stats.total_repos == 0
        assert stats.stars_per_repo == 0.0
        assert stats.languages == ()

    def test_no_pull_requests(self) -> None:
        stats = aggregate_statistics([], _activity(), now=NOW)
        assert stats.total_prs == 0
        assert stats.pr_merge_rate == 0.0

    def test_estimated_flag_carried(self) -> None:
        activity = _activity(contributions=ContributionCounts(total_commits=8, estimated=True))
        stats = aggregate_statistics([], activity, now=NOW)
        assert stats.contributions_estimated is True

    def test_custom_active_window(self, sample_repos, sample_activity) -> None:
        stats = aggregate_statistics(
            sample_repos, sample_activity, now=NOW, active_window_months=12
        )
        assert stats.active_repos == 3

    def test_inputs_not_mutated(self, sample_repos, sample_activity) -> None:
        before = [r.model_copy() for r in sample_repos]
        aggregate_statistics(sample_repos, sample_activity, now=NOW)
        assert sample_repos == before


class TestSelectTopProjects:
    def test_excludes_forks_and_sorts_by_stars(self, sample_repos) -> None:
        top = select_top_projects(sample_repos)
        assert [p.name for p in top] == ["tidewater", "harbor-cli", "dotfiles"]
        assert top[0].stars == 42
        assert top[2].stars == 0

    def test_limit(self, sample_repos) -> None:
        assert len(select_top_projects(sample_repos, limit=1)) == 1

    def test_empty(self) -> None:
        assert select_top_projects([]) == []


class TestEstimateContributions:
    def test_scales_push_commits_and_recent_events(self) -> None:
        events = [
            PublicEvent(type="PushEvent", created_at=NOW - timedelta(days=3), commit_count=3),
            PublicEvent(type="PushEvent", created_at=NOW - timedelta(days=40), commit_count=2),
            PublicEvent(type="IssuesEvent", created_at=NOW - timedelta(days=60)),
            PublicEvent(type="WatchEvent", created_at=NOW - timedelta(days=400)),
        ]
        counts = estimate_contributions(events, now=NOW)
        assert counts.total_commits == 20
        assert counts.contributions_last_year == 12
        assert counts.estimated is True
        assert counts.total_prs == 0

    @pytest.mark.parametrize("multiplier", [1, 4, 10])
    def test_multiplier(self, multiplier: int) -> None:
        events = [
            PublicEvent(type="PushEvent", created_at=NOW - timedelta(days=1), commit_count=1),
        ]
        counts = estimate_contributions(events, now=NOW, multiplier=multiplier)
        assert counts.total_commits == multiplier
        assert counts.contributions_last_year == multiplier

    def test_no_events(self) -> None:
        counts = estimate_contributions([], now=NOW)
        assert counts.total_commits == 0
        assert counts.estimated is True
