"""Shared test fixtures for devrep tests."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from devrep.advisory import AdvisoryReply
from devrep.config import DevRepConfig
from devrep.models import (
    ContributionCounts,
    DeveloperStatistics,
    RepositorySummary,
    TopProject,
    UserActivity,
)

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=UTC)


class StubAdvisor:
    """In-process advisor returning a canned reply or raising."""

    def __init__(
        self,
        text: str = "",
        model: str = "stub-model",
        exc: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.text = text
        self.model = model
        self.exc = exc
        self.delay = delay
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> AdvisoryReply:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return AdvisoryReply(model=self.model, text=self.text)


@pytest.fixture
def config() -> DevRepConfig:
    return DevRepConfig()


@pytest.fixture
def example_stats() -> DeveloperStatistics:
    """Statistics whose base score works out to 88 (elite)."""
    return DeveloperStatistics(
        total_repos=20,
        original_repos=20,
        active_repos=10,
        total_stars=80,
        total_commits=250,
        commits_last_year=250,
        total_prs=30,
        merged_prs=24,
        total_issues=10,
        total_reviews=15,
        total_issue_comments=5,
        contributions_last_year=200,
        account_age_days=1460,
        followers=40,
        languages=("C", "Go", "Python", "Rust", "TypeScript", "Zig"),
    )


@pytest.fixture
def newcomer_stats() -> DeveloperStatistics:
    return DeveloperStatistics(
        total_repos=2,
        original_repos=1,
        forked_repos=1,
        active_repos=1,
        total_stars=1,
        total_commits=12,
        commits_last_year=12,
        total_prs=1,
        merged_prs=0,
        contributions_last_year=20,
        account_age_days=90,
        followers=2,
        languages=("JavaScript",),
    )


@pytest.fixture
def sample_repos() -> list[RepositorySummary]:
    return [
        RepositorySummary(
            name="tidewater",
            description="Streaming tide tables",
            language="Rust",
            stargazers_count=42,
            forks_count=5,
            watchers_count=42,
            open_issues_count=3,
            created_at=datetime(2022, 3, 1, tzinfo=UTC),
            updated_at=datetime(2026, 5, 30, tzinfo=UTC),
        ),
        RepositorySummary(
            name="dotfiles",
            language=None,
            stargazers_count=None,
            forks_count=None,
            watchers_count=None,
            created_at=datetime(2020, 1, 10, tzinfo=UTC),
            updated_at=datetime(2025, 1, 2, tzinfo=UTC),
        ),
        RepositorySummary(
            name="cpython",
            language="Python",
            is_fork=True,
            stargazers_count=0,
            forks_count=0,
            watchers_count=0,
            created_at=datetime(2023, 7, 4, tzinfo=UTC),
            updated_at=datetime(2026, 4, 1, tzinfo=UTC),
        ),
        RepositorySummary(
            name="harbor-cli",
            language="Rust",
            stargazers_count=7,
            forks_count=1,
            watchers_count=7,
            created_at=datetime(2024, 9, 9, tzinfo=UTC),
            updated_at=datetime(2025, 11, 20, tzinfo=UTC),
        ),
    ]


@pytest.fixture
def sample_activity() -> UserActivity:
    return UserActivity(
        login="octodev",
        name="Octo Dev",
        bio="Rustacean",
        created_at=datetime(2019, 6, 15, 12, 0, tzinfo=UTC),
        followers=33,
        following=12,
        stars_given=57,
        total_gists=4,
        contributions=ContributionCounts(
            total_commits=310,
            contributions_last_year=402,
            total_prs=25,
            merged_prs=20,
            total_issues=8,
            total_reviews=11,
        ),
    )


@pytest.fixture
def top_projects() -> list[TopProject]:
    return [
        TopProject(name="tidewater", stars=42, forks=5, language="Rust"),
        TopProject(name="harbor-cli", stars=7, forks=1, language="Rust"),
    ]
