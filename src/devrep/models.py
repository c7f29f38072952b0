"""Data models for devrep reputation scoring."""

from __future__ import annotations

import math
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, computed_field

# Component caps; they sum to the 100-point ceiling.
ACCOUNT_AGE_CAP = 15.0
REPO_QUALITY_CAP = 25.0
ACTIVITY_CAP = 30.0
COMMUNITY_CAP = 20.0
CONSISTENCY_CAP = 10.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (87.5 -> 88).

    The value is first rounded to 9 decimals so float noise such as
    ``87.99999999999999`` lands on the intended integer.
    """
    return math.floor(round(value, 9) + 0.5)


class TrustLevel(StrEnum):
    """Trust classification levels, lowest to highest."""
    NOVICE = "novice"
    CONTRIBUTOR = "contributor"
    ESTABLISHED = "established"
    TRUSTED = "trusted"
    ELITE = "elite"


# ---------------------------------------------------------------------------
# Raw inputs
# ---------------------------------------------------------------------------


class RepositorySummary(BaseModel):
    """A repository as listed by the hosting platform."""
    name: str
    description: str | None = None
    language: str | None = None
    is_fork: bool = False
    stargazers_count: int | None = None
    forks_count: int | None = None
    watchers_count: int | None = None
    open_issues_count: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ContributionCounts(BaseModel):
    """Contribution-graph style activity counts."""
    total_commits: NonNegativeInt = 0
    contributions_last_year: NonNegativeInt = 0
    total_prs: NonNegativeInt = 0
    merged_prs: NonNegativeInt = 0
    total_issues: NonNegativeInt = 0
    total_reviews: NonNegativeInt = 0
    total_issue_comments: NonNegativeInt = 0
    estimated: bool = False


class PublicEvent(BaseModel):
    """A public activity event, used to estimate contributions."""
    type: str
    created_at: datetime
    commit_count: NonNegativeInt = 0


class UserActivity(BaseModel):
    """Profile and activity summary for the analysed account."""
    login: str
    name: str | None = None
    bio: str | None = None
    created_at: datetime
    followers: NonNegativeInt = 0
    following: NonNegativeInt = 0
    stars_given: NonNegativeInt = 0
    total_gists: NonNegativeInt = 0
    contributions: ContributionCounts = Field(default_factory=ContributionCounts)


class DeveloperData(BaseModel):
    """Everything fetched from the hosting platform for one analysis."""
    activity: UserActivity
    repositories: list[RepositorySummary] = []


# ---------------------------------------------------------------------------
# Canonical statistics
# ---------------------------------------------------------------------------


class DeveloperStatistics(BaseModel):
    """Normalized per-developer metrics consumed by the scorer."""
    model_config = ConfigDict(frozen=True)

    total_repos: NonNegativeInt = 0
    original_repos: NonNegativeInt = 0
    forked_repos: NonNegativeInt = 0
    active_repos: NonNegativeInt = 0

    total_stars: NonNegativeInt = 0
    total_stars_given: NonNegativeInt = 0
    total_forks: NonNegativeInt = 0
    total_watchers: NonNegativeInt = 0

    total_commits: NonNegativeInt = 0
    commits_last_year: NonNegativeInt = 0
    total_prs: NonNegativeInt = 0
    merged_prs: NonNegativeInt = 0
    total_issues: NonNegativeInt = 0
    total_reviews: NonNegativeInt = 0
    total_issue_comments: NonNegativeInt = 0
    total_gists: NonNegativeInt = 0
    contributions_last_year: NonNegativeInt = 0

    account_age_days: NonNegativeInt = 0
    followers: NonNegativeInt = 0
    following: NonNegativeInt = 0

    languages: tuple[str, ...] = ()
    contributions_estimated: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_languages(self) -> int:
        return len(self.languages)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def stars_per_repo(self) -> float:
        if self.total_repos == 0:
            return 0.0
        return round(self.total_stars / self.total_repos, 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pr_merge_rate(self) -> float:
        """Merged PRs as a percentage of all PRs, within 0-100."""
        if self.total_prs == 0:
            return 0.0
        return min(100.0, round(self.merged_prs / self.total_prs * 100, 1))

    @property
    def account_age_years(self) -> float:
        return self.account_age_days / 365


class TopProject(BaseModel):
    """A highlighted original repository."""
    name: str
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    language: str | None = None
    description: str | None = None
    open_issues: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Scoring results
# ---------------------------------------------------------------------------


class ScoreBreakdown(BaseModel):
    """Per-dimension contributions to the base score."""
    account_age: float = Field(default=0.0, ge=0.0, le=ACCOUNT_AGE_CAP)
    repo_quality: float = Field(default=0.0, ge=0.0, le=REPO_QUALITY_CAP)
    activity: float = Field(default=0.0, ge=0.0, le=ACTIVITY_CAP)
    community: float = Field(default=0.0, ge=0.0, le=COMMUNITY_CAP)
    consistency: float = Field(default=0.0, ge=0.0, le=CONSISTENCY_CAP)

    @property
    def total(self) -> float:
        return (
            self.account_age
            + self.repo_quality
            + self.activity
            + self.community
            + self.consistency
        )


class AdvisoryInsights(BaseModel):
    """Parsed reply from the advisory service."""
    score: int = Field(ge=0, le=100)
    strengths: list[str] = []
    improvements: list[str] = []
    reasoning: str = ""


def blend(base: int, advisory: int, weight: float) -> int:
    """Blend the base and advisory scores; the base carries ``1 - weight``."""
    return round_half_up(base * (1.0 - weight) + advisory * weight)


class BaseScore(BaseModel):
    """Score produced without an advisory opinion."""
    kind: Literal["base"] = "base"
    base: int = Field(ge=0, le=100)
    weight: float = 0.3

    @property
    def advisory(self) -> int:
        return self.base

    @property
    def final(self) -> int:
        return blend(self.base, self.advisory, self.weight)


class BlendedScore(BaseModel):
    """Score combining the base rollup with an advisory score."""
    kind: Literal["blended"] = "blended"
    base: int = Field(ge=0, le=100)
    advisory: int = Field(ge=0, le=100)
    weight: float = 0.3
    model: str | None = None

    @property
    def final(self) -> int:
        return blend(self.base, self.advisory, self.weight)


Score = Annotated[BaseScore | BlendedScore, Field(discriminator="kind")]


class ReputationResult(BaseModel):
    """Complete reputation analysis result."""
    final_score: int = Field(ge=0, le=100)
    base_score: int = Field(ge=0, le=100)
    ai_score: int = Field(ge=0, le=100)
    trust_level: TrustLevel
    strengths: list[str] = []
    improvements: list[str] = []
    reasoning: str = ""
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    ai_enhanced: bool = False
    advisory_model: str | None = None


class AnalysisResponse(BaseModel):
    """Body returned by the analysis endpoint."""
    success: bool
    reputation: ReputationResult | None = None
    stats: DeveloperStatistics | None = None
    error: str | None = None
