"""Reputation scoring engine: weighted rollup plus optional advisory blend."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel

from devrep.advisory import (
    Advisor,
    GeminiAdvisor,
    build_profile_prompt,
    extract_json_object,
    parse_insights,
)
from devrep.aggregator import aggregate_statistics, select_top_projects
from devrep.config import DevRepConfig, load_config
from devrep.models import (
    ACCOUNT_AGE_CAP,
    ACTIVITY_CAP,
    COMMUNITY_CAP,
    CONSISTENCY_CAP,
    REPO_QUALITY_CAP,
    AdvisoryInsights,
    BaseScore,
    BlendedScore,
    DeveloperStatistics,
    ReputationResult,
    Score,
    ScoreBreakdown,
    TopProject,
    TrustLevel,
    round_half_up,
)
from devrep.narrative import default_improvements, default_reasoning, default_strengths

logger = logging.getLogger(__name__)


class AnalysisOutcome(BaseModel):
    """Everything produced by one end-to-end analysis."""
    login: str
    statistics: DeveloperStatistics
    top_projects: list[TopProject] = []
    result: ReputationResult


class ReputationScorer:
    """Compute reputation scores from canonical developer statistics."""

    def __init__(self, config: DevRepConfig, advisor: Advisor | None = None) -> None:
        self.config = config
        self.advisor = advisor

    # ------------------------------------------------------------------
    # Quantitative rollup
    # ------------------------------------------------------------------

    @staticmethod
    def compute_breakdown(stats: DeveloperStatistics) -> ScoreBreakdown:
        """Weighted per-dimension scores, each sub-term capped before summing."""
        account_age = min(stats.account_age_years * 5, 15)

        repo_quality = (
            min(stats.original_repos * 0.8, 12)
            + min(stats.total_stars * 0.15, 8)
            + min(stats.active_repos * 0.5, 5)
        )

        activity = (
            min(stats.commits_last_year * 0.05, 15)
            + min(stats.total_prs * 0.4, 10)
            + min(stats.pr_merge_rate * 0.05, 5)
        )

        community = (
            min(stats.total_issues * 0.2, 5)
            + min(stats.total_reviews * 0.3, 6)
            + min(stats.followers * 0.15, 6)
            + min(stats.total_issue_comments * 0.1, 3)
        )

        consistency = (
            min(stats.contributions_last_year * 0.03, 5)
            + min(stats.total_languages * 0.5, 5)
        )

        return ScoreBreakdown(
            account_age=min(account_age, ACCOUNT_AGE_CAP),
            repo_quality=min(repo_quality, REPO_QUALITY_CAP),
            activity=min(activity, ACTIVITY_CAP),
            community=min(community, COMMUNITY_CAP),
            consistency=min(consistency, CONSISTENCY_CAP),
        )

    @staticmethod
    def compute_base_score(breakdown: ScoreBreakdown) -> int:
        return max(0, min(100, round_half_up(breakdown.total)))

    def classify(self, final_score: int) -> TrustLevel:
        """Map a final score to a trust level, highest band first."""
        thresholds = self.config.thresholds
        if final_score >= thresholds.elite:
            return TrustLevel.ELITE
        if final_score >= thresholds.trusted:
            return TrustLevel.TRUSTED
        if final_score >= thresholds.established:
            return TrustLevel.ESTABLISHED
        if final_score >= thresholds.contributor:
            return TrustLevel.CONTRIBUTOR
        return TrustLevel.NOVICE

    # ------------------------------------------------------------------
    # Advisory step
    # ------------------------------------------------------------------

    async def _advise(
        self,
        stats: DeveloperStatistics,
        top_projects: Sequence[TopProject],
        base_score: int,
        login: str,
        bio: str | None,
    ) -> tuple[AdvisoryInsights, str] | None:
        """Ask the advisor for a qualitative assessment.

        Returns ``None`` on any failure; the caller then scores with the
        base score alone.
        """
        if self.advisor is None:
            logger.info("Advisory service not configured - using base score only")
            return None

        prompt = build_profile_prompt(stats, top_projects, base_score, login=login, bio=bio)
        timeout = self.config.advisory.timeout_seconds
        try:
            reply = await asyncio.wait_for(self.advisor.generate(prompt), timeout=timeout)
        except TimeoutError:
            logger.warning("Advisory step timed out after %.1fs - using base score", timeout)
            return None
        except Exception as exc:
            logger.warning("Advisory step failed (%s) - using base score", exc)
            return None

        payload = extract_json_object(reply.text)
        if payload is None:
            logger.warning("Advisory reply from %s had no JSON object - using base score",
                           reply.model)
            return None

        insights = parse_insights(payload, base_score)
        if insights is None:
            logger.warning("Advisory reply from %s had a non-numeric score - using base score",
                           reply.model)
            return None

        logger.info("Advisory score from %s: %d", reply.model, insights.score)
        return insights, reply.model

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def score(
        self,
        stats: DeveloperStatistics,
        top_projects: Sequence[TopProject] = (),
        login: str = "",
        bio: str | None = None,
    ) -> ReputationResult:
        """Score *stats*, blending in the advisory opinion when available."""
        breakdown = self.compute_breakdown(stats)
        base = self.compute_base_score(breakdown)
        logger.info("Base score %d (breakdown: %s)", base, breakdown.model_dump())

        weight = self.config.advisory.weight
        advice = await self._advise(stats, top_projects, base, login, bio)

        score: Score
        insights: AdvisoryInsights | None = None
        model: str | None = None
        if advice is None:
            score = BaseScore(base=base, weight=weight)
        else:
            insights, model = advice
            score = BlendedScore(base=base, advisory=insights.score, weight=weight, model=model)

        final = score.final
        trust_level = self.classify(final)

        narrative = self.config.narrative
        if insights is not None and insights.strengths:
            strengths = insights.strengths[: narrative.max_strengths]
        else:
            strengths = default_strengths(stats, top_projects, narrative.max_strengths)
        if insights is not None and insights.improvements:
            improvements = insights.improvements[: narrative.max_improvements]
        else:
            improvements = default_improvements(stats, narrative.max_improvements)
        if insights is not None and insights.reasoning:
            reasoning = insights.reasoning
        else:
            reasoning = default_reasoning(stats, base)

        logger.info("Final score %d (%s)", final, trust_level.value)
        return ReputationResult(
            final_score=final,
            base_score=base,
            ai_score=score.advisory,
            trust_level=trust_level,
            strengths=strengths,
            improvements=improvements,
            reasoning=reasoning,
            breakdown=breakdown,
            ai_enhanced=isinstance(score, BlendedScore),
            advisory_model=model,
        )


async def analyze_developer(
    token: str | None = None,
    config: DevRepConfig | None = None,
    advisor: Advisor | None = None,
    now: datetime | None = None,
) -> AnalysisOutcome:
    """Convenience function: fetch GitHub data, aggregate it, and score it.

    Parameters
    ----------
    token:
        GitHub token of the developer; falls back to the ``GITHUB_TOKEN``
        env var.
    config:
        Optional configuration; defaults are used when *None*.
    advisor:
        Optional advisory collaborator. When *None* and an advisory API key
        is configured, a :class:`~devrep.advisory.GeminiAdvisor` is used.
    now:
        Evaluation instant; the current time when *None*.
    """
    from devrep.github_client import GitHubClient

    if config is None:
        config = load_config()

    if token is None:
        token = os.environ.get("GITHUB_TOKEN", "")

    async with GitHubClient(token=token, config=config) as client:
        data = await client.get_developer_data()

    stats = aggregate_statistics(
        data.repositories,
        data.activity,
        now=now,
        active_window_months=config.fetch.active_window_months,
    )
    top_projects = select_top_projects(data.repositories)
    activity = data.activity

    if advisor is None and config.advisory.enabled:
        async with GeminiAdvisor(config.advisory.api_key or "", config.advisory) as gemini:
            result = await ReputationScorer(config, gemini).score(
                stats, top_projects, login=activity.login, bio=activity.bio
            )
    else:
        result = await ReputationScorer(config, advisor).score(
            stats, top_projects, login=activity.login, bio=activity.bio
        )

    return AnalysisOutcome(
        login=activity.login,
        statistics=stats,
        top_projects=top_projects,
        result=result,
    )
