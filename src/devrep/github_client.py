"""Async GitHub API client for fetching developer activity data."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import Any

import httpx

from devrep.aggregator import estimate_contributions
from devrep.config import DevRepConfig, load_config
from devrep.exceptions import GitHubAPIError, RateLimitExhaustedError
from devrep.models import (
    ContributionCounts,
    DeveloperData,
    PublicEvent,
    RepositorySummary,
    UserActivity,
    round_half_up,
)

logger = logging.getLogger(__name__)

_GITHUB_BASE_URL = "https://api.github.com"
_GITHUB_GRAPHQL_URL = f"{_GITHUB_BASE_URL}/graphql"

_CONTRIBUTIONS_QUERY = """
query($username: String!) {
  user(login: $username) {
    contributionsCollection {
      contributionCalendar { totalContributions }
      totalCommitContributions
      totalIssueContributions
      totalPullRequestContributions
      totalPullRequestReviewContributions
    }
  }
}
""".strip()

# Failures in these steps degrade the analysis instead of aborting it.
_RECOVERABLE = (GitHubAPIError, httpx.HTTPError)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


class GitHubClient:
    """Async GitHub API client acting on behalf of the token's owner."""

    def __init__(
        self,
        token: str,
        config: DevRepConfig | None = None,
    ) -> None:
        self._config = config if config is not None else load_config()
        self._client = httpx.AsyncClient(
            base_url=_GITHUB_BASE_URL,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github.v3+json",
            },
            timeout=30.0,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._client.aclose()

    @staticmethod
    def _check_response(response: httpx.Response) -> None:
        """Raise for rate limiting and any other non-2xx response.

        Raises:
            RateLimitExhaustedError: On 403 with a rate-limit message or on 429.
            GitHubAPIError: For any other non-2xx response.
        """
        if response.status_code in (403, 429):
            try:
                body = response.json() if response.content else {}
            except ValueError:
                body = {}
            message = body.get("message", "") if isinstance(body, dict) else ""
            if response.status_code == 429 or "rate limit" in message.lower():
                reset_header = response.headers.get("X-RateLimit-Reset")
                if reset_header:
                    reset_at = datetime.fromtimestamp(int(reset_header), tz=UTC)
                else:
                    reset_at = datetime.now(UTC)
                raise RateLimitExhaustedError(reset_at=reset_at)

        if not response.is_success:
            remaining = response.headers.get("X-RateLimit-Remaining")
            raise GitHubAPIError(
                message=f"GitHub API returned {response.status_code}",
                status_code=response.status_code,
                rate_limit_remaining=int(remaining) if remaining else None,
            )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        """Decode a successful response body; non-JSON raises GitHubAPIError."""
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubAPIError(
                f"GitHub API returned a non-JSON body ({response.status_code})",
                status_code=response.status_code,
            ) from exc

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        response = await self._client.get(path, params=params)
        self._check_response(response)
        return response

    async def _graphql(self, query: str, variables: dict[str, object]) -> dict[str, Any]:
        """Execute a GraphQL query; GraphQL-level errors raise GitHubAPIError."""
        response = await self._client.post(
            _GITHUB_GRAPHQL_URL,
            json={"query": query, "variables": variables},
        )
        self._check_response(response)

        data = self._json(response)
        if data.get("errors"):
            first = data["errors"][0].get("message", "unknown error")
            raise GitHubAPIError(f"GraphQL query failed: {first}", status_code=200)
        return data  # type: ignore[no-any-return]

    async def _count_items(self, path: str) -> int:
        """Count a paginated collection by requesting one item per page.

        The ``last`` link then carries the total; without one the first
        page holds everything.
        """
        response = await self._get(path, params={"per_page": 1})
        last = response.links.get("last")
        if last and last.get("url"):
            page = httpx.URL(last["url"]).params.get("page")
            if page is not None:
                return int(page)
        return len(self._json(response))

    async def fetch_authenticated_user(self) -> dict[str, Any]:
        """Fetch the profile of the token's owner."""
        response = await self._get("/user")
        user: dict[str, Any] = self._json(response)
        logger.info("Fetched user: %s", user.get("login"))
        return user

    async def fetch_owned_repositories(self) -> list[RepositorySummary]:
        """List repositories owned by the user, most recently updated first.

        Paginates until ``fetch.max_repos`` repositories are collected or
        a short page signals the end.
        """
        per_page = self._config.fetch.per_page
        max_repos = self._config.fetch.max_repos
        repos: list[RepositorySummary] = []
        page = 1

        while len(repos) < max_repos:
            response = await self._get(
                "/user/repos",
                params={
                    "per_page": per_page,
                    "page": page,
                    "sort": "updated",
                    "affiliation": "owner",
                },
            )
            items: list[dict[str, Any]] = self._json(response)
            for item in items:
                if len(repos) >= max_repos:
                    break
                repos.append(
                    RepositorySummary(
                        name=item["name"],
                        description=item.get("description"),
                        language=item.get("language"),
                        is_fork=bool(item.get("fork", False)),
                        stargazers_count=item.get("stargazers_count"),
                        forks_count=item.get("forks_count"),
                        watchers_count=item.get("watchers_count"),
                        open_issues_count=item.get("open_issues_count"),
                        created_at=_parse_datetime(item.get("created_at")),
                        updated_at=_parse_datetime(item.get("updated_at")),
                    )
                )
            if len(items) < per_page:
                break
            page += 1

        logger.info("Fetched %d owned repositories", len(repos))
        return repos

    async def fetch_starred_count(self) -> int:
        """Number of repositories the user has starred."""
        return await self._count_items("/user/starred")

    async def fetch_gist_count(self) -> int:
        """Number of gists owned by the user."""
        return await self._count_items("/gists")

    async def fetch_contribution_counts(self, login: str) -> ContributionCounts:
        """Fetch trailing-year contribution totals via GraphQL."""
        result = await self._graphql(_CONTRIBUTIONS_QUERY, {"username": login})
        user = result["data"]["user"]
        if user is None:
            raise GitHubAPIError(f"User not found: {login}", status_code=404)

        collection = user["contributionsCollection"]
        counts = ContributionCounts(
            total_commits=collection["totalCommitContributions"],
            contributions_last_year=collection["contributionCalendar"]["totalContributions"],
            total_prs=collection["totalPullRequestContributions"],
            total_issues=collection["totalIssueContributions"],
            total_reviews=collection["totalPullRequestReviewContributions"],
        )
        logger.debug("GraphQL contributions for %s: %s", login, counts)
        return counts

    async def fetch_public_events(self, login: str) -> list[PublicEvent]:
        """Fetch the most recent page of the user's public events."""
        response = await self._get(
            f"/users/{login}/events/public",
            params={"per_page": self._config.fetch.per_page},
        )
        events: list[PublicEvent] = []
        for item in self._json(response):
            payload = item.get("payload") or {}
            commits = payload.get("commits")
            if isinstance(commits, list):
                commit_count = len(commits)
            else:
                commit_count = int(payload.get("size") or 0)
            events.append(
                PublicEvent(
                    type=item.get("type", ""),
                    created_at=datetime.fromisoformat(item["created_at"]),
                    commit_count=commit_count,
                )
            )
        return events

    async def search_count(self, query: str) -> int:
        """Return ``total_count`` for an issue/PR search query."""
        response = await self._get("/search/issues", params={"q": query, "per_page": 1})
        return int(self._json(response).get("total_count", 0))

    @staticmethod
    async def _best_effort(call: Awaitable[int], what: str, default: int = 0) -> int:
        try:
            return await call
        except _RECOVERABLE as exc:
            logger.warning("Could not fetch %s: %s", what, exc)
            return default

    async def collect_contributions(self, login: str) -> ContributionCounts:
        """Gather contribution counts, degrading step by step on failure.

        1. GraphQL contribution collection.
        2. On failure, an estimate from the public event history.
        3. If that fails too, zero counts.

        PR, merged-PR and issue totals are then completed from the search
        API where the collection left them at zero.
        """
        fetch = self._config.fetch
        try:
            counts = await self.fetch_contribution_counts(login)
        except _RECOVERABLE as exc:
            logger.warning(
                "Contribution query failed for %s (%s); estimating from public events",
                login, exc,
            )
            try:
                events = await self.fetch_public_events(login)
                counts = estimate_contributions(
                    events, multiplier=fetch.event_estimate_multiplier
                )
            except _RECOVERABLE as fallback_exc:
                logger.warning("Event fallback failed for %s: %s", login, fallback_exc)
                counts = ContributionCounts(estimated=True)

        pr_query = f"author:{login} type:pr"
        merged_query = f"author:{login} type:pr is:merged"

        total_prs = counts.total_prs
        if total_prs == 0:
            total_prs = await self._best_effort(self.search_count(pr_query), "PR count")
            merged_prs = await self._best_effort(
                self.search_count(merged_query), "merged PR count"
            )
        else:
            estimate = round_half_up(total_prs * fetch.merged_pr_estimate_ratio)
            merged_prs = await self._best_effort(
                self.search_count(merged_query), "merged PR count", default=estimate
            )

        total_issues = counts.total_issues
        if total_issues == 0:
            total_issues = await self._best_effort(
                self.search_count(f"author:{login} type:issue"), "issue count"
            )

        logger.info(
            "PR stats for %s: total=%d merged=%d issues=%d reviews=%d",
            login, total_prs, merged_prs, total_issues, counts.total_reviews,
        )
        return counts.model_copy(
            update={
                "total_prs": total_prs,
                "merged_prs": merged_prs,
                "total_issues": total_issues,
            }
        )

    async def get_developer_data(self) -> DeveloperData:
        """Main entry point: fetch everything needed for one analysis.

        The user profile and repository listing are required; a failure
        there propagates. Every other source degrades to an estimate or
        zero.
        """
        user = await self.fetch_authenticated_user()
        login = str(user["login"])
        repos = await self.fetch_owned_repositories()

        stars_given = await self._best_effort(self.fetch_starred_count(), "starred repositories")
        contributions = await self.collect_contributions(login)
        total_gists = await self._best_effort(self.fetch_gist_count(), "gists")

        activity = UserActivity(
            login=login,
            name=user.get("name"),
            bio=user.get("bio"),
            created_at=datetime.fromisoformat(user["created_at"]),
            followers=user.get("followers") or 0,
            following=user.get("following") or 0,
            stars_given=stars_given,
            total_gists=total_gists,
            contributions=contributions,
        )
        return DeveloperData(activity=activity, repositories=repos)
