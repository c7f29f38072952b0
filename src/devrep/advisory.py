"""Generative-text advisory service used to refine the base score."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterator, Sequence
from typing import Any, Protocol

import httpx
from pydantic import BaseModel

from devrep.config import AdvisoryConfig
from devrep.exceptions import AdvisoryError
from devrep.models import AdvisoryInsights, DeveloperStatistics, TopProject, round_half_up

logger = logging.getLogger(__name__)


class AdvisoryReply(BaseModel):
    """Raw text returned by the advisory service and the model that produced it."""
    model: str
    text: str


class Advisor(Protocol):
    """Anything that can turn a prompt into an :class:`AdvisoryReply`."""

    async def generate(self, prompt: str) -> AdvisoryReply: ...


class ModelSelectionPolicy:
    """Ordered model preference with a rule for falling through to the next.

    Unknown models (404), throttling (429) and server errors move on to the
    next candidate; anything else aborts the advisory step.
    """

    _FALLTHROUGH_STATUSES = frozenset({404, 429})

    def __init__(self, models: Sequence[str]) -> None:
        if not models:
            raise ValueError("at least one advisory model is required")
        self.models = list(models)

    def candidates(self) -> Iterator[str]:
        yield from self.models

    def should_try_next(self, exc: AdvisoryError) -> bool:
        return exc.status_code in self._FALLTHROUGH_STATUSES or exc.status_code >= 500


class GeminiAdvisor:
    """Async client for the Generative Language ``generateContent`` API."""

    def __init__(
        self,
        api_key: str,
        config: AdvisoryConfig | None = None,
        policy: ModelSelectionPolicy | None = None,
    ) -> None:
        self._config = config if config is not None else AdvisoryConfig(api_key=api_key)
        self._policy = policy if policy is not None else ModelSelectionPolicy(self._config.models)
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            headers={"x-goog-api-key": api_key},
            timeout=self._config.timeout_seconds,
        )

    async def __aenter__(self) -> GeminiAdvisor:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _generate_with(self, model: str, prompt: str) -> str:
        """Send *prompt* to a single model and return the reply text.

        Raises:
            AdvisoryError: On transport failure, a non-200 response, or a
                reply without any text part.
        """
        try:
            response = await self._client.post(
                f"/v1beta/models/{model}:generateContent",
                json={
                    "contents": [{"parts": [{"text": prompt}]}],
                    "generationConfig": {"temperature": self._config.temperature},
                },
            )
        except httpx.HTTPError as exc:
            raise AdvisoryError(f"Advisory request failed: {exc}", model=model) from exc

        if response.status_code != 200:
            raise AdvisoryError(
                f"Advisory service returned {response.status_code}",
                status_code=response.status_code,
                model=model,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise AdvisoryError("Advisory reply was not JSON", model=model) from exc

        parts = [
            part.get("text", "")
            for candidate in body.get("candidates") or []
            for part in (candidate.get("content") or {}).get("parts") or []
        ]
        text = "".join(parts).strip()
        if not text:
            raise AdvisoryError("Advisory reply contained no text", model=model)
        return text

    async def generate(self, prompt: str) -> AdvisoryReply:
        """Walk the policy's candidates until one model answers."""
        last_error: AdvisoryError | None = None
        for model in self._policy.candidates():
            try:
                text = await self._generate_with(model, prompt)
            except AdvisoryError as exc:
                last_error = exc
                if not self._policy.should_try_next(exc):
                    raise
                logger.info("Advisory model %s unavailable (%s), trying next", model, exc)
                continue
            logger.info("Advisory reply received from %s", model)
            return AdvisoryReply(model=model, text=text)

        raise AdvisoryError("No advisory model available") from last_error


def build_profile_prompt(
    stats: DeveloperStatistics,
    top_projects: Sequence[TopProject],
    base_score: int,
    login: str = "",
    bio: str | None = None,
) -> str:
    """Describe a developer profile and ask for a JSON assessment."""
    languages = ", ".join(stats.languages[:5]) or "None detected"
    lines = [
        "You are an expert developer reputation analyst. Analyze this GitHub "
        "profile and provide a comprehensive assessment.",
        "",
        "DEVELOPER PROFILE:",
        f"Username: {login or 'unknown'}",
        f"Account Age: {stats.account_age_years:.1f} years",
        f"Bio: {bio or 'No bio provided'}",
        "",
        "REPOSITORY METRICS:",
        f"- Total Repositories: {stats.total_repos} ({stats.original_repos} original)",
        f"- Active Repositories: {stats.active_repos}",
        f"- Total Stars: {stats.total_stars}",
        f"- Total Forks: {stats.total_forks}",
        "",
        "ACTIVITY & CONTRIBUTIONS:",
        f"- Total Commits: {stats.total_commits}",
        f"- Pull Requests: {stats.total_prs} ({stats.merged_prs} merged - "
        f"{stats.pr_merge_rate:g}% merge rate)",
        f"- Issues: {stats.total_issues}",
        f"- Code Reviews: {stats.total_reviews}",
        f"- Contributions (Last Year): {stats.contributions_last_year}",
        "",
        "COMMUNITY:",
        f"- Followers: {stats.followers}",
        f"- Languages: {languages}",
    ]

    if top_projects:
        lines.append("")
        lines.append("TOP PROJECTS:")
        for project in top_projects:
            lang = project.language or "N/A"
            lines.append(f"- {project.name}: {project.stars} stars ({lang})")

    lines.extend([
        "",
        f"BASE SCORE: {base_score}/100",
        "",
        "Evaluate this developer (0-100). 0-29: Novice, 30-49: Contributor, "
        "50-69: Established, 70-84: Trusted, 85-100: Elite.",
        "",
        "Return ONLY valid JSON:",
        "{",
        '  "score": <number>,',
        '  "strengths": ["<strength 1>", "<strength 2>", "<strength 3>"],',
        '  "improvements": ["<improvement 1>", "<improvement 2>"],',
        '  "reasoning": "<2-3 sentences>"',
        "}",
    ])
    return "\n".join(lines)


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Find the first well-formed JSON object in *text*.

    Markdown code fences are stripped first; if the whole reply does not
    parse, each ``{`` is tried as the start of an object.
    """
    if not text:
        return None

    cleaned = text.replace("```json", "").replace("```", "").strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        pass
    else:
        if isinstance(parsed, dict):
            return parsed

    decoder = json.JSONDecoder()
    start = cleaned.find("{")
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(cleaned, start)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = cleaned.find("{", start + 1)
    return None


def _coerce_score(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        numeric = float(value)
    elif isinstance(value, str):
        try:
            numeric = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return numeric if math.isfinite(numeric) else None


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def parse_insights(payload: dict[str, Any], base_score: int) -> AdvisoryInsights | None:
    """Validate an advisory JSON payload.

    Returns ``None`` when the score is present but not numeric. A missing
    or zero score is replaced by *base_score*; other scores are clamped to
    0-100.
    """
    raw_score = payload.get("score")
    if raw_score is None:
        score = base_score
    else:
        numeric = _coerce_score(raw_score)
        if numeric is None:
            return None
        score = round_half_up(numeric) if numeric else base_score

    reasoning = payload.get("reasoning")
    return AdvisoryInsights(
        score=max(0, min(100, score)),
        strengths=_string_list(payload.get("strengths")),
        improvements=_string_list(payload.get("improvements")),
        reasoning=reasoning.strip() if isinstance(reasoning, str) else "",
    )
