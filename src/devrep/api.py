"""HTTP analysis endpoint consumed by the front-end."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Protocol

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from devrep.config import DevRepConfig, load_config
from devrep.exceptions import (
    DevRepError,
    GitHubAPIError,
    MissingFieldsError,
    ProfileNotFoundError,
)
from devrep.models import AnalysisResponse, DeveloperStatistics, ReputationResult
from devrep.scorer import AnalysisOutcome, analyze_developer

logger = logging.getLogger(__name__)

Analyzer = Callable[[str, DevRepConfig], Awaitable[AnalysisOutcome]]


class AnalyzeRequest(BaseModel):
    wallet_address: str | None = None
    github_token: str | None = Field(default=None, repr=False)


class ProfileStore(Protocol):
    """Persistence collaborator keyed by platform profile id."""

    async def resolve_profile_id(self, wallet_address: str) -> str | None: ...

    async def save_statistics(
        self, profile_id: str, stats: DeveloperStatistics
    ) -> None: ...

    async def save_analysis(self, profile_id: str, result: ReputationResult) -> None: ...


class InMemoryProfileStore:
    """Dict-backed :class:`ProfileStore` for local runs and tests.

    Statistics are upserted per profile; analyses are appended so the
    latest entry is the current result.
    """

    def __init__(self) -> None:
        self.profiles: dict[str, str] = {}
        self.statistics: dict[str, DeveloperStatistics] = {}
        self.analyses: dict[str, list[ReputationResult]] = {}

    def register(self, wallet_address: str, profile_id: str | None = None) -> str:
        profile_id = profile_id or str(uuid.uuid4())
        self.profiles[wallet_address] = profile_id
        return profile_id

    async def resolve_profile_id(self, wallet_address: str) -> str | None:
        return self.profiles.get(wallet_address)

    async def save_statistics(self, profile_id: str, stats: DeveloperStatistics) -> None:
        self.statistics[profile_id] = stats

    async def save_analysis(self, profile_id: str, result: ReputationResult) -> None:
        self.analyses.setdefault(profile_id, []).append(result)

    def latest_analysis(self, profile_id: str) -> ReputationResult | None:
        history = self.analyses.get(profile_id)
        return history[-1] if history else None


async def _default_analyzer(token: str, config: DevRepConfig) -> AnalysisOutcome:
    return await analyze_developer(token=token, config=config)


def _status_for(exc: DevRepError) -> int:
    if isinstance(exc, MissingFieldsError):
        return 400
    if isinstance(exc, ProfileNotFoundError):
        return 404
    if isinstance(exc, GitHubAPIError):
        return 401 if exc.status_code == 401 else 502
    return 500


async def _persist(store: ProfileStore, profile_id: str, outcome: AnalysisOutcome) -> None:
    """Save statistics and result; failures are logged, never raised."""
    try:
        await store.save_statistics(profile_id, outcome.statistics)
    except Exception:
        logger.exception("Error saving statistics for profile %s", profile_id)
    try:
        await store.save_analysis(profile_id, outcome.result)
    except Exception:
        logger.exception("Error saving analysis for profile %s", profile_id)


def create_app(
    config: DevRepConfig | None = None,
    store: ProfileStore | None = None,
    analyzer: Analyzer | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    ----------
    config:
        Configuration; loaded from file/env when *None*.
    store:
        Profile store; an :class:`InMemoryProfileStore` when *None*.
    analyzer:
        Coroutine ``(github_token, config) -> AnalysisOutcome``; defaults to
        :func:`~devrep.scorer.analyze_developer`.
    """
    from devrep import __version__

    resolved_config = config if config is not None else load_config()
    profile_store: ProfileStore = store if store is not None else InMemoryProfileStore()
    run_analysis = analyzer if analyzer is not None else _default_analyzer

    app = FastAPI(
        title="devrep",
        description="Developer reputation analysis",
        version=__version__,
    )
    app.state.store = profile_store

    @app.exception_handler(DevRepError)
    async def _handle_devrep_error(request: Request, exc: DevRepError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            logger.error("Reputation analysis error: %s", exc)
        body = AnalysisResponse(success=False, error=str(exc) or "Failed to analyze reputation")
        return JSONResponse(status_code=status, content=body.model_dump(mode="json"))

    @app.exception_handler(RequestValidationError)
    async def _handle_invalid_body(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Rejected analysis request body (%d errors)", len(exc.errors()))
        return await _handle_devrep_error(request, MissingFieldsError(["body"]))

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.post("/api/reputation/analyze", response_model=AnalysisResponse)
    async def analyze(body: AnalyzeRequest) -> AnalysisResponse:
        missing = [
            name
            for name in ("wallet_address", "github_token")
            if not getattr(body, name)
        ]
        if missing:
            raise MissingFieldsError(missing)
        wallet = body.wallet_address or ""
        token = body.github_token or ""

        profile_id = await profile_store.resolve_profile_id(wallet)
        if profile_id is None:
            raise ProfileNotFoundError(wallet)

        logger.info("Starting reputation analysis for %s", wallet)
        try:
            outcome = await run_analysis(token, resolved_config)
        except httpx.HTTPError as exc:
            raise GitHubAPIError(f"GitHub request failed: {exc}") from exc
        except DevRepError:
            raise
        except Exception as exc:
            logger.exception("Unexpected failure analyzing %s", wallet)
            raise DevRepError("Failed to analyze reputation") from exc

        await _persist(profile_store, profile_id, outcome)
        logger.info("Analysis complete for %s. Score: %d", wallet, outcome.result.final_score)
        return AnalysisResponse(
            success=True,
            reputation=outcome.result,
            stats=outcome.statistics,
        )

    return app
