"""Custom exception hierarchy for devrep."""

from __future__ import annotations

from datetime import datetime


class DevRepError(Exception):
    """Base exception for devrep."""


class GitHubAPIError(DevRepError):
    """Error from the GitHub API."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        rate_limit_remaining: int | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.rate_limit_remaining = rate_limit_remaining


class RateLimitExhaustedError(GitHubAPIError):
    """GitHub API rate limit exhausted."""

    def __init__(self, reset_at: datetime, rate_limit_remaining: int = 0):
        self.reset_at = reset_at
        super().__init__(
            f"Rate limit exhausted. Resets at {reset_at.isoformat()}",
            status_code=403,
            rate_limit_remaining=rate_limit_remaining,
        )


class ProfileNotFoundError(DevRepError):
    """No platform profile is registered for a wallet address."""

    def __init__(self, wallet_address: str):
        self.wallet_address = wallet_address
        super().__init__("Profile not found")


class MissingFieldsError(DevRepError):
    """An analysis request is missing required fields."""

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__("Missing required fields")


class AdvisoryError(DevRepError):
    """The advisory service could not produce a usable reply.

    Raised inside the advisory step only; the scorer always recovers.
    """

    def __init__(self, message: str, status_code: int = 0, model: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.model = model


class ConfigError(DevRepError):
    """Error with configuration."""
