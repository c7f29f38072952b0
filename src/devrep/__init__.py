"""devrep - developer reputation scoring from GitHub activity."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from devrep.aggregator import aggregate_statistics
from devrep.config import DevRepConfig, load_config
from devrep.exceptions import DevRepError
from devrep.models import DeveloperStatistics, ReputationResult, TrustLevel
from devrep.scorer import ReputationScorer, analyze_developer

try:
    __version__ = version("devrep")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "DevRepConfig",
    "DevRepError",
    "DeveloperStatistics",
    "ReputationResult",
    "ReputationScorer",
    "TrustLevel",
    "__version__",
    "aggregate_statistics",
    "analyze_developer",
    "load_config",
]
