"""code_score — weighted engineering-quality score for a project tree."""

__all__ = [
    "__version__",
    "score_project",
    "validate_instance",
    "Orchestrator",
    "RecommendationRanker",
    "ScoreConfig",
]
__version__ = "0.1.0"

# Programmatic engine entrypoints (backend use).
from code_score.api import score_project  # noqa: E402, F401
from code_score.contracts.load import validate_instance  # noqa: E402, F401
from code_score.core.config import ScoreConfig  # noqa: E402, F401
from code_score.core.runner import Orchestrator  # noqa: E402, F401
from code_score.insights.ranking import RecommendationRanker  # noqa: E402, F401
