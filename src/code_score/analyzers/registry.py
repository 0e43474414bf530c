"""Built-in analyzer registry.

``DEFAULT_ANALYZERS`` fixes both the set of categories and the order results
are folded in. Analyzer instances hold per-run state, so callers build a
fresh set for every run with ``build_analyzers()``.
"""

from __future__ import annotations

from code_score.analyzers.base import BaseAnalyzer
from code_score.analyzers.completeness import CompletenessAnalyzer
from code_score.analyzers.developer_experience import DeveloperExperienceAnalyzer
from code_score.analyzers.performance import PerformanceAnalyzer
from code_score.analyzers.quality import QualityAnalyzer
from code_score.analyzers.security import SecurityAnalyzer
from code_score.analyzers.structure import StructureAnalyzer
from code_score.analyzers.testing import TestingAnalyzer
from code_score.core.tools import ToolRunner

DEFAULT_ANALYZERS: tuple[type[BaseAnalyzer], ...] = (
    StructureAnalyzer,
    QualityAnalyzer,
    PerformanceAnalyzer,
    SecurityAnalyzer,
    TestingAnalyzer,
    DeveloperExperienceAnalyzer,
    CompletenessAnalyzer,
)


def build_analyzers(tool_runner: ToolRunner | None = None) -> list[BaseAnalyzer]:
    """One fresh instance of every built-in analyzer, in registry order."""
    runner = tool_runner or ToolRunner()
    return [cls(tool_runner=runner) for cls in DEFAULT_ANALYZERS]


def category_table() -> list[dict]:
    """Caps and per-check allocations of the built-in categories."""
    return [
        {
            "name": cls.name,
            "maxScore": cls.max_score,
            "version": cls.version,
            "checks": [{"name": c.name, "maxPoints": c.max_points} for c in cls.checks],
        }
        for cls in DEFAULT_ANALYZERS
    ]
