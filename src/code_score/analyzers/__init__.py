"""Analyzers score one quality category each.

Every analyzer satisfies the ``Analyzer`` protocol: it exposes ``name``,
``max_score`` and ``version`` and implements ``run(context) ->
CategoryResult``. The built-in analyzers derive from
``code_score.analyzers.base.BaseAnalyzer`` and accumulate their score only
through its scoring primitives; third-party analyzers plugged into the
orchestrator must honour the same ``0 <= score <= max_score`` contract.

Available analyzers (registry order):
    - StructureAnalyzer: file organization, module boundaries, architecture
    - QualityAnalyzer: linting, documentation, complexity, type safety
    - PerformanceAnalyzer: dependency weight, code splitting, memoization
    - SecurityAnalyzer: vulnerability audit, secrets, error handling
    - TestingAnalyzer: test presence, coverage, organization, tooling
    - DeveloperExperienceAnalyzer: tooling, docs, scripts, version control
    - CompletenessAnalyzer: placeholders, production readiness, metadata
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from code_score.model.context import ProjectContext
    from code_score.model.result import CategoryResult


class Analyzer(Protocol):
    """Every analyzer must expose ``name``, ``max_score``, ``version`` and ``run()``."""

    name: str
    max_score: float
    version: str

    def run(self, context: ProjectContext) -> CategoryResult:
        """Score *context* and return this category's result."""
        ...


_LAZY = {
    "BaseAnalyzer": ".base",
    "Check": ".base",
    "StructureAnalyzer": ".structure",
    "QualityAnalyzer": ".quality",
    "PerformanceAnalyzer": ".performance",
    "SecurityAnalyzer": ".security",
    "TestingAnalyzer": ".testing",
    "DeveloperExperienceAnalyzer": ".developer_experience",
    "CompletenessAnalyzer": ".completeness",
    "DEFAULT_ANALYZERS": ".registry",
}


# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    module = _LAZY.get(name)
    if module is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(module, __name__), name)
