"""Runner — fans analyzers out, isolates failures, builds the OverallResult."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Sequence

from code_score.errors import ConfigurationError
from code_score.insights.ranking import AcceptedRecommendation, RankingContext, RecommendationRanker
from code_score.model.context import ProjectContext
from code_score.model.result import CategoryResult, OverallResult, RunSummary, Suggestion
from code_score.policy.grades import GRADES

if TYPE_CHECKING:
    from code_score.analyzers import Analyzer

_logger = logging.getLogger(__name__)

# Default overall timeout in seconds (0/None = no limit).
_DEFAULT_TIMEOUT = 300.0
_DEFAULT_MAX_WORKERS = 7


def _execute(analyzer: Analyzer, context: ProjectContext) -> CategoryResult:
    result = analyzer.run(context)
    if not isinstance(result, CategoryResult):
        raise TypeError(f"analyzer returned {type(result).__name__}, expected CategoryResult")
    if result.name != analyzer.name:
        raise ValueError(f"analyzer returned result for {result.name!r}")
    if not 0 <= result.score <= analyzer.max_score:
        raise ValueError(f"score {result.score} outside [0, {analyzer.max_score}]")
    return result


class Orchestrator:
    """Run a fixed, ordered set of analyzers against one project.

    Results are folded in the order the analyzers were given, whatever
    order they finish in. An analyzer that raises, returns an invalid
    result, or is still running when the timeout/deadline expires is
    recorded as failed; its siblings are unaffected.
    """

    def __init__(
        self,
        analyzers: Sequence[Analyzer],
        *,
        max_workers: int = _DEFAULT_MAX_WORKERS,
        timeout: float | None = _DEFAULT_TIMEOUT,
        ranker: RecommendationRanker | None = None,
        recommendation_limit: int = 10,
    ) -> None:
        names = [a.name for a in analyzers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"duplicate analyzer names: {', '.join(duplicates)}")
        if max_workers < 1:
            raise ConfigurationError("max_workers must be >= 1")
        self.analyzers = tuple(analyzers)
        self.max_workers = max_workers
        self.timeout = timeout or None
        self.ranker = ranker or RecommendationRanker()
        self.recommendation_limit = recommendation_limit

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self.analyzers)

    # ── validation ─────────────────────────────────────────────────

    def select(self, categories: Sequence[str] = ()) -> list[Analyzer]:
        """Analyzers matching *categories* (all when empty), in registry order."""
        if not categories:
            return list(self.analyzers)
        unknown = sorted(set(categories) - set(self.names))
        if unknown:
            raise ConfigurationError(
                f"unknown categories: {', '.join(unknown)} (known: {', '.join(self.names)})"
            )
        wanted = set(categories)
        return [a for a in self.analyzers if a.name in wanted]

    def validate(self, context: ProjectContext) -> list[Analyzer]:
        if not isinstance(context, ProjectContext):
            raise ConfigurationError("context must be a ProjectContext")
        if not context.root.is_dir():
            raise ConfigurationError(f"project root is not a directory: {context.root}")
        return self.select(context.options.categories)

    def _budget(self, deadline: float | None) -> float | None:
        """Seconds left to wait: the smaller of the timeout and the deadline."""
        budget = self.timeout
        if deadline is not None:
            remaining = max(deadline - time.monotonic(), 0.0)
            budget = remaining if budget is None else min(budget, remaining)
        return budget

    # ── execution ──────────────────────────────────────────────────

    def _run(self, analyzers: Sequence[Analyzer], context: ProjectContext, deadline: float | None) -> dict[str, CategoryResult]:
        budget = self._budget(deadline)
        pool = ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, len(analyzers))),
            thread_name_prefix="code-score",
        )
        try:
            futures: list[tuple[Analyzer, Future[CategoryResult]]] = [
                (a, pool.submit(_execute, a, context)) for a in analyzers
            ]
            done, _ = wait([f for _, f in futures], timeout=budget)
        finally:
            # Never block on analyzers that overran the budget.
            pool.shutdown(wait=False, cancel_futures=True)

        results: dict[str, CategoryResult] = {}
        for analyzer, future in futures:
            if future not in done:
                future.cancel()
                error = f"timed out after {budget:.0f}s"
                _logger.warning("Analyzer '%s' %s; marked failed", analyzer.name, error)
                results[analyzer.name] = CategoryResult.failure(analyzer.name, analyzer.max_score, error)
                continue
            try:
                results[analyzer.name] = future.result()
            except Exception as exc:
                _logger.exception("Analyzer '%s' raised an exception; marked failed", analyzer.name)
                error = f"{type(exc).__name__}: {exc}"
                results[analyzer.name] = CategoryResult.failure(analyzer.name, analyzer.max_score, error)
        return results

    def run_one(self, name: str, context: ProjectContext, *, deadline: float | None = None) -> CategoryResult:
        """Run a single analyzer with the same isolation as ``run_all``."""
        if name not in self.names:
            raise ConfigurationError(f"unknown category: {name} (known: {', '.join(self.names)})")
        self.validate(context)
        analyzer = next(a for a in self.analyzers if a.name == name)
        result = self._run([analyzer], context, deadline)[name]
        return result if context.options.include_details else result.without_details()

    def run_all(
        self,
        context: ProjectContext,
        *,
        history: Sequence[AcceptedRecommendation] | None = None,
        deadline: float | None = None,
    ) -> OverallResult:
        """Run every selected analyzer and aggregate the results.

        *deadline* is an absolute ``time.monotonic()`` value; whichever of it
        and the configured timeout comes first bounds the run.
        """
        selected = self.validate(context)
        _logger.debug("Running %d analyzers on %s", len(selected), context.root)
        results = self._run(selected, context, deadline)
        return self._aggregate(selected, results, context, history or ())

    # ── aggregation ────────────────────────────────────────────────

    def _aggregate(
        self,
        selected: Sequence[Analyzer],
        results: dict[str, CategoryResult],
        context: ProjectContext,
        history: Sequence[AcceptedRecommendation],
    ) -> OverallResult:
        ordered = [results[a.name] for a in selected]
        distribution = {g: 0 for g in GRADES}
        for r in ordered:
            distribution[r.grade] += 1
        summary = RunSummary(
            completed=tuple(r.name for r in ordered if not r.failed),
            failed=tuple(r.name for r in ordered if r.failed),
            errors={r.name: r.error for r in ordered if r.failed},
            grade_distribution=distribution,
        )

        recommendations: tuple[Suggestion, ...] = ()
        if context.options.include_recommendations:
            ranked = self.ranker.rank(
                _unique(s for r in ordered for s in r.suggestions),
                RankingContext.from_results(results),
                history,
            )
            recommendations = tuple(self.ranker.select(ranked, self.recommendation_limit))

        categories = {
            r.name: (r if context.options.include_details else r.without_details())
            for r in ordered
        }
        return OverallResult(
            project_name=context.project_name,
            project_type=context.project_type,
            framework=context.framework,
            score=round(sum(r.score for r in ordered), 2),
            max_score=round(sum(a.max_score for a in selected), 2),
            categories=categories,
            summary=summary,
            recommendations=recommendations,
        )


def _unique(suggestions) -> list[Suggestion]:
    """Drop repeated suggestion texts, keeping the first occurrence."""
    seen: set[str] = set()
    out: list[Suggestion] = []
    for s in suggestions:
        if s.text in seen:
            continue
        seen.add(s.text)
        out.append(s)
    return out
