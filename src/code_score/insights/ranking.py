"""Recommendation ranker — orders suggestions by a weighted composite.

Formula (0-100):
    composite = 100 × (0.5 × confidence + 0.3 × relevance + 0.2 × history)

relevance: share of a suggestion's tags (patterns ∪ file types) seen in
    the project; 0.5 when the suggestion declares no tags.
history:   similar accepted suggestions / max(accepted, 10), capped at 1;
    0.5 when there is no history.

Ranking is pure: inputs are never mutated, and ties keep emission order.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from code_score.model.result import CategoryResult, Suggestion

# ── weights ─────────────────────────────────────────────────────────
_W_CONFIDENCE = 0.5
_W_RELEVANCE = 0.3
_W_HISTORY = 0.2

_NEUTRAL = 0.5
_HISTORY_FLOOR = 10


@dataclass(frozen=True)
class AcceptedRecommendation:
    """One suggestion the user previously acted on."""

    key: str
    category: str
    patterns: tuple[str, ...] = ()


@dataclass(frozen=True)
class RankingContext:
    """Project facts a suggestion's tags are matched against."""

    detected_patterns: frozenset[str] = frozenset()
    file_types: frozenset[str] = frozenset()

    @property
    def tags(self) -> frozenset[str]:
        return self.detected_patterns | self.file_types

    @classmethod
    def from_results(cls, results: Mapping[str, CategoryResult]) -> RankingContext:
        """Collect ``detected_patterns`` and ``file_types`` from category details."""
        patterns: set[str] = set()
        file_types: set[str] = set()
        for result in results.values():
            patterns.update(result.details.get("detected_patterns") or ())
            file_types.update(result.details.get("file_types") or ())
        return cls(frozenset(patterns), frozenset(file_types))


class RecommendationRanker:
    """Stateless ranker; safe to share between runs and threads."""

    def relevance(self, suggestion: Suggestion, context: RankingContext) -> float:
        declared = set(suggestion.patterns) | set(suggestion.file_types)
        if not declared:
            return _NEUTRAL
        return len(declared & context.tags) / len(declared)

    def history_score(self, suggestion: Suggestion, history: Sequence[AcceptedRecommendation]) -> float:
        if not history:
            return _NEUTRAL
        similar = sum(1 for past in history if _similar(suggestion, past))
        return min(similar / max(len(history), _HISTORY_FLOOR), 1.0)

    def composite(
        self,
        suggestion: Suggestion,
        context: RankingContext,
        history: Sequence[AcceptedRecommendation] = (),
    ) -> float:
        value = 100 * (
            _W_CONFIDENCE * suggestion.confidence
            + _W_RELEVANCE * self.relevance(suggestion, context)
            + _W_HISTORY * self.history_score(suggestion, history)
        )
        return round(value, 2)

    def rank(
        self,
        suggestions: Iterable[Suggestion],
        context: RankingContext | None = None,
        history: Sequence[AcceptedRecommendation] = (),
    ) -> list[Suggestion]:
        """Return copies of *suggestions* with ``rank_score`` set, best first."""
        ctx = context or RankingContext()
        scored = [
            dataclasses.replace(s, rank_score=self.composite(s, ctx, history))
            for s in suggestions
        ]
        return sorted(scored, key=lambda s: -s.rank_score)

    @staticmethod
    def select(
        ranked: Sequence[Suggestion],
        limit: int | None = None,
        min_confidence: float = 0.0,
    ) -> list[Suggestion]:
        picked = [s for s in ranked if s.confidence >= min_confidence]
        return picked if limit is None else picked[:limit]


def _similar(suggestion: Suggestion, past: AcceptedRecommendation) -> bool:
    if past.key == suggestion.key:
        return True
    return past.category == suggestion.category and bool(set(past.patterns) & set(suggestion.patterns))
