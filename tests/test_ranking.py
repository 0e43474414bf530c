"""
Recommendation Ranker Tests
===========================
Composite formula, relevance and history factors, stable ordering and
purity of RecommendationRanker.
"""

import pytest

from code_score.insights.ranking import AcceptedRecommendation, RankingContext, RecommendationRanker
from code_score.model.result import CategoryResult, Suggestion


@pytest.fixture
def ranker():
    return RecommendationRanker()


def suggestion(text, confidence=0.8, category="quality", patterns=(), file_types=()):
    return Suggestion(category=category, text=text, confidence=confidence, patterns=patterns, file_types=file_types)


class TestFactors:
    def test_neutral_relevance_without_tags(self, ranker):
        assert ranker.relevance(suggestion("x"), RankingContext(frozenset({"react"}))) == 0.5

    def test_relevance_is_share_of_matching_tags(self, ranker):
        s = suggestion("x", patterns=("react", "redux"), file_types=(".tsx",))
        context = RankingContext(frozenset({"react"}), frozenset({".tsx", ".js"}))
        assert ranker.relevance(s, context) == pytest.approx(2 / 3)

    def test_neutral_history_when_empty(self, ranker):
        assert ranker.history_score(suggestion("x"), []) == 0.5

    def test_history_counts_similar_entries(self, ranker):
        s = suggestion("x", patterns=("testing",))
        history = [
            AcceptedRecommendation(key=s.key, category="other"),
            AcceptedRecommendation(key="quality:a:1", category="quality", patterns=("testing",)),
            AcceptedRecommendation(key="quality:b:2", category="quality", patterns=("docs",)),
            AcceptedRecommendation(key="security:c:3", category="security", patterns=("testing",)),
        ]
        # 2 similar out of max(4, 10)
        assert ranker.history_score(s, history) == pytest.approx(0.2)

    def test_history_saturates(self, ranker):
        s = suggestion("x")
        history = [AcceptedRecommendation(key=s.key, category="quality")] * 12
        assert ranker.history_score(s, history) == 1.0

    def test_composite_formula(self, ranker):
        """100 x (0.5 conf + 0.3 relevance + 0.2 history)."""
        s = suggestion("x", confidence=0.9, patterns=("react",))
        context = RankingContext(frozenset({"react"}))
        assert ranker.composite(s, context) == pytest.approx(85.0)


class TestRank:
    def test_orders_by_composite(self, ranker):
        low, high = suggestion("low", 0.2), suggestion("high", 0.9)
        ranked = ranker.rank([low, high])
        assert [s.text for s in ranked] == ["high", "low"]
        assert ranked[0].rank_score > ranked[1].rank_score

    def test_ties_keep_input_order(self, ranker):
        """Equal composites keep their emission order."""
        items = [suggestion(f"s{i}", 0.5) for i in range(6)]
        assert [s.text for s in ranker.rank(items)] == [f"s{i}" for i in range(6)]
        reordered = list(reversed(items))
        assert [s.text for s in ranker.rank(reordered)] == [f"s{i}" for i in reversed(range(6))]

    def test_inputs_are_not_mutated(self, ranker):
        items = [suggestion("a"), suggestion("b", 0.1)]
        ranker.rank(items)
        assert all(s.rank_score is None for s in items)

    def test_deterministic(self, ranker):
        items = [suggestion("a", 0.6, patterns=("react",)), suggestion("b", 0.7), suggestion("c", 0.6)]
        context = RankingContext(frozenset({"react"}))
        assert ranker.rank(items, context) == ranker.rank(items, context)

    def test_select(self, ranker):
        ranked = ranker.rank([suggestion("a", 0.9), suggestion("b", 0.3), suggestion("c", 0.6)])
        assert [s.text for s in ranker.select(ranked, 2)] == ["a", "c"]
        assert [s.text for s in ranker.select(ranked, min_confidence=0.5)] == ["a", "c"]
        assert ranker.select(ranked, 0) == []


class TestRankingContext:
    def test_from_results(self):
        results = {
            "structure": CategoryResult(
                "structure", 10, 20, details={"detected_patterns": ["react", "docker"], "file_types": [".jsx"]}
            ),
            "quality": CategoryResult("quality", 10, 20),
        }
        context = RankingContext.from_results(results)
        assert context.tags == frozenset({"react", "docker", ".jsx"})

    def test_failed_results_contribute_nothing(self):
        context = RankingContext.from_results({"a": CategoryResult.failure("a", 10, "boom")})
        assert context.tags == frozenset()
