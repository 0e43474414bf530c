"""
Analyzer Contract Tests
=======================
Scoring primitives of BaseAnalyzer and the point-budget invariants every
registered analyzer must satisfy.
"""

import pytest

from code_score.analyzers.base import BaseAnalyzer, Check, is_test_file, priority_for
from code_score.analyzers.registry import DEFAULT_ANALYZERS, build_analyzers, category_table
from code_score.core.tools import ToolRunner
from code_score.model import CATEGORY_NAMES, Priority
from code_score.model.context import ProjectContext, ScoreOptions
from code_score.model.result import CategoryResult


class BudgetAnalyzer(BaseAnalyzer):
    """Two checks that try to overspend and underspend their budgets."""

    name = "budget"
    max_score = 5.0
    checks = (
        Check("greedy", 2, "check_greedy"),
        Check("negative", 3, "check_negative"),
    )

    def check_greedy(self):
        self.add_score(5, 2, "asks for more than the cap")
        self.add_score(1, 2, "budget already spent")

    def check_negative(self):
        self.add_score(-4, 3, "negative points")
        self.add_score(1.5, 3, "half")
        self.flag("Half marks", "Do the other half", impact=3.5, patterns=("demo",))


@pytest.fixture
def context(tmp_path):
    return ProjectContext(root=tmp_path)


class TestScoringPrimitives:
    def test_add_score_is_clamped_to_check_budget(self, context):
        """Points never exceed the call's max nor the active check's budget."""
        result = BudgetAnalyzer().run(context)
        checks = result.details["checks"]
        assert checks["greedy"] == {"score": 2.0, "max": 2}
        assert checks["negative"] == {"score": 1.5, "max": 3}
        assert result.score == 3.5

    def test_negative_points_add_nothing(self, context):
        analyzer = BudgetAnalyzer()
        analyzer._reset(context)
        assert analyzer.add_score(-1, 5) == 0.0
        assert analyzer.add_score(2, 5) == 2.0

    def test_flag_records_issue_and_suggestion(self, context):
        """flag() pairs the finding with its fix, tagged with the category."""
        result = BudgetAnalyzer().run(context)
        assert [i.message for i in result.issues] == ["Half marks"]
        (suggestion,) = result.suggestions
        assert suggestion.category == "budget"
        assert suggestion.text == "Do the other half"
        assert suggestion.priority is Priority.HIGH
        assert suggestion.patterns == ("demo",)
        assert suggestion.key.startswith("budget:do-the-other-half:")

    def test_run_resets_state(self, context):
        """A second run does not accumulate the first run's score or issues."""
        analyzer = BudgetAnalyzer()
        first = analyzer.run(context)
        second = analyzer.run(context)
        assert first.score == second.score
        assert len(second.issues) == len(first.issues) == 1

    def test_verbose_records_reasons(self, tmp_path):
        context = ProjectContext(root=tmp_path, options=ScoreOptions(verbose=True))
        result = BudgetAnalyzer().run(context)
        assert "+2/2 asks for more than the cap" in result.details["scoring"]

    def test_quiet_run_has_no_reasons(self, context):
        assert "scoring" not in BudgetAnalyzer().run(context).details

    def test_helpers_need_a_context(self):
        """File helpers raise before run() has supplied a context."""
        analyzer = BudgetAnalyzer()
        with pytest.raises(RuntimeError, match="BudgetAnalyzer used outside run"):
            analyzer.root
        with pytest.raises(RuntimeError):
            analyzer.sample([], 5)

    @pytest.mark.parametrize(
        "impact, expected",
        [(5.0, Priority.HIGH), (3.0, Priority.HIGH), (1.5, Priority.MEDIUM), (1.0, Priority.LOW)],
    )
    def test_priority_for_impact(self, impact, expected):
        assert priority_for(impact) is expected


class TestIsTestFile:
    @pytest.mark.parametrize(
        "rel",
        ["tests/helpers.py", "src/app.test.ts", "test_app.py", "pkg/app_test.py", "e2e/login.js", "src/__tests__/a.js"],
    )
    def test_recognised(self, tmp_path, rel):
        assert is_test_file(tmp_path / rel, tmp_path)

    @pytest.mark.parametrize("rel", ["src/app.py", "src/testing_utils.py", "lib/contest.js"])
    def test_not_tests(self, tmp_path, rel):
        assert not is_test_file(tmp_path / rel, tmp_path)


class TestRegisteredAnalyzers:
    @pytest.mark.parametrize("cls", DEFAULT_ANALYZERS, ids=lambda c: c.name)
    def test_checks_sum_to_category_cap(self, cls):
        """Declared check maxima add up exactly to the category's max_score."""
        assert sum(c.max_points for c in cls.checks) == pytest.approx(cls.max_score)

    @pytest.mark.parametrize("cls", DEFAULT_ANALYZERS, ids=lambda c: c.name)
    def test_check_methods_exist(self, cls):
        for check in cls.checks:
            assert callable(getattr(cls, check.method, None)), check.method

    def test_registry_order_and_total(self):
        assert tuple(c.name for c in DEFAULT_ANALYZERS) == CATEGORY_NAMES
        assert sum(c.max_score for c in DEFAULT_ANALYZERS) == 100

    def test_build_analyzers_returns_fresh_instances(self):
        runner = ToolRunner(enabled=False)
        first = build_analyzers(runner)
        second = build_analyzers(runner)
        assert all(a is not b for a, b in zip(first, second))
        assert all(a.tool_runner is runner for a in first)
        assert all(callable(a.run) and a.name and a.max_score > 0 for a in first)

    def test_category_table(self):
        table = category_table()
        assert [row["name"] for row in table] == list(CATEGORY_NAMES)
        security = next(row for row in table if row["name"] == "security")
        assert security["maxScore"] == 15
        assert [c["maxPoints"] for c in security["checks"]] == [6, 4, 3, 2]

    @pytest.mark.parametrize("analyzer", build_analyzers(ToolRunner(enabled=False)), ids=lambda a: a.name)
    def test_score_within_bounds_on_empty_tree(self, analyzer, tmp_path):
        """Every analyzer returns 0 <= score <= max_score even with nothing to read."""
        result = analyzer.run(ProjectContext(root=tmp_path))
        assert isinstance(result, CategoryResult)
        assert result.name == analyzer.name
        assert 0 <= result.score <= analyzer.max_score
