"""
Quality Analyzer Tests
======================
Linter integration (with its degraded path), documentation, complexity,
typing and indentation consistency.
"""

import json

import pytest

from code_score.analyzers.quality import QualityAnalyzer, indent_unit
from code_score.core.tools import ToolRunner

from conftest import FakeToolRunner, write_tree


def messages(result):
    return [i.message for i in result.issues]


class TestIndentUnit:
    @pytest.mark.parametrize(
        "content, unit",
        [
            ("def f():\n    return 1\n", "4"),
            ("if (x) {\n  y();\n    z();\n}\n", "2"),
            ("if x:\n\treturn 1\n", "tab"),
            ("x = 1\n", None),
        ],
    )
    def test_unit(self, content, unit):
        assert indent_unit(content) == unit


class TestLinting:
    def test_clean_eslint_run(self, node_project, make_context):
        """A clean ESLint report plus Prettier earns the full linting budget."""
        runner = FakeToolRunner({"eslint": json.dumps([{"errorCount": 0, "warningCount": 0}])})
        result = QualityAnalyzer(tool_runner=runner).run(make_context(node_project))
        assert result.details["lint"] == {"tool": "ESLint", "status": "ok", "errors": 0, "warnings": 0}
        assert result.details["checks"]["linting"]["score"] == 6.0
        assert runner.calls[0][0] == "eslint"

    def test_eslint_errors(self, node_project, make_context):
        runner = FakeToolRunner({"eslint": json.dumps([{"errorCount": 3, "warningCount": 1}, {"errorCount": 2}])})
        result = QualityAnalyzer(tool_runner=runner).run(make_context(node_project))
        assert "5 ESLint errors" in messages(result)
        assert result.details["checks"]["linting"]["score"] == 4.0

    def test_missing_linter_degrades(self, node_project, make_context):
        """An unavailable linter is reported by name and scores the config only."""
        result = QualityAnalyzer(tool_runner=FakeToolRunner()).run(make_context(node_project))
        assert "eslint not available: lint analysis degraded" in messages(result)
        assert result.details["lint"]["status"] == "unavailable"
        assert result.details["checks"]["linting"]["score"] == 4.0

    def test_ruff_warnings(self, tmp_path, make_context):
        write_tree(
            tmp_path,
            {
                "pyproject.toml": '[project]\nname = "x"\n\n[tool.ruff]\nline-length = 100\n',
                "pkg/__init__.py": "",
            },
        )
        diagnostics = [{"code": "F401"}, {"code": "E501"}, {"code": "F841"}]
        runner = FakeToolRunner({"ruff": json.dumps(diagnostics)})
        result = QualityAnalyzer(tool_runner=runner).run(make_context(tmp_path))
        assert result.details["lint"]["warnings"] == 3
        assert "3 Ruff warnings" in messages(result)
        assert "No formatter configuration found" in messages(result)

    def test_unparseable_lint_output_degrades(self, node_project, make_context):
        runner = FakeToolRunner({"eslint": "Oops! Something went wrong"})
        result = QualityAnalyzer(tool_runner=runner).run(make_context(node_project))
        assert "eslint not available: lint analysis degraded" in messages(result)

    def test_no_linter_configured(self, tmp_path, make_context):
        write_tree(tmp_path, {"package.json": "{}", "index.js": "console.log(1);\n"})
        result = QualityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(tmp_path))
        assert "No linter configuration found" in messages(result)
        assert result.details["checks"]["linting"]["score"] == 0


class TestHeuristics:
    def test_documentation_ratio(self, python_project, make_context):
        """Every sampled module carries a docstring in the Python fixture."""
        result = QualityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(python_project))
        assert result.details["documented_files"] == {"documented": 3, "sampled": 3}
        assert "README is quite short" in messages(result)

    def test_missing_readme(self, tmp_path, make_context):
        write_tree(tmp_path, {"package.json": "{}"})
        result = QualityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(tmp_path))
        assert "No README found" in messages(result)

    def test_high_complexity(self, tmp_path, make_context):
        body = "".join(f"    if x == {i} and y or z:\n        pass\n" for i in range(8))
        write_tree(tmp_path, {"requirements.txt": "six\n", "tangled.py": "def f(x, y, z):\n" + body})
        result = QualityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(tmp_path))
        assert result.details["average_complexity"] == 9.0
        assert result.details["checks"]["complexity"]["score"] == 3.0

    def test_python_annotations(self, python_project, make_context):
        result = QualityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(python_project))
        assert result.details["annotated_function_ratio"] == 1.0
        assert "No static type checker configured" in messages(result)

    def test_typescript_without_tsconfig(self, tmp_path, make_context):
        write_tree(tmp_path, {"package.json": "{}", "src/a.ts": "export const a: number = 1;\n"})
        result = QualityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(tmp_path))
        assert "TypeScript files without configuration" in messages(result)

    def test_mixed_indentation(self, tmp_path, make_context):
        write_tree(
            tmp_path,
            {
                "package.json": "{}",
                "a.js": "if (x) {\n\ty();\n}\n",
                "b.js": "if (x) {\n  y();\n}\n",
            },
        )
        result = QualityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(tmp_path))
        assert result.details["indentation"]["agreement"] == 0.5
        assert "Inconsistent indentation" in messages(result)
