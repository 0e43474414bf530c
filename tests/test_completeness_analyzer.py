"""Completeness analyzer: placeholders, production readiness, metadata."""

import pytest

from code_score.analyzers.completeness import CompletenessAnalyzer
from code_score.core.tools import ToolRunner

from conftest import write_tree


@pytest.fixture
def analyzer():
    return CompletenessAnalyzer(tool_runner=ToolRunner(enabled=False))


def messages(result):
    return [i.message for i in result.issues]


class TestPlaceholders:
    @pytest.mark.parametrize("count, points", [(0, 2.0), (3, 1.5), (12, 1.0), (25, 0.5)])
    def test_bands(self, analyzer, tmp_path, make_context, count, points):
        body = "".join(f"// TODO item {i}\n" for i in range(count)) + "export const x = 1;\n"
        write_tree(tmp_path, {"package.json": "{}", "src/x.js": body})
        result = analyzer.run(make_context(tmp_path))
        assert result.details["placeholders"] == count
        assert result.details["checks"]["placeholders"]["score"] == points

    def test_test_files_are_ignored(self, analyzer, tmp_path, make_context):
        write_tree(tmp_path, {"package.json": "{}", "tests/test_x.py": "# TODO later\n"})
        result = analyzer.run(make_context(tmp_path))
        assert result.details["placeholders"] == 0


class TestReadiness:
    def test_python_project(self, analyzer, python_project, make_context):
        result = analyzer.run(make_context(python_project))
        assert result.details["production_readiness"] == {
            "runnable": True,
            "env_config": False,
            "deployment": False,
            "ci": False,
        }
        assert result.details["checks"]["metadata"]["score"] == pytest.approx(0.73, abs=0.01)
        assert result.score == pytest.approx(3.23, abs=0.01)
        assert "No deployment configuration" in messages(result)

    def test_fully_ready(self, analyzer, node_project, make_context):
        write_tree(
            node_project,
            {
                "Dockerfile": "FROM node:20\n",
                ".github/workflows/ci.yml": "on: push\n",
            },
        )
        result = analyzer.run(make_context(node_project))
        assert all(result.details["production_readiness"].values())
        assert result.details["checks"]["production_readiness"]["score"] == 2.0

    def test_missing_license_and_metadata(self, analyzer, tmp_path, make_context):
        write_tree(tmp_path, {"package.json": '{"name": "x"}'})
        result = analyzer.run(make_context(tmp_path))
        assert "Incomplete package metadata" in messages(result)
        assert "No license" in messages(result)

    def test_license_file_counts(self, analyzer, tmp_path, make_context):
        write_tree(tmp_path, {"package.json": '{"name": "x"}', "LICENSE": "MIT License\n"})
        result = analyzer.run(make_context(tmp_path))
        assert "No license" not in messages(result)

    def test_no_manifest(self, analyzer, empty_project, make_context):
        result = analyzer.run(make_context(empty_project))
        assert "No manifest; package metadata missing" in messages(result)
        assert 0 <= result.score <= 5
