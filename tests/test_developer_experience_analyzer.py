"""Developer experience analyzer: tooling, docs, scripts and version control."""

import pytest

from code_score.analyzers.developer_experience import DeveloperExperienceAnalyzer
from code_score.core.tools import ToolRunner

from conftest import write_tree


@pytest.fixture
def analyzer():
    return DeveloperExperienceAnalyzer(tool_runner=ToolRunner(enabled=False))


def messages(result):
    return [i.message for i in result.issues]


class TestDeveloperExperience:
    def test_node_project(self, analyzer, node_project, make_context):
        result = analyzer.run(make_context(node_project))
        assert result.details["dev_tools"] == {"lint": True, "format": True, "build": True, "helpers": False}
        checks = result.details["checks"]
        assert checks["tooling"]["score"] == 3.0
        assert checks["documentation"]["score"] == 2.0
        assert checks["scripts"]["score"] == 2.0
        assert checks["version_control"]["score"] == 0.5
        assert result.score == 7.5
        assert "No CI configuration" in messages(result)

    def test_hooks_and_ci(self, analyzer, node_project, make_context):
        write_tree(
            node_project,
            {
                ".husky/pre-commit": "npx lint-staged\n",
                ".github/workflows/ci.yml": "on: push\n",
                "CONTRIBUTING.md": "# Contributing\n",
                "CHANGELOG.md": "# Changelog\n",
            },
        )
        result = analyzer.run(make_context(node_project))
        assert result.score == 10.0
        assert result.issues == ()

    def test_python_essential_scripts(self, analyzer, python_project, make_context):
        write_tree(python_project, {"Makefile": "test:\n\tpytest\n\nlint:\n\truff check .\n"})
        result = analyzer.run(make_context(python_project))
        assert "Missing scripts: build" in messages(result)
        assert result.details["checks"]["scripts"]["score"] == pytest.approx(1 + 2 / 3, abs=0.01)

    def test_no_manifest(self, analyzer, empty_project, make_context):
        result = analyzer.run(make_context(empty_project))
        assert "No manifest; project scripts unknown" in messages(result)
        assert "No README" in messages(result)
        assert "No .gitignore" in messages(result)
        assert result.details["checks"]["scripts"]["score"] == 0

    def test_readme_without_sections(self, analyzer, tmp_path, make_context):
        write_tree(tmp_path, {"package.json": "{}", "README.md": "# thing\n\nIt does stuff.\n"})
        result = analyzer.run(make_context(tmp_path))
        assert "README lacks setup instructions" in messages(result)
