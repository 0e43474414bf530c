"""
Security Analyzer Tests
=======================
Vulnerability audit (tool output, degraded fallback, empty and missing
manifests), secret hygiene, error handling and input validation.
"""

import json

from code_score.analyzers.security import SecurityAnalyzer
from code_score.core.tools import ToolRunner
from code_score.model import Priority

from conftest import FakeToolRunner, write_tree


def npm_audit(**counts):
    base = {"critical": 0, "high": 0, "moderate": 0, "low": 0, "info": 0}
    base.update(counts)
    return json.dumps({"auditReportVersion": 2, "metadata": {"vulnerabilities": base}})


def messages(result):
    return [i.message for i in result.issues]


def vuln_score(result):
    return result.details["checks"]["dependency_vulnerabilities"]["score"]


class TestDependencyAudit:
    def test_no_dependencies_gets_baseline(self, tmp_path, make_context):
        """A manifest with no dependencies scores 3/6 without calling any tool."""
        write_tree(tmp_path, {"package.json": '{"name": "bare"}'})
        runner = FakeToolRunner()
        result = SecurityAnalyzer(tool_runner=runner).run(make_context(tmp_path))
        assert vuln_score(result) == 3.0
        assert "No external dependencies" in messages(result)
        assert runner.calls == []

    def test_missing_manifest(self, empty_project, make_context):
        """No manifest is an issue with zero dependency points, never an error."""
        result = SecurityAnalyzer(tool_runner=FakeToolRunner()).run(make_context(empty_project))
        assert "No manifest found" in messages(result)
        assert vuln_score(result) == 0
        assert result.error is None

    def test_tool_unavailable_falls_back(self, node_project, make_context):
        """A missing npm names the tool and caps the sub-score below the maximum."""
        result = SecurityAnalyzer(tool_runner=FakeToolRunner()).run(make_context(node_project))
        assert "npm not available: vulnerability analysis degraded" in messages(result)
        assert result.details["audit"]["status"] == "unavailable"
        assert vuln_score(result) == 3.5
        assert vuln_score(result) < 6

    def test_disabled_tools_fall_back(self, node_project, make_context):
        result = SecurityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(node_project))
        assert "npm not available: vulnerability analysis degraded" in messages(result)

    def test_clean_audit(self, node_project, make_context):
        runner = FakeToolRunner({"npm": npm_audit()})
        result = SecurityAnalyzer(tool_runner=runner).run(make_context(node_project))
        assert result.details["audit"]["status"] == "ok"
        assert result.details["audit"]["total"] == 0
        assert vuln_score(result) == 5.0
        assert runner.calls[0] == ("npm", "audit", "--json")

    def test_critical_vulnerability(self, node_project, make_context):
        """A critical finding leaves one audit point and a critical suggestion."""
        runner = FakeToolRunner({"npm": npm_audit(critical=1, low=2)})
        result = SecurityAnalyzer(tool_runner=runner).run(make_context(node_project))
        assert "3 known vulnerabilities in dependencies" in messages(result)
        assert vuln_score(result) == 2.0
        critical = [s for s in result.suggestions if s.priority is Priority.CRITICAL]
        assert critical and critical[0].confidence == 0.95

    def test_pip_audit_findings(self, python_project, make_context):
        report = {"dependencies": [{"name": "requests", "version": "2.0", "vulns": [{"id": "PYSEC-1"}]}]}
        runner = FakeToolRunner({"pip-audit": json.dumps(report)})
        result = SecurityAnalyzer(tool_runner=runner).run(make_context(python_project))
        assert result.details["audit"]["unknown"] == 1
        assert "No lockfile found" in messages(result)
        assert vuln_score(result) == 2.0
        assert runner.calls[0][-1] == "."

    def test_unparseable_audit_output(self, node_project, make_context):
        runner = FakeToolRunner({"npm": "npm ERR! something broke"})
        result = SecurityAnalyzer(tool_runner=runner).run(make_context(node_project))
        assert "npm not available: vulnerability analysis degraded" in messages(result)

    def test_unsafe_package_in_fallback(self, tmp_path, make_context):
        write_tree(tmp_path, {"package.json": json.dumps({"dependencies": {"vm2": "3.9.0"}})})
        result = SecurityAnalyzer(tool_runner=FakeToolRunner()).run(make_context(tmp_path))
        assert "Packages with known security concerns: vm2" in messages(result)
        assert result.details["audit"]["unsafe_packages"] == ["vm2"]


class TestCodeHygiene:
    def test_environment_usage(self, python_project, make_context):
        result = SecurityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(python_project))
        assert result.details["secrets"] == {"env_usage_files": 1, "hardcoded_candidates": []}
        assert result.details["checks"]["secrets"]["score"] == 3.0
        assert "No environment template (.env.example)" in messages(result)

    def test_hardcoded_secret(self, tmp_path, make_context):
        write_tree(
            tmp_path,
            {
                "package.json": "{}",
                ".gitignore": "node_modules\n",
                "config.js": 'export const API_KEY = "sk_live_abcdef123456";\n',
            },
        )
        result = SecurityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(tmp_path))
        assert "Possible hardcoded secrets in 1 files" in messages(result)
        assert ".env files are not ignored by git" in messages(result)
        assert result.details["secrets"]["hardcoded_candidates"] == ["config.js"]

    def test_error_handling(self, python_project, make_context):
        result = SecurityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(python_project))
        handling = result.details["error_handling"]
        assert handling["files_with_try"] == 1
        assert handling["sampled"] == 3
        assert result.details["checks"]["error_handling"]["score"] == 1.5

    def test_validation_library(self, python_project, make_context):
        result = SecurityAnalyzer(tool_runner=ToolRunner(enabled=False)).run(make_context(python_project))
        assert result.details["checks"]["input_validation"]["score"] >= 1.0
        assert "No input validation library" not in messages(result)
