"""
CLI Tests
=========
``python -m code_score`` subcommands driven through ``main(argv)``.
"""

import json

import pytest

from code_score.__main__ import main
from code_score.insights.history import RecommendationHistory


@pytest.fixture(autouse=True)
def no_tools(monkeypatch):
    monkeypatch.setenv("CODE_SCORE_NO_TOOLS", "1")


class TestScore:
    def test_json_output(self, node_project, capsys):
        code = main(["score", str(node_project), "--json", "--no-tools", "--ci"])
        out, err = capsys.readouterr()
        data = json.loads(out)
        assert code == 0
        assert data["project"]["name"] == "shop-frontend"
        assert "grade" in err

    def test_deterministic_output(self, node_project, capsys):
        main(["score", str(node_project), "--json", "--no-tools", "--ci"])
        first = capsys.readouterr().out
        main(["score", str(node_project), "--json", "--no-tools", "--ci"])
        assert capsys.readouterr().out == first

    def test_categories_and_top(self, python_project, capsys):
        main(["score", str(python_project), "--json", "--categories", "testing,security", "--top", "1"])
        data = json.loads(capsys.readouterr().out)
        assert list(data["categories"]) == ["security", "testing"]
        assert len(data["recommendations"]) <= 1

    def test_min_grade_violation(self, empty_project):
        assert main(["score", str(empty_project), "--min-grade", "A"]) == 1

    def test_missing_path(self, tmp_path, capsys):
        assert main(["score", str(tmp_path / "missing")]) == 2
        assert "not a directory" in capsys.readouterr().err

    def test_unknown_category(self, node_project, capsys):
        assert main(["score", str(node_project), "--categories", "style"]) == 2
        assert "unknown categories" in capsys.readouterr().err

    def test_negative_top(self, node_project):
        assert main(["score", str(node_project), "--top", "-1"]) == 2


class TestCategories:
    def test_json(self, capsys):
        assert main(["categories", "--json"]) == 0
        table = json.loads(capsys.readouterr().out)
        assert sum(c["maxScore"] for c in table) == 100

    def test_text(self, capsys):
        main(["categories"])
        out = capsys.readouterr().out
        assert out.splitlines()[0].startswith("structure")
        assert "total" in out


class TestAccept:
    def test_records_history(self, node_project, capsys):
        key = "testing:add-tests:0badc0de"
        assert main(["accept", str(node_project), key, "--pattern", "testing"]) == 0
        assert "accepted" in capsys.readouterr().out
        accepted = RecommendationHistory.for_project(node_project).accepted()
        assert [(a.key, a.category, a.patterns) for a in accepted] == [(key, "testing", ("testing",))]

    def test_rejects_malformed_key(self, node_project):
        assert main(["accept", str(node_project), "add tests"]) == 2


class TestValidate:
    def test_round_trip(self, node_project, tmp_path, capsys):
        main(["score", str(node_project), "--json"])
        path = tmp_path / "score.json"
        path.write_text(capsys.readouterr().out, encoding="utf-8")
        assert main(["validate", str(path)]) == 0

    def test_invalid(self, tmp_path):
        path = tmp_path / "score.json"
        path.write_text(json.dumps({"schema_version": "overall_result_v1"}), encoding="utf-8")
        assert main(["validate", str(path)]) == 1

    def test_unreadable(self, tmp_path):
        path = tmp_path / "score.json"
        path.write_text("{", encoding="utf-8")
        assert main(["validate", str(path)]) == 2


def test_no_command_prints_help(capsys):
    assert main([]) == 2
    assert "usage" in capsys.readouterr().err
