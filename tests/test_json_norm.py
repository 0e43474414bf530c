"""Tests for the canonical JSON normalization layer."""

import io
import json
from pathlib import Path

from code_score.model import Priority
from code_score.model.result import Issue, Suggestion
from code_score.utils.determinism import normalize_path
from code_score.utils.json_norm import stable_json_dump, stable_json_dumps, to_builtin


def test_stable_json_dumps_sorts_keys_and_adds_newline():
    s = stable_json_dumps({"b": 1, "a": 2})
    assert s.endswith("\n")
    # Keys should be sorted in the serialized output
    assert s.index('"a"') < s.index('"b"')


def test_stable_json_dumps_rounds_floats_in_ci_mode():
    s = stable_json_dumps({"x": 1.234567}, ci_mode=True)
    obj = json.loads(s)
    assert obj["x"] == 1.2346


def test_floats_untouched_outside_ci_mode():
    assert json.loads(stable_json_dumps({"x": 1.234567}))["x"] == 1.234567


def test_stable_json_dumps_normalizes_paths():
    s = stable_json_dumps({"p": Path("a") / "b"})
    obj = json.loads(s)
    assert obj["p"] == "a/b"


def test_result_objects_use_to_dict():
    """Dataclasses with to_dict() serialize through it, enums by value."""
    built = to_builtin({"issue": Issue("m", "d"), "priority": Priority.HIGH})
    assert built == {"issue": {"message": "m", "detail": "d"}, "priority": "high"}


def test_suggestion_tuples_become_lists():
    built = to_builtin(Suggestion(category="quality", text="Add tests", patterns=("testing",)))
    assert built["patterns"] == ["testing"]
    assert built["fileTypes"] == []
    assert "rankScore" not in built


def test_sets_are_sorted():
    assert to_builtin({"s": {"b", "a"}}) == {"s": ["a", "b"]}


def test_stable_json_dump_writes_to_file_like():
    buf = io.StringIO()
    stable_json_dump({"b": 1, "a": 2}, buf)
    txt = buf.getvalue()
    assert txt.endswith("\n")
    assert '"a"' in txt and '"b"' in txt


def test_normalize_path(tmp_path):
    assert normalize_path(tmp_path / "src" / "a.py", tmp_path) == "src/a.py"
    assert normalize_path(Path("/elsewhere/b.py"), tmp_path) == "/elsewhere/b.py"
