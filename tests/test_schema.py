"""Bundled result schema and file validation."""

import json

import jsonschema
import pytest

from code_score.api import score_project
from code_score.contracts.load import OVERALL_RESULT_SCHEMA, load_schema, validate_file, validate_instance
from code_score.model.result import SCHEMA_VERSION


@pytest.fixture
def result_file(node_project, offline_config, tmp_path):
    _, result_dict = score_project(node_project, config=offline_config)
    path = tmp_path / "score.json"
    path.write_text(json.dumps(result_dict), encoding="utf-8")
    return path


def test_schema_version_is_pinned():
    schema = load_schema(OVERALL_RESULT_SCHEMA)
    assert schema["properties"]["schema_version"]["const"] == SCHEMA_VERSION


def test_valid_file(result_file):
    validate_file(result_file)


def test_schema_version_mismatch(result_file):
    data = json.loads(result_file.read_text(encoding="utf-8"))
    data["schema_version"] = "overall_result_v0"
    result_file.write_text(json.dumps(data), encoding="utf-8")
    with pytest.raises(ValueError, match="expected schema_version"):
        validate_file(result_file)


def test_invalid_grade_rejected(result_file):
    data = json.loads(result_file.read_text(encoding="utf-8"))
    data["grade"] = "E"
    with pytest.raises(jsonschema.ValidationError):
        validate_instance(data, OVERALL_RESULT_SCHEMA)


def test_unknown_top_level_key_rejected(result_file):
    data = json.loads(result_file.read_text(encoding="utf-8"))
    data["extra"] = True
    with pytest.raises(jsonschema.ValidationError):
        validate_instance(data, OVERALL_RESULT_SCHEMA)
