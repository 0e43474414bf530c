"""Load and validate JSON instances against the bundled schemas.

Usage::

    from code_score.contracts.load import validate_instance, validate_file

    validate_instance(result.to_dict(), "overall_result.schema.json")
    validate_file(Path("score.json"), "overall_result.schema.json")
"""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema

from code_score.model.result import SCHEMA_VERSION

SCHEMA_DIR = "data/schemas"
OVERALL_RESULT_SCHEMA = "overall_result.schema.json"


def _schema_path(name: str) -> Path:
    """Resolve a bundled schema.

    Priority:
    1. ``src/code_score/data/schemas/`` relative to this file
    2. installed package data via importlib.resources
    """
    canonical = Path(__file__).resolve().parents[1] / SCHEMA_DIR / name
    if canonical.exists():
        return canonical
    with resources.as_file(resources.files("code_score") / SCHEMA_DIR / name) as p:
        return p


@lru_cache(maxsize=None)
def _load_schema_text(name: str) -> str:
    return _schema_path(name).read_text(encoding="utf-8")


def load_schema(name: str) -> dict[str, Any]:
    """Load a bundled JSON schema by filename."""
    return json.loads(_load_schema_text(name))


def validate_instance(instance: Any, schema_name: str) -> None:
    """Validate *instance* against the named schema.

    Raises ``jsonschema.ValidationError`` on failure.
    """
    schema = load_schema(schema_name)
    jsonschema.validate(instance=instance, schema=schema)


def validate_file(instance_path: Path, schema_name: str = OVERALL_RESULT_SCHEMA) -> None:
    """Load a JSON file and validate it against the named schema."""
    instance = json.loads(instance_path.read_text(encoding="utf-8"))

    # Readable error before the generic jsonschema message.
    if schema_name == OVERALL_RESULT_SCHEMA and isinstance(instance, dict):
        sv = instance.get("schema_version")
        if sv != SCHEMA_VERSION:
            raise ValueError(f"{instance_path}: expected schema_version={SCHEMA_VERSION!r}, got {sv!r}")

    validate_instance(instance, schema_name)
