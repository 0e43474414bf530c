"""Shared utilities for code_score."""

from code_score.utils.determinism import normalize_path
from code_score.utils.json_norm import stable_json_dump, stable_json_dumps

__all__ = [
    "normalize_path",
    "stable_json_dump",
    "stable_json_dumps",
]
