"""Canonical JSON serialization — single dump path for results and history.

Guarantees:
  - Stable key ordering (``sort_keys=True``)
  - Trailing newline at EOF
  - ``Path`` objects → POSIX strings, ``Enum`` members → their values
  - Objects exposing ``to_dict()`` are serialized through it
  - Optional CI-mode float rounding (4 digits)
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, IO, Mapping


def to_builtin(obj: Any) -> Any:
    """Convert result objects and common non-JSON types into builtins."""
    if isinstance(obj, Enum):
        return to_builtin(obj.value)
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Path):
        return obj.as_posix()
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_builtin(to_dict())
    if isinstance(obj, Mapping):
        return {str(k): to_builtin(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_builtin(v) for v in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(to_builtin(v) for v in obj)
    return str(obj)


def _round_floats(obj: Any, *, ndigits: int = 4) -> Any:
    """Recursively round floats for cross-platform determinism."""
    if isinstance(obj, float):
        if obj != obj or obj in (float("inf"), float("-inf")):
            return str(obj)
        return round(obj, ndigits)
    if isinstance(obj, Mapping):
        return {k: _round_floats(v, ndigits=ndigits) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_round_floats(v, ndigits=ndigits) for v in obj]
    return obj


def stable_json_dumps(
    obj: Any,
    *,
    ci_mode: bool = False,
    indent: int | None = 2,
) -> str:
    """Serialize *obj* with sorted keys and a trailing newline."""
    built = to_builtin(obj)
    if ci_mode:
        built = _round_floats(built)
    return json.dumps(built, indent=indent, sort_keys=True, ensure_ascii=False) + "\n"


def stable_json_dump(
    obj: Any,
    fp: IO[str],
    *,
    ci_mode: bool = False,
    indent: int | None = 2,
) -> None:
    fp.write(stable_json_dumps(obj, ci_mode=ci_mode, indent=indent))
