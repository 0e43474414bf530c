"""Determinism helpers for CI-reproducible output."""

from __future__ import annotations

from pathlib import Path


def normalize_path(path: Path, root: Path) -> str:
    """Convert a path to a root-relative POSIX string.

    Paths outside *root* are returned as absolute POSIX strings.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
