"""Enums shared across the engine and insight layers."""

from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    """Canonical category identifiers, in registry order."""

    STRUCTURE = "structure"
    QUALITY = "quality"
    PERFORMANCE = "performance"
    SECURITY = "security"
    TESTING = "testing"
    DEVELOPER_EXPERIENCE = "developer_experience"
    COMPLETENESS = "completeness"


class Priority(str, Enum):
    """How urgently a suggestion should be acted on."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Ecosystem(str, Enum):
    """Package ecosystem a manifest belongs to."""

    NODE = "node"
    PYTHON = "python"


CATEGORY_NAMES: tuple[str, ...] = tuple(c.value for c in Category)
