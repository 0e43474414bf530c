"""Result value objects — Issue, Suggestion, CategoryResult, OverallResult."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from typing import Any

from code_score.model import Priority
from code_score.policy.grades import grade_from_percentage

SCHEMA_VERSION = "overall_result_v1"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def _percentage(score: float, max_score: float) -> float:
    if max_score <= 0:
        return 0.0
    return round(score / max_score * 100, 2)


def make_suggestion_key(category: str, text: str) -> str:
    """Deterministic identity for a suggestion, stable across runs.

    Used by the recommendation history to recognise a suggestion the
    user has already accepted.
    """
    slug = _SLUG_RE.sub("-", text.lower()).strip("-")[:40].rstrip("-")
    digest = hashlib.sha256(f"{category}|{text}".encode("utf-8")).hexdigest()[:8]
    return f"{category}:{slug}:{digest}"


@dataclass(frozen=True, slots=True)
class Issue:
    """A deduction-worthy finding."""

    message: str
    detail: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "detail": self.detail}


@dataclass(frozen=True, slots=True)
class Suggestion:
    """An actionable improvement emitted by an analyzer."""

    category: str
    text: str
    impact: float = 1.0
    confidence: float = 0.7
    priority: Priority = Priority.MEDIUM
    patterns: tuple[str, ...] = ()
    file_types: tuple[str, ...] = ()
    rank_score: float | None = None

    @property
    def key(self) -> str:
        return make_suggestion_key(self.category, self.text)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "key": self.key,
            "category": self.category,
            "text": self.text,
            "impact": self.impact,
            "confidence": self.confidence,
            "priority": self.priority.value,
            "patterns": list(self.patterns),
            "fileTypes": list(self.file_types),
        }
        if self.rank_score is not None:
            d["rankScore"] = self.rank_score
        return d


@dataclass(frozen=True)
class CategoryResult:
    """Outcome of one analyzer run.

    Invariant: ``0 <= score <= max_score``.
    """

    name: str
    score: float
    max_score: float
    issues: tuple[Issue, ...] = ()
    suggestions: tuple[Suggestion, ...] = ()
    details: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def percentage(self) -> float:
        return _percentage(self.score, self.max_score)

    @property
    def grade(self) -> str:
        return grade_from_percentage(self.percentage)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def failure(cls, name: str, max_score: float, error: str) -> CategoryResult:
        """Result recorded for an analyzer that raised or timed out."""
        return cls(
            name=name,
            score=0.0,
            max_score=max_score,
            issues=(Issue(f"Analysis failed: {error}"),),
            error=error,
        )

    def without_details(self) -> CategoryResult:
        return CategoryResult(
            name=self.name,
            score=self.score,
            max_score=self.max_score,
            issues=self.issues,
            suggestions=self.suggestions,
            details={},
            error=self.error,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "maxScore": self.max_score,
            "percentage": self.percentage,
            "grade": self.grade,
            "issues": [i.to_dict() for i in self.issues],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "details": self.details,
            "error": self.error,
        }


@dataclass(frozen=True)
class RunSummary:
    """Which analyzers completed or failed, plus the grade spread."""

    completed: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    errors: dict[str, str] = field(default_factory=dict)
    grade_distribution: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed": list(self.completed),
            "failed": list(self.failed),
            "errors": dict(self.errors),
            "gradeDistribution": dict(self.grade_distribution),
        }


@dataclass(frozen=True)
class OverallResult:
    """Aggregate of every category result for one run.

    Invariants: ``score == sum(category scores)`` within rounding, and
    ``summary.completed`` / ``summary.failed`` partition the category names.
    """

    project_name: str
    project_type: str
    framework: str | None
    score: float
    max_score: float
    categories: dict[str, CategoryResult]
    summary: RunSummary
    recommendations: tuple[Suggestion, ...] = ()

    @property
    def percentage(self) -> float:
        return _percentage(self.score, self.max_score)

    @property
    def grade(self) -> str:
        return grade_from_percentage(self.percentage)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "project": {
                "name": self.project_name,
                "type": self.project_type,
                "framework": self.framework,
            },
            "score": self.score,
            "maxScore": self.max_score,
            "percentage": self.percentage,
            "grade": self.grade,
            "categories": {
                name: result.to_dict() for name, result in self.categories.items()
            },
            "summary": self.summary.to_dict(),
            "recommendations": [s.to_dict() for s in self.recommendations],
        }
