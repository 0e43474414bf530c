"""Percentage → grade → exit-code policy — single source of truth.

Every layer (orchestrator, CLI exit code, HTTP API) must derive grades from
this module instead of hard-coding cut points locally.
"""

from __future__ import annotations

from dataclasses import dataclass

from code_score.utils.exit_codes import ExitCode

GRADES: tuple[str, ...] = ("A", "B", "C", "D", "F")


@dataclass(frozen=True, slots=True)
class GradeThresholds:
    """Lower bound (inclusive) of each passing grade, in percent."""

    a_min: float = 90.0
    b_min: float = 80.0
    c_min: float = 70.0
    d_min: float = 60.0


DEFAULT_THRESHOLDS = GradeThresholds()


def grade_from_percentage(
    percentage: float,
    *,
    thresholds: GradeThresholds = DEFAULT_THRESHOLDS,
) -> str:
    """Map a percentage score to a letter grade.

    Policy: ≥90 A, ≥80 B, ≥70 C, ≥60 D, otherwise F.
    """
    if percentage >= thresholds.a_min:
        return "A"
    if percentage >= thresholds.b_min:
        return "B"
    if percentage >= thresholds.c_min:
        return "C"
    if percentage >= thresholds.d_min:
        return "D"
    return "F"


def grade_rank(grade: str) -> int:
    """Ordinal position of *grade* (A = 0 … F = 4).

    Raises ``ValueError`` for anything that is not a known grade.
    """
    try:
        return GRADES.index(grade.upper())
    except ValueError:
        raise ValueError(f"unknown grade: {grade!r}") from None


def exit_code_from_grade(grade: str, *, minimum: str | None = None) -> int:
    """Map a grade to a CLI exit code.

    Policy: no minimum → success; grade at or above *minimum* → success;
    below → violation.
    """
    if minimum is None:
        return ExitCode.SUCCESS
    if grade_rank(grade) <= grade_rank(minimum):
        return ExitCode.SUCCESS
    return ExitCode.VIOLATION
