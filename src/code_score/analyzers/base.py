"""BaseAnalyzer — the scoring primitives every built-in analyzer uses.

A subclass declares its category ``name``, its ``max_score`` and an
ordered tuple of ``Check`` entries. The sum of the checks' ``max_points``
must equal ``max_score``; each check method runs inside its own budget, so
``add_score`` can never push a check (and therefore the category) past its
cap.

Score only ever accumulates. A deduction is expressed by *not* adding
points and recording an ``Issue``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Pattern, Sequence

from code_score.core.discover import SOURCE_EXTENSIONS, FileCollector
from code_score.core.manifest import Manifest
from code_score.core.tools import ToolRunner
from code_score.model import Ecosystem, Priority
from code_score.model.context import ProjectContext
from code_score.model.result import CategoryResult, Issue, Suggestion
from code_score.utils.determinism import normalize_path

_TEST_NAME_RE = re.compile(r"(\.(test|spec)\.[a-z]+$)|(^test_.*\.py$)|(_test\.py$)")
_TEST_DIRS = frozenset({"test", "tests", "__tests__", "spec", "e2e", "cypress", "playwright"})


def is_test_file(path: Path, root: Path) -> bool:
    """True for files named like tests or living under a test directory."""
    if _TEST_NAME_RE.search(path.name):
        return True
    try:
        parts = path.relative_to(root).parts[:-1]
    except ValueError:
        parts = path.parts[:-1]
    return any(p in _TEST_DIRS for p in parts)


def priority_for(impact: float) -> Priority:
    if impact >= 3:
        return Priority.HIGH
    if impact >= 1.5:
        return Priority.MEDIUM
    return Priority.LOW


@dataclass(frozen=True, slots=True)
class Check:
    """One named sub-score with a fixed point allocation."""

    name: str
    max_points: float
    method: str


class BaseAnalyzer:
    """Shared state and scoring API for the category analyzers.

    Instances are reusable across runs but not re-entrant: ``run()`` resets
    all accumulated state before executing the checks.
    """

    name: str = ""
    max_score: float = 0.0
    version: str = "1.0.0"
    checks: tuple[Check, ...] = ()
    default_confidence: float = 0.7

    def __init__(self, *, tool_runner: ToolRunner | None = None) -> None:
        self.tool_runner = tool_runner or ToolRunner()
        self.context: ProjectContext | None = None
        self.collector = FileCollector()
        self._score = 0.0
        self._issues: list[Issue] = []
        self._suggestions: list[Suggestion] = []
        self._details: dict[str, Any] = {}
        self._check_scores: dict[str, float] = {}
        self._reasons: list[str] = []
        self._active: Check | None = None

    # ── lifecycle ───────────────────────────────────────────────────

    def run(self, context: ProjectContext) -> CategoryResult:
        """Reset state, execute every check, and return the result."""
        self._reset(context)
        self.run_checks()
        return self._finish()

    def run_checks(self) -> None:
        for check in self.checks:
            self._active = check
            self._check_scores.setdefault(check.name, 0.0)
            getattr(self, check.method)()
        self._active = None

    def _reset(self, context: ProjectContext) -> None:
        self.context = context
        self.collector = FileCollector.with_extra_excludes(context.exclude_dirs)
        self._score = 0.0
        self._issues = []
        self._suggestions = []
        self._details = {}
        self._check_scores = {}
        self._reasons = []
        self._active = None

    def _finish(self) -> CategoryResult:
        score = round(min(max(self._score, 0.0), self.max_score), 2)
        details = dict(self._details)
        details["checks"] = {
            c.name: {"score": round(self._check_scores.get(c.name, 0.0), 2), "max": c.max_points}
            for c in self.checks
        }
        details["diagnostics"] = {
            "skipped_dirs": self.collector.skipped_dirs,
            "skipped_files": self.collector.skipped_files,
        }
        if self.context is not None and self.context.options.verbose:
            details["scoring"] = list(self._reasons)
        return CategoryResult(
            name=self.name,
            score=score,
            max_score=self.max_score,
            issues=tuple(self._issues),
            suggestions=tuple(self._suggestions),
            details=details,
        )

    # ── scoring primitives ──────────────────────────────────────────

    def add_score(self, points: float, max_points: float, reason: str = "") -> float:
        """Add *points* (clamped to ``[0, max_points]`` and the active check's budget).

        Returns the points actually awarded.
        """
        awarded = max(0.0, min(float(points), float(max_points)))
        if self._active is not None:
            used = self._check_scores[self._active.name]
            awarded = min(awarded, max(0.0, self._active.max_points - used))
            self._check_scores[self._active.name] = used + awarded
        self._score += awarded
        if reason:
            self._reasons.append(f"+{awarded:g}/{max_points:g} {reason}")
        return awarded

    def add_issue(self, message: str, detail: str = "") -> None:
        self._issues.append(Issue(message=message, detail=detail))

    def add_suggestion(
        self,
        text: str,
        *,
        impact: float = 1.0,
        confidence: float | None = None,
        priority: Priority | None = None,
        patterns: Iterable[str] = (),
        file_types: Iterable[str] = (),
    ) -> None:
        conf = self.default_confidence if confidence is None else confidence
        self._suggestions.append(
            Suggestion(
                category=self.name,
                text=text,
                impact=round(max(0.0, float(impact)), 2),
                confidence=round(max(0.0, min(1.0, float(conf))), 2),
                priority=priority or priority_for(impact),
                patterns=tuple(patterns),
                file_types=tuple(file_types),
            )
        )

    def set_detail(self, key: str, value: Any) -> None:
        self._details[key] = value

    def flag(
        self,
        message: str,
        fix: str,
        *,
        impact: float = 1.0,
        confidence: float | None = None,
        priority: Priority | None = None,
        patterns: Iterable[str] = (),
        file_types: Iterable[str] = (),
    ) -> None:
        """Record an ``Issue`` and the ``Suggestion`` that resolves it."""
        self.add_issue(message, fix)
        self.add_suggestion(
            fix,
            impact=impact,
            confidence=confidence,
            priority=priority,
            patterns=patterns,
            file_types=file_types,
        )

    # ── file helpers ────────────────────────────────────────────────

    def require_context(self) -> ProjectContext:
        if self.context is None:
            raise RuntimeError(f"{type(self).__name__} used outside run()")
        return self.context

    @property
    def root(self) -> Path:
        return self.require_context().root

    @property
    def manifest(self) -> Manifest | None:
        return self.context.manifest if self.context is not None else None

    @property
    def ecosystem(self) -> Ecosystem:
        """Manifest ecosystem, or a guess from the source files when there is none."""
        if self.manifest is not None:
            return self.manifest.ecosystem
        files = self.source_files(include_tests=True)
        py = sum(1 for p in files if p.suffix == ".py")
        return Ecosystem.PYTHON if py * 2 > len(files) else Ecosystem.NODE

    def manifest_text(self, name: str) -> str:
        """Content of a root-level config file, or ``""`` when absent."""
        path = self.root / name
        if not path.is_file():
            return ""
        return self.read(path) or ""

    def require_manifest(self) -> Manifest | None:
        """Return a usable manifest, or record why there is none."""
        manifest = self.manifest
        if manifest is None:
            self.flag(
                "No manifest found",
                "Add a package.json or pyproject.toml that declares the project's dependencies",
                impact=2.0,
            )
            return None
        if manifest.parse_error:
            self.flag(
                f"{manifest.kind} could not be parsed",
                f"Fix {manifest.kind}: {manifest.parse_error}",
                impact=2.0,
            )
            return None
        return manifest

    def source_files(
        self,
        extensions: Iterable[str] = SOURCE_EXTENSIONS,
        *,
        include_tests: bool = False,
    ) -> list[Path]:
        files = self.collector.collect(self.root, extensions)
        if include_tests:
            return files
        return [p for p in files if not is_test_file(p, self.root)]

    def test_files(self, extensions: Iterable[str] = SOURCE_EXTENSIONS) -> list[Path]:
        return [p for p in self.collector.collect(self.root, extensions) if is_test_file(p, self.root)]

    def sample(self, files: Sequence[Path], default: int) -> list[Path]:
        return self.require_context().sampling.sample(files, default, root=self.root)

    def read(self, path: Path) -> str | None:
        return self.collector.read_text(path)

    def rel(self, path: Path) -> str:
        return normalize_path(path, self.root)

    def exists(self, *names: str) -> bool:
        return any((self.root / n).exists() for n in names)

    def first_existing(self, *names: str) -> Path | None:
        for n in names:
            p = self.root / n
            if p.exists():
                return p
        return None

    def count_files_matching(self, files: Sequence[Path], pattern: Pattern[str]) -> int:
        """Number of *files* whose content matches *pattern* at least once."""
        hits = 0
        for path in files:
            content = self.read(path)
            if content is not None and pattern.search(content):
                hits += 1
        return hits

    def count_matches(self, files: Sequence[Path], pattern: Pattern[str]) -> int:
        """Total occurrences of *pattern* across *files*."""
        total = 0
        for path in files:
            content = self.read(path)
            if content is not None:
                total += len(pattern.findall(content))
        return total
