"""Testing analyzer — test presence, coverage, layout and tooling.

Point allocation (15):

    presence_and_coverage  6   coverage report, or test/source ratio (max 5)
    organization           3   test directory 1, unit 1, integration/e2e 1
    tooling                3   framework 2, test script / runner config 1
    test_correspondence    3   ratio 1.5, parallel naming 1, large files tested 0.5
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from code_score.analyzers.base import BaseAnalyzer, Check
from code_score.model import Category, Ecosystem

_logger = logging.getLogger(__name__)

_NODE_FRAMEWORKS = (
    "jest",
    "vitest",
    "mocha",
    "jasmine",
    "ava",
    "tap",
    "uvu",
    "@playwright/test",
    "cypress",
    "@testing-library/react",
)
_PY_FRAMEWORKS = ("pytest", "hypothesis", "nose2", "ward", "pytest-cov", "coverage")
_NPM_DEFAULT_TEST = "no test specified"
_TEST_DIRS = ("tests", "test", "__tests__", "spec")
_INTEGRATION_PARTS = frozenset({"integration", "e2e", "cypress", "playwright", "functional", "acceptance"})
_TEST_AFFIX_RE = re.compile(r"^test_|_test$")


def subject_stem(path: Path) -> str:
    """Name of the module a test file covers: ``test_foo.py`` -> ``foo``."""
    stem = path.stem if path.suffix == ".py" else path.name.split(".")[0]
    return _TEST_AFFIX_RE.sub("", stem).lower()


class TestingAnalyzer(BaseAnalyzer):
    """Scores how thoroughly and how conventionally the project is tested."""

    __test__ = False

    name = Category.TESTING.value
    max_score = 15.0
    version = "1.0.0"
    default_confidence = 0.8
    checks = (
        Check("presence_and_coverage", 6, "check_presence_and_coverage"),
        Check("organization", 3, "check_organization"),
        Check("tooling", 3, "check_tooling"),
        Check("test_correspondence", 3, "check_test_correspondence"),
    )

    # ── coverage ───────────────────────────────────────────────────

    def coverage_percent(self) -> float | None:
        """Line coverage from an existing report, or ``None`` when there is none."""
        candidates = (
            ("coverage/coverage-summary.json", ("total", "lines", "pct")),
            ("coverage.json", ("totals", "percent_covered")),
        )
        for name, keys in candidates:
            text = self.manifest_text(name)
            if not text:
                continue
            try:
                value = json.loads(text)
                for key in keys:
                    value = value[key]
                return max(0.0, min(100.0, float(value)))
            except (ValueError, KeyError, TypeError) as exc:
                _logger.debug("Ignoring unreadable coverage report %s: %s", name, exc)
        return None

    def check_presence_and_coverage(self) -> None:
        tests = self.test_files()
        sources = self.source_files()
        self.set_detail("test_files", len(tests))
        if not tests:
            self.flag(
                "No test files found",
                "Add unit tests for core functionality",
                impact=5.0,
                confidence=0.95,
                patterns=("testing",),
            )
            return

        pct = self.coverage_percent()
        if pct is not None:
            self.set_detail("coverage", {"source": "report", "lines_pct": round(pct, 2)})
            self.add_score(6 * min(pct / 80, 1), 6, f"Line coverage {pct:.1f}%")
            if pct < 80:
                self.flag(
                    f"Line coverage is {pct:.0f}%",
                    "Raise line coverage to at least 80%",
                    impact=3.0 if pct < 50 else 1.5,
                    patterns=("coverage",),
                )
            return

        ratio = len(tests) / max(len(sources), 1)
        self.set_detail("coverage", {"source": "file-ratio", "ratio": round(ratio, 2)})
        self.add_score(5 * min(ratio / 0.5, 1), 5, f"Test/source file ratio {ratio:.2f}")
        fix = "Generate a coverage report with pytest --cov --cov-report=json" if self.ecosystem is Ecosystem.PYTHON else "Generate a coverage summary (jest --coverage --coverageReporters=json-summary)"
        self.flag("Need real coverage metrics", fix, impact=1.5, confidence=0.75, patterns=("coverage",))

    # ── organization ───────────────────────────────────────────────

    def check_organization(self) -> None:
        tests = self.test_files()
        test_dir = next((d for d in _TEST_DIRS if (self.root / d).is_dir() or (self.root / "src" / d).is_dir()), None)
        if test_dir:
            self.add_score(1, 1, f"Dedicated {test_dir}/ directory")
        elif tests:
            self.add_score(0.5, 1, "Tests colocated with source")

        integration = [p for p in tests if _INTEGRATION_PARTS & {part.lower() for part in p.relative_to(self.root).parts}]
        unit = len(tests) - len(integration)
        self.set_detail("test_layout", {"directory": test_dir, "unit": unit, "integration": len(integration)})
        if unit:
            self.add_score(1, 1, f"{unit} unit test files")
        if integration:
            self.add_score(1, 1, f"{len(integration)} integration/e2e test files")
        elif tests:
            self.flag(
                "No integration or end-to-end tests",
                "Add integration tests that exercise components together",
                impact=1.5,
                confidence=0.6,
                patterns=("testing",),
            )

    # ── tooling ────────────────────────────────────────────────────

    def check_tooling(self) -> None:
        manifest = self.manifest
        python = self.ecosystem is Ecosystem.PYTHON
        frameworks = _PY_FRAMEWORKS if python else _NODE_FRAMEWORKS
        found = [f for f in frameworks if manifest is not None and manifest.has_dependency(f)]
        self.set_detail("test_frameworks", found)
        if found:
            self.add_score(2, 2, f"Test framework: {found[0]}")
        else:
            self.flag(
                "No testing framework configured",
                "Add pytest to the test dependencies" if python else "Add Jest or Vitest as a dev dependency",
                impact=3.0,
                patterns=("testing",),
            )

        if python:
            runner = (
                self.exists("tox.ini", "noxfile.py", "pytest.ini", "conftest.py")
                or "[tool.pytest" in self.manifest_text("pyproject.toml")
                or "[tool:pytest]" in self.manifest_text("setup.cfg")
                or (manifest is not None and manifest.has_script("test", "tests"))
            )
        else:
            script = manifest.scripts.get("test", "") if manifest is not None else ""
            runner = bool(script) and _NPM_DEFAULT_TEST not in script
        if runner:
            self.add_score(1, 1, "Test command configured")
        else:
            self.flag("No test script configured", 'Add a "test" script that runs the suite', impact=1.0)

    # ── correspondence ─────────────────────────────────────────────

    def check_test_correspondence(self) -> None:
        tests = self.test_files()
        sources = self.source_files()
        if not sources or not tests:
            return
        ratio = len(tests) / len(sources)
        self.add_score(1.5 * min(ratio / 0.5, 1), 1.5, f"{len(tests)} tests for {len(sources)} source files")

        source_stems = {p.stem.split(".")[0].lower() for p in sources}
        tested = {subject_stem(p) for p in tests}
        matched = tested & source_stems
        share = len(matched) / len(tested) if tested else 0.0
        self.set_detail("test_correspondence", {"ratio": round(ratio, 2), "named_after_source": round(share, 2)})
        if share >= 0.5:
            self.add_score(1, 1, f"{share:.0%} of tests named after their subject")
        elif share > 0:
            self.add_score(0.5, 1, f"Some tests named after their subject ({share:.0%})")
        else:
            self.flag(
                "Tests do not mirror source file names",
                "Name test files after the module they cover (test_<module>.py or <module>.test.ts)",
                impact=0.5,
            )

        largest = self._largest_sources(sources, 5)
        covered = [p for p in largest if p.stem.split(".")[0].lower() in tested]
        if largest and len(covered) * 2 >= len(largest):
            self.add_score(0.5, 0.5, "Largest modules have tests")
        elif largest:
            self.flag(
                "Largest modules lack dedicated tests",
                f"Add tests for {', '.join(self.rel(p) for p in largest if p not in covered)}",
                impact=2.0,
                patterns=("testing",),
            )

    def _largest_sources(self, sources: list[Path], count: int) -> list[Path]:
        sized: list[tuple[int, str, Path]] = []
        for path in self.sample(sources, 100):
            content = self.read(path)
            if content is not None:
                sized.append((-content.count("\n"), self.rel(path), path))
        return [p for _, _, p in sorted(sized)[:count]]
