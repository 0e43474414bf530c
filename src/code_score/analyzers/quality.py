"""Quality analyzer — linting, documentation, complexity, type safety.

Point allocation (20):

    linting        6   linter result 4, formatter config 2
    documentation  5   README 2, doc comments 3
    complexity     4   average decision points per function
    type_safety    3   checker config 2, typed-source share 1
    consistency    2   indentation style agreement across files

The linter check runs ESLint or Ruff through the tool runner when the
project configures one; when the tool cannot run it scores the
configuration alone and says so.
"""

from __future__ import annotations

import logging
import re
from collections import Counter

from code_score.analyzers.base import BaseAnalyzer, Check
from code_score.core.discover import JS_EXTENSIONS
from code_score.core.tools import run_lint
from code_score.errors import ExternalToolUnavailable
from code_score.model import Category, Ecosystem

_logger = logging.getLogger(__name__)

_ESLINT_CONFIGS = (
    ".eslintrc",
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.json",
    ".eslintrc.yml",
    ".eslintrc.yaml",
    "eslint.config.js",
    "eslint.config.mjs",
    "eslint.config.cjs",
    "eslint.config.ts",
)
_PY_LINT_CONFIGS = (".ruff.toml", "ruff.toml", ".flake8", ".pylintrc", "pylintrc")
_PRETTIER_CONFIGS = (
    ".prettierrc",
    ".prettierrc.json",
    ".prettierrc.js",
    ".prettierrc.cjs",
    ".prettierrc.yml",
    ".prettierrc.yaml",
    "prettier.config.js",
    "prettier.config.cjs",
)
_PY_TYPE_CONFIGS = ("mypy.ini", ".mypy.ini", "pyrightconfig.json", "py.typed")

_DOC_COMMENT_RE = re.compile(r"/\*\*[\s\S]*?\*/|^\s*(\"\"\"|''')", re.MULTILINE)
_DECISION_RE = re.compile(r"\b(if|elif|for|while|case|catch|except)\b|&&|\|\||\?\?")
_FUNCTION_RE = re.compile(r"\bfunction\b|=>|^\s*(async\s+)?def\s", re.MULTILINE)
_ANNOTATED_DEF_RE = re.compile(r"^\s*(async\s+)?def\s+\w+\([^)]*\)\s*->", re.MULTILINE)
_DEF_RE = re.compile(r"^\s*(async\s+)?def\s+\w+\(", re.MULTILINE)
_INDENT_RE = re.compile(r"^([ \t]+)\S", re.MULTILINE)


def indent_unit(content: str) -> str | None:
    """Dominant indentation unit of *content*: ``tab``, ``2`` or ``4`` spaces."""
    widths: Counter[str] = Counter()
    for indent in _INDENT_RE.findall(content):
        if "\t" in indent:
            widths["tab"] += 1
        elif len(indent) % 4 == 0:
            widths["4"] += 1
        elif len(indent) % 2 == 0:
            widths["2"] += 1
    if not widths:
        return None
    # 4-space indentation is also a multiple of 2; only call it "2" when
    # 2-wide levels actually appear.
    if widths["2"] and widths["4"]:
        return "2"
    return widths.most_common(1)[0][0]


class QualityAnalyzer(BaseAnalyzer):
    """Scores code hygiene: linting, docs, complexity and typing."""

    name = Category.QUALITY.value
    max_score = 20.0
    version = "1.0.0"
    default_confidence = 0.8
    checks = (
        Check("linting", 6, "check_linting"),
        Check("documentation", 5, "check_documentation"),
        Check("complexity", 4, "check_complexity"),
        Check("type_safety", 3, "check_type_safety"),
        Check("consistency", 2, "check_consistency"),
    )

    # ── linting ────────────────────────────────────────────────────

    def _pyproject_has(self, table: str) -> bool:
        return f"[tool.{table}" in self.manifest_text("pyproject.toml")

    def _linter_configured(self) -> bool:
        if self.ecosystem is Ecosystem.NODE:
            return self.exists(*_ESLINT_CONFIGS) or (
                self.manifest is not None and self.manifest.has_dependency("eslint")
            )
        return (
            self.exists(*_PY_LINT_CONFIGS)
            or self._pyproject_has("ruff")
            or self._pyproject_has("pylint")
            or "[flake8]" in self.manifest_text("setup.cfg")
            or (self.manifest is not None and self.manifest.has_dependency("ruff", "flake8", "pylint"))
        )

    def _formatter_configured(self) -> bool:
        if self.ecosystem is Ecosystem.NODE:
            return self.exists(*_PRETTIER_CONFIGS) or (
                self.manifest is not None and self.manifest.has_dependency("prettier", "@biomejs/biome")
            )
        return (
            self._pyproject_has("black")
            or self._pyproject_has("ruff.format")
            or (self.manifest is not None and self.manifest.has_dependency("black", "ruff", "yapf", "autopep8"))
        )

    def check_linting(self) -> None:
        linter = "ESLint" if self.ecosystem is Ecosystem.NODE else "Ruff"
        if self._linter_configured():
            try:
                report = run_lint(self.tool_runner, self.manifest, self.root)
            except ExternalToolUnavailable as exc:
                _logger.info("Linter unavailable for %s: %s", self.root, exc)
                self.add_score(2, 4, f"{linter} configured but could not run")
                self.add_issue(f"{exc.tool} not available: lint analysis degraded", exc.reason)
                self.set_detail("lint", {"tool": exc.tool, "status": "unavailable"})
            else:
                self.set_detail("lint", {"tool": linter, "status": "ok", **report.to_dict()})
                self._score_lint(report.errors, report.warnings, linter)
        else:
            self.flag(
                "No linter configuration found",
                "Add ESLint (npx eslint --init)" if linter == "ESLint" else "Add Ruff and a [tool.ruff] section to pyproject.toml",
                impact=3.0,
                patterns=("linting",),
            )

        if self._formatter_configured():
            self.add_score(2, 2, "Formatter configured")
        else:
            self.flag(
                "No formatter configuration found",
                "Add Prettier for consistent formatting" if linter == "ESLint" else "Add Black or ruff format for consistent formatting",
                impact=1.5,
                patterns=("formatting",),
            )

    def _score_lint(self, errors: int, warnings: int, linter: str) -> None:
        if errors == 0 and warnings == 0:
            self.add_score(4, 4, f"No {linter} errors or warnings")
        elif errors == 0 and warnings <= 10:
            self.add_score(3, 4, f"Only {warnings} {linter} warnings")
            self.flag(f"{warnings} {linter} warnings", f"Fix the remaining {linter} warnings", impact=1.0)
        elif errors <= 10:
            self.add_score(2, 4, f"{errors} {linter} errors, {warnings} warnings")
            self.flag(f"{errors} {linter} errors", f"Fix {linter} errors to improve code quality", impact=2.0)
        else:
            self.add_score(1, 4, f"Many {linter} issues ({errors} errors, {warnings} warnings)")
            self.flag("High lint error count", f"Run {linter} with autofix and address the remaining errors", impact=3.0)

    # ── documentation ──────────────────────────────────────────────

    def check_documentation(self) -> None:
        readme = self.first_existing("README.md", "README.rst", "README.txt", "README", "readme.md")
        if readme is None:
            self.flag("No README found", "Add a README.md with project documentation", impact=2.0, patterns=("documentation",))
        else:
            text = self.read(readme) or ""
            if len(text) > 1000:
                self.add_score(2, 2, "Comprehensive README")
            else:
                self.add_score(1, 2, "Basic README")
                self.flag("README is quite short", "Expand the README with setup and usage instructions", impact=1.0)

        files = self.sample(self.source_files(), 20)
        if not files:
            self.add_score(1.5, 3, "No source files sampled for documentation")
            return
        documented = self.count_files_matching(files, _DOC_COMMENT_RE)
        ratio = documented / len(files)
        self.set_detail("documented_files", {"documented": documented, "sampled": len(files)})
        self.add_score(3 * ratio, 3, f"{ratio:.0%} of sampled files have doc comments")
        if ratio < 0.5:
            fix = "Add docstrings to public modules, classes and functions" if self.ecosystem is Ecosystem.PYTHON else "Add JSDoc comments to exported functions and classes"
            self.flag("Low documentation coverage", fix, impact=2.0, patterns=("documentation",))

    # ── complexity ─────────────────────────────────────────────────

    def check_complexity(self) -> None:
        files = self.sample(self.source_files(), 20)
        decisions = functions = 0
        for path in files:
            content = self.read(path)
            if content is None:
                continue
            decisions += len(_DECISION_RE.findall(content))
            functions += len(_FUNCTION_RE.findall(content))
        if not files:
            self.add_score(2, 4, "Complexity inconclusive (no source files)")
            return
        avg = 1 + decisions / max(functions, 1)
        self.set_detail("average_complexity", round(avg, 2))
        if avg <= 5:
            self.add_score(4, 4, f"Low complexity (avg {avg:.1f})")
        elif avg <= 10:
            self.add_score(3, 4, f"Moderate complexity (avg {avg:.1f})")
        elif avg <= 15:
            self.add_score(2, 4, f"High complexity (avg {avg:.1f})")
            self.flag("High code complexity detected", "Break down complex functions", impact=2.0, patterns=("complexity",))
        else:
            self.add_score(1, 4, f"Very high complexity (avg {avg:.1f})")
            self.flag("Very high code complexity", "Refactor complex functions into smaller, focused units", impact=3.0, patterns=("complexity",))

    # ── type safety ────────────────────────────────────────────────

    def check_type_safety(self) -> None:
        if self.ecosystem is Ecosystem.PYTHON:
            self._python_typing()
        else:
            self._typescript_typing()

    def _typescript_typing(self) -> None:
        files = self.source_files(JS_EXTENSIONS)
        ts = sum(1 for p in files if p.suffix in (".ts", ".tsx"))
        ratio = ts / len(files) if files else 0.0
        self.set_detail("typescript_ratio", round(ratio, 2))
        if self.exists("tsconfig.json"):
            self.add_score(2, 2, "TypeScript configuration found")
            if ratio >= 0.8:
                self.add_score(1, 1, f"High TypeScript adoption ({ratio:.0%})")
            elif ratio >= 0.5:
                self.add_score(0.5, 1, f"Moderate TypeScript adoption ({ratio:.0%})")
            else:
                self.flag("Low TypeScript adoption", "Migrate more files to TypeScript", impact=1.0, file_types=(".ts", ".tsx"))
        elif ts:
            self.add_score(1, 3, "TypeScript files found but no tsconfig.json")
            self.flag("TypeScript files without configuration", "Add tsconfig.json with strict mode", impact=1.5)
        else:
            self.flag(
                "No TypeScript usage detected",
                "Consider adopting TypeScript for better type safety",
                impact=1.5,
                confidence=0.6,
                patterns=("typescript",),
            )

    def _python_typing(self) -> None:
        checker = (
            self.exists(*_PY_TYPE_CONFIGS)
            or self._pyproject_has("mypy")
            or self._pyproject_has("pyright")
            or "[mypy" in self.manifest_text("setup.cfg")
            or (self.manifest is not None and self.manifest.has_dependency("mypy", "pyright"))
        )
        files = self.sample(self.source_files((".py",)), 20)
        defs = annotated = 0
        for path in files:
            content = self.read(path)
            if content is None:
                continue
            defs += len(_DEF_RE.findall(content))
            annotated += len(_ANNOTATED_DEF_RE.findall(content))
        ratio = annotated / defs if defs else 0.0
        self.set_detail("annotated_function_ratio", round(ratio, 2))
        if checker:
            self.add_score(2, 2, "Static type checker configured")
        else:
            self.flag("No static type checker configured", "Add mypy or pyright to the development workflow", impact=1.5, patterns=("typing",))
        if ratio >= 0.6:
            self.add_score(1, 1, f"Most functions annotated ({ratio:.0%})")
        elif ratio >= 0.3:
            self.add_score(0.5, 1, f"Some functions annotated ({ratio:.0%})")
        elif defs:
            self.flag("Few type annotations", "Add return and parameter annotations to public functions", impact=1.0, file_types=(".py",))

    # ── consistency ────────────────────────────────────────────────

    def check_consistency(self) -> None:
        files = self.sample(self.source_files(), 20)
        units: Counter[str] = Counter()
        for path in files:
            content = self.read(path)
            if content is None:
                continue
            unit = indent_unit(content)
            if unit is not None:
                units[unit] += 1
        total = sum(units.values())
        if not total:
            self.add_score(1, 2, "Formatting consistency inconclusive")
            return
        dominant, count = units.most_common(1)[0]
        agreement = count / total
        self.set_detail("indentation", {"dominant": dominant, "agreement": round(agreement, 2)})
        if agreement >= 0.9:
            self.add_score(2, 2, f"Consistent indentation ({agreement:.0%} {dominant})")
        elif agreement >= 0.7:
            self.add_score(1, 2, f"Mostly consistent indentation ({agreement:.0%})")
            self.flag("Mixed indentation styles", "Enforce one indentation style with a formatter and .editorconfig", impact=0.5)
        else:
            self.flag("Inconsistent indentation", "Run a formatter across the codebase", impact=1.0)
