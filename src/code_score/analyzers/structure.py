"""Structure analyzer — file organization, module boundaries, architecture.

Point allocation (20):

    file_organization   5   directory layout 2, grouping 2, separation 1
    module_boundaries   5   import/export consistency 3, module size 2
    naming              4   file-name consistency 2, component naming 2
    architecture        3   framework strategy (see strategies.py)
    dependencies        3   count 1, dev separation 1, no import cycles 1
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from pathlib import Path

from code_score.analyzers.base import BaseAnalyzer, Check
from code_score.analyzers.strategies import STRATEGY_MAX_SCORE, StrategySelector
from code_score.core.discover import JS_EXTENSIONS, SOURCE_EXTENSIONS
from code_score.model import Category

_logger = logging.getLogger(__name__)

_ESM_RE = re.compile(r"^\s*(import\s.+\sfrom\s|import\s+['\"]|export\s)", re.MULTILINE)
_CJS_RE = re.compile(r"\brequire\s*\(\s*['\"]|\bmodule\.exports\b|\bexports\.\w+\s*=")
_STAR_IMPORT_RE = re.compile(r"^\s*from\s+\S+\s+import\s+\*", re.MULTILINE)
_JS_REL_IMPORT_RE = re.compile(r"""(?:from\s+|require\s*\(\s*|import\s*\(\s*)['"](\.{1,2}/[^'"]+)['"]""")
_PY_REL_IMPORT_RE = re.compile(r"^\s*from\s+\.([A-Za-z_][\w]*)\s+import\b", re.MULTILINE)

_CONCERN_DIRS = (
    "components",
    "services",
    "utils",
    "helpers",
    "models",
    "hooks",
    "api",
    "core",
    "routes",
    "controllers",
    "views",
    "lib",
    "store",
    "types",
)

_KEBAB = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)+$")
_SNAKE = re.compile(r"^[a-z0-9]+(_[a-z0-9]+)+$")
_CAMEL = re.compile(r"^[a-z]+[a-z0-9]*([A-Z][a-z0-9]*)+$")
_PASCAL = re.compile(r"^[A-Z][a-z0-9]+([A-Z][a-z0-9]*)*$")
_SINGLE = re.compile(r"^[a-z0-9]+$")

_COMPONENT_EXTS = (".jsx", ".tsx", ".vue", ".svelte")


def naming_style(stem: str) -> str | None:
    """Classify a file stem; ``None`` for single words that fit any style."""
    stem = stem.split(".")[0]
    if _SINGLE.match(stem) or stem.startswith("_"):
        return None
    for style, pattern in (("kebab", _KEBAB), ("snake", _SNAKE), ("camel", _CAMEL), ("pascal", _PASCAL)):
        if pattern.match(stem):
            return style
    return "mixed"


class StructureAnalyzer(BaseAnalyzer):
    """Scores how the project's code is laid out and wired together."""

    name = Category.STRUCTURE.value
    max_score = 20.0
    version = "1.0.0"
    default_confidence = 0.75
    checks = (
        Check("file_organization", 5, "check_file_organization"),
        Check("module_boundaries", 5, "check_module_boundaries"),
        Check("naming", 4, "check_naming"),
        Check("architecture", 3, "check_architecture"),
        Check("dependencies", 3, "check_dependencies"),
    )

    def __init__(self, *, selector: StrategySelector | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.selector = selector or StrategySelector()

    # ── file organization ──────────────────────────────────────────

    def check_file_organization(self) -> None:
        layout = {
            "source": self.exists("src", "lib", "app") or self._has_package_dir(),
            "tests": self.exists("test", "tests", "__tests__", "spec"),
            "docs": self.exists("docs", "doc", "documentation"),
        }
        present = sum(layout.values())
        self.add_score(2 * present / len(layout), 2, f"Directory layout ({present}/{len(layout)} standard dirs)")
        self.set_detail("layout", layout)
        if not layout["source"]:
            self.flag(
                "No source directory found",
                "Move source files into src/ (or a package directory) instead of the project root",
                impact=2.0,
                patterns=("organized-structure",),
            )

        src = self.first_existing("src", "lib", "app")
        if src is not None and src.is_dir():
            self.add_score(1, 1, f"Source files grouped under {src.name}/")
            subdirs = self._subdirs(src)
            if len(subdirs) >= 2 or any(len(self._subdirs(d)) >= 2 for d in subdirs):
                self.add_score(1, 1, "Source tree organized into subdirectories")
            else:
                self.flag(
                    "Flat source structure",
                    f"Organize {src.name}/ into subdirectories by feature or layer",
                    impact=1.0,
                    patterns=("organized-structure",),
                )
        elif self._has_package_dir():
            self.add_score(1.5, 2, "Top-level package directory found")

        concern_dirs = {
            part
            for p in self.source_files(include_tests=True)
            for part in p.relative_to(self.root).parts[:-1]
            if part in _CONCERN_DIRS
        }
        self.set_detail("concern_dirs", sorted(concern_dirs))
        if len(concern_dirs) >= 3:
            self.add_score(1, 1, f"Separation of concerns ({len(concern_dirs)} layer dirs)")
        elif len(concern_dirs) == 2:
            self.add_score(0.5, 1, "Some separation of concerns")
        else:
            self.flag(
                "Poor separation of concerns",
                "Separate code into logical modules (components, services, utils, models)",
                impact=1.0,
            )

    def _subdirs(self, directory: Path) -> list[Path]:
        """Visible subdirectories of *directory*; an unreadable directory has none."""
        try:
            children = sorted(directory.iterdir())
        except OSError as exc:
            _logger.debug("Cannot list %s: %s", directory, exc)
            return []
        return [p for p in children if p.is_dir() and not p.name.startswith((".", "__"))]

    def _has_package_dir(self) -> bool:
        try:
            children = sorted(self.root.iterdir())
        except OSError:
            return False
        return any(c.is_dir() and (c / "__init__.py").is_file() and self._visible(c) for c in children)

    def _visible(self, path: Path) -> bool:
        try:
            parts = path.relative_to(self.root).parts
        except ValueError:
            return False
        return not any(p.startswith(".") or p in self.collector.exclude_dirs for p in parts)

    # ── module boundaries ──────────────────────────────────────────

    def check_module_boundaries(self) -> None:
        files = self.sample(self.source_files(), 30)
        js_files = [p for p in files if p.suffix in JS_EXTENSIONS]
        py_files = [p for p in files if p.suffix == ".py"]

        esm = cjs = star = 0
        line_counts: list[int] = []
        for path in files:
            content = self.read(path)
            if content is None:
                continue
            line_counts.append(content.count("\n") + 1)
            if path in js_files:
                uses_esm = bool(_ESM_RE.search(content))
                uses_cjs = bool(_CJS_RE.search(content))
                if uses_esm and not uses_cjs:
                    esm += 1
                elif uses_cjs and not uses_esm:
                    cjs += 1
                elif uses_esm and uses_cjs:
                    esm += 0.5
                    cjs += 0.5
            elif _STAR_IMPORT_RE.search(content):
                star += 1

        if js_files and esm + cjs > 0:
            consistency = max(esm, cjs) / (esm + cjs)
        elif py_files:
            consistency = 1 - star / len(py_files)
        else:
            consistency = None
        self.set_detail("module_consistency", None if consistency is None else round(consistency, 2))

        if consistency is None:
            self.add_score(1.5, 3, "Module consistency inconclusive (no sampled sources)")
        elif consistency >= 0.8:
            self.add_score(3, 3, f"Consistent module patterns ({consistency:.0%})")
        elif consistency >= 0.6:
            self.add_score(2, 3, f"Mostly consistent module patterns ({consistency:.0%})")
            self.flag("Inconsistent module patterns", "Use one import/export style (ES modules or CommonJS) throughout", impact=1.5)
        else:
            self.add_score(1, 3, f"Mixed module patterns ({consistency:.0%})")
            self.flag("Mixed module patterns", "Standardize on a single module system and explicit imports", impact=2.0)

        if not line_counts:
            self.add_score(1, 2, "No modules sampled for size")
            return
        avg = sum(line_counts) / len(line_counts)
        self.set_detail("average_module_lines", round(avg, 1))
        if avg <= 200:
            self.add_score(2, 2, f"Modules are appropriately sized (avg {avg:.0f} lines)")
        elif avg <= 400:
            self.add_score(1, 2, f"Some modules are large (avg {avg:.0f} lines)")
            self.flag("Some modules are quite large", "Break large modules into smaller, focused units", impact=1.5)
        else:
            self.flag("Modules are too large", "Split oversized modules; aim for under 300 lines per file", impact=2.5)

    # ── naming ─────────────────────────────────────────────────────

    def check_naming(self) -> None:
        files = self.sample(self.source_files(), 50)
        plain = [p for p in files if p.suffix not in _COMPONENT_EXTS and p.stem not in ("index", "__init__", "__main__")]
        styles = Counter(s for s in (naming_style(p.stem) for p in plain) if s is not None)
        total = sum(styles.values())
        if total:
            dominant, count = styles.most_common(1)[0]
            consistency = count / total
            self.set_detail("file_naming", {"dominant": dominant, "consistency": round(consistency, 2)})
            if consistency >= 0.8:
                self.add_score(2, 2, f"Naming conventions are consistent ({consistency:.0%} {dominant})")
            elif consistency >= 0.6:
                self.add_score(1, 2, f"Naming conventions are mostly consistent ({consistency:.0%})")
                self.flag("Some naming inconsistencies found", f"Standardize file names on {dominant} style", impact=1.0)
            else:
                self.flag("Naming conventions are inconsistent", "Establish and follow one file naming convention", impact=1.5)
        else:
            self.add_score(2, 2, "No multi-word file names to compare")

        components = [p for p in files if p.suffix in _COMPONENT_EXTS and p.stem != "index"]
        python_files = [p for p in plain if p.suffix == ".py"]
        if components:
            pascal = sum(1 for p in components if _PASCAL.match(p.stem.split(".")[0]))
            ratio = pascal / len(components)
            self.add_score(2 * ratio, 2, f"{ratio:.0%} of components use PascalCase")
            if ratio < 1:
                self.flag(
                    "Some components don't follow PascalCase",
                    "Use PascalCase for component file names",
                    impact=0.5,
                    file_types=tuple(sorted({p.suffix for p in components})),
                )
        elif python_files:
            good = sum(1 for p in python_files if naming_style(p.stem) in (None, "snake"))
            ratio = good / len(python_files)
            self.add_score(2 * ratio, 2, f"{ratio:.0%} of Python modules use snake_case")
            if ratio < 1:
                self.flag("Python modules not in snake_case", "Rename Python modules to snake_case (PEP 8)", impact=0.5, file_types=(".py",))
        else:
            self.add_score(2, 2, "No naming issues detected")

    # ── architecture ───────────────────────────────────────────────

    def check_architecture(self) -> None:
        context = self.require_context()
        strategy = self.selector.select(context)
        result = strategy.analyze(self.root, context)
        self.add_score(min(result.score, STRATEGY_MAX_SCORE), STRATEGY_MAX_SCORE, f"{strategy.name} architecture patterns")
        for issue in result.issues:
            self.add_issue(issue)
        for text in result.suggestions:
            self.add_suggestion(text, impact=1.5, patterns=result.patterns or (strategy.name,))

        detected = set(result.patterns)
        if self.exists("tsconfig.json"):
            detected.add("typescript")
        if self.exists("Dockerfile", "docker-compose.yml", "compose.yaml"):
            detected.add("docker")
        if self.exists("packages", "apps", "pnpm-workspace.yaml", "lerna.json"):
            detected.add("monorepo")
        if self.exists("pyproject.toml", "setup.py", "setup.cfg"):
            detected.add("python-package")
        if self.context.framework:
            detected.add(self.context.framework)
        self.set_detail("strategy", strategy.name)
        self.set_detail("detected_patterns", sorted(detected))
        all_files = self.source_files(SOURCE_EXTENSIONS, include_tests=True)
        self.set_detail("file_types", sorted({p.suffix for p in all_files}))
        self.set_detail("source_file_count", len(all_files))

    # ── dependencies ───────────────────────────────────────────────

    def check_dependencies(self) -> None:
        manifest = self.require_manifest()
        if manifest is None:
            return
        total = len(manifest.dependencies)
        self.set_detail("dependency_count", {"production": total, "development": len(manifest.dev_dependencies)})
        if total <= 20:
            self.add_score(1, 1, f"Reasonable number of dependencies ({total})")
        elif total <= 50:
            self.add_score(0.5, 1, f"Moderate number of dependencies ({total})")
            self.flag("High number of dependencies", "Check whether every dependency is still necessary", impact=1.0)
        else:
            self.flag("Too many dependencies", "Audit and remove unnecessary dependencies", impact=2.0)

        if manifest.dev_dependencies:
            self.add_score(1, 1, "Development dependencies separated")
        else:
            self.flag(
                "No dev dependencies found",
                "Separate development-only dependencies from production ones",
                impact=1.0,
            )

        cycles = self._import_cycles()
        self.set_detail("import_cycles", cycles)
        if not cycles:
            self.add_score(1, 1, "No direct circular imports detected")
        else:
            self.flag(
                f"{len(cycles)} circular import(s) detected",
                "Break circular imports by extracting shared code into a separate module",
                impact=1.5,
            )

    def _import_cycles(self) -> list[list[str]]:
        files = self.sample(self.source_files(), 60)
        graph: dict[Path, set[Path]] = {}
        for path in files:
            content = self.read(path)
            if content is None:
                continue
            graph[path] = self._relative_targets(path, content)
        cycles: set[tuple[str, str]] = set()
        for a, targets in graph.items():
            for b in targets:
                if a in graph.get(b, ()) and a != b:
                    pair = sorted((self.rel(a), self.rel(b)))
                    cycles.add((pair[0], pair[1]))
        return [list(c) for c in sorted(cycles)]

    def _relative_targets(self, path: Path, content: str) -> set[Path]:
        targets: set[Path] = set()
        if path.suffix == ".py":
            for module in _PY_REL_IMPORT_RE.findall(content):
                for candidate in (path.parent / f"{module}.py", path.parent / module / "__init__.py"):
                    if candidate.is_file():
                        targets.add(candidate)
                        break
            return targets
        for spec in _JS_REL_IMPORT_RE.findall(content):
            base = (path.parent / spec).resolve()
            candidates = [base] + [base.with_name(base.name + ext) for ext in JS_EXTENSIONS]
            candidates += [base / f"index{ext}" for ext in JS_EXTENSIONS]
            for candidate in candidates:
                if candidate.is_file():
                    targets.add(self._unresolve(candidate))
                    break
        return targets

    def _unresolve(self, resolved: Path) -> Path:
        """Map a resolved path back onto the collector's (unresolved) root."""
        try:
            return self.root / resolved.relative_to(self.root.resolve())
        except ValueError:
            return resolved
