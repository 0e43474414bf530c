"""Framework strategies consulted by the structure analyzer.

Each strategy answers two questions: does it ``applies()`` to this project,
and which architecture patterns does ``analyze()`` find. The selector
walks an ordered tuple and returns the first match; ``GeneralStrategy``
always applies, so selection never fails. Strategies hold no state and
are safe to reuse across runs and threads.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Sequence

from code_score.core.discover import FileCollector, SamplingPolicy
from code_score.model.context import ProjectContext

STRATEGY_MAX_SCORE = 3.0

_HOOKS_RE = re.compile(r"\buse(State|Effect|Reducer|Context|Memo|Callback)\s*\(")
_COMPOSITION_RE = re.compile(r"<script[^>]*\bsetup\b|\bsetup\s*\(|\bdefineComponent\s*\(|\b(ref|reactive|computed)\s*\(")
_MIDDLEWARE_RE = re.compile(r"\b(app|router|server)\.use\s*\(")


@dataclass
class PatternResult:
    """Patterns, issues and suggestions one strategy found."""

    strategy: str
    patterns: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    score: float = 0.0

    def hit(self, pattern: str) -> None:
        self.patterns.append(pattern)
        self.score = min(self.score + 1.0, STRATEGY_MAX_SCORE)

    def miss(self, issue: str | None, suggestion: str | None) -> None:
        if issue:
            self.issues.append(issue)
        if suggestion:
            self.suggestions.append(suggestion)


class ArchitectureStrategy(Protocol):
    name: str

    def applies(self, context: ProjectContext) -> bool:
        ...

    def analyze(self, root: Path, context: ProjectContext) -> PatternResult:
        ...


def _any_dir(root: Path, *candidates: str) -> bool:
    return any((root / c).is_dir() for c in candidates)


def _sampled_sources(root: Path, context: ProjectContext, extensions: Sequence[str], default: int) -> tuple[FileCollector, list[Path]]:
    collector = FileCollector.with_extra_excludes(context.exclude_dirs)
    files = collector.collect(root, extensions)
    sampling = context.sampling if context.sampling is not None else SamplingPolicy()
    return collector, sampling.sample(files, default, root=root)


def _any_content_matches(root: Path, context: ProjectContext, extensions: Sequence[str], pattern: re.Pattern[str], default: int = 30) -> bool:
    collector, files = _sampled_sources(root, context, extensions, default)
    for path in files:
        content = collector.read_text(path)
        if content is not None and pattern.search(content):
            return True
    return False


class ReactStrategy:
    name = "react"

    def applies(self, context: ProjectContext) -> bool:
        return context.framework == "react" or context.project_type == "react-webapp"

    def analyze(self, root: Path, context: ProjectContext) -> PatternResult:
        result = PatternResult(self.name)
        if _any_dir(root, "src/components", "components", "app/components"):
            result.hit("component-structure")
        else:
            result.miss("Missing organized component structure", "Organize components in src/components/")
        if _any_content_matches(root, context, (".jsx", ".tsx", ".js", ".ts"), _HOOKS_RE):
            result.hit("react-hooks")
        if context.has_dependency("redux", "@reduxjs/toolkit", "zustand", "jotai", "recoil", "mobx", "@tanstack/react-query"):
            result.hit("state-management")
        else:
            result.miss(None, "Consider a dedicated state management library (Redux Toolkit, Zustand, Jotai)")
        return result


class VueStrategy:
    name = "vue"

    def applies(self, context: ProjectContext) -> bool:
        return context.framework == "vue" or context.project_type == "vue-webapp"

    def analyze(self, root: Path, context: ProjectContext) -> PatternResult:
        result = PatternResult(self.name)
        if _any_dir(root, "src/components", "components"):
            result.hit("vue-structure")
        else:
            result.miss("Missing Vue.js project structure", "Organize Vue components in src/components/")
        if _any_content_matches(root, context, (".vue", ".js", ".ts"), _COMPOSITION_RE):
            result.hit("composition-api")
        if context.has_dependency("pinia", "vuex"):
            result.hit("state-management")
        else:
            result.miss(None, "Use Pinia for shared application state")
        return result


class NodeApiStrategy:
    name = "node-api"

    def applies(self, context: ProjectContext) -> bool:
        return context.project_type == "node-api" or context.framework in {"express", "fastify", "koa", "hapi", "nestjs"}

    def analyze(self, root: Path, context: ProjectContext) -> PatternResult:
        result = PatternResult(self.name)
        if _any_dir(root, "routes", "src/routes", "controllers", "src/controllers", "src/modules"):
            result.hit("api-structure")
        else:
            result.miss("Missing organized API structure", "Organize routes, controllers, and middleware into directories")
        if _any_dir(root, "middleware", "src/middleware", "middlewares", "src/middlewares") or _any_content_matches(
            root, context, (".js", ".ts", ".mjs", ".cjs"), _MIDDLEWARE_RE
        ):
            result.hit("middleware-pattern")
        if _any_dir(root, "services", "src/services"):
            result.hit("service-layer")
        else:
            result.miss(None, "Move business logic out of route handlers into a services layer")
        return result


class PythonWebStrategy:
    name = "python-web"

    def applies(self, context: ProjectContext) -> bool:
        return context.project_type == "python-web"

    def analyze(self, root: Path, context: ProjectContext) -> PatternResult:
        result = PatternResult(self.name)
        names = {p.name for p in _shallow_entries(root, context)}
        if names & {"views", "views.py", "routes", "routes.py", "routers", "api", "endpoints", "blueprints"}:
            result.hit("app-structure")
        else:
            result.miss("Missing organized request-handling layer", "Group request handlers into views/ or routers/ modules")
        if names & {"settings", "settings.py", "config", "config.py", "conf"}:
            result.hit("settings-separation")
        else:
            result.miss(None, "Move configuration into a dedicated settings/config module")
        if names & {"models", "models.py", "schemas", "schemas.py"}:
            result.hit("model-layer")
        return result


class GeneralStrategy:
    name = "general"

    def applies(self, context: ProjectContext) -> bool:
        return True

    def analyze(self, root: Path, context: ProjectContext) -> PatternResult:
        result = PatternResult(self.name)
        if _any_dir(root, "src", "lib", "app", "pkg") or any(
            (p / "__init__.py").is_file() for p in _shallow_entries(root, context, depth=1) if p.is_dir()
        ):
            result.hit("organized-structure")
        else:
            result.miss("Project structure could be better organized", "Organize code into logical directories (src/, lib/)")
        if _any_dir(root, "config", "src/config", "settings") or (root / ".env.example").is_file():
            result.hit("config-separation")
        names = {p.name for p in _shallow_entries(root, context)}
        if names & {"index.js", "index.ts", "main.js", "main.ts", "main.py", "__main__.py", "app.py", "cli.py"}:
            result.hit("entry-point")
        return result


def _shallow_entries(root: Path, context: ProjectContext, depth: int = 2) -> list[Path]:
    """Entries at most *depth* levels below *root*, skipping hidden and excluded dirs."""
    excluded = FileCollector.with_extra_excludes(context.exclude_dirs).exclude_dirs
    found: list[Path] = []
    frontier = [root]
    for _ in range(depth):
        nxt: list[Path] = []
        for directory in frontier:
            try:
                children = sorted(directory.iterdir())
            except OSError:
                continue
            for child in children:
                if child.name.startswith(".") or child.name in excluded:
                    continue
                found.append(child)
                if child.is_dir():
                    nxt.append(child)
        frontier = nxt
    return found


DEFAULT_STRATEGIES: tuple[ArchitectureStrategy, ...] = (
    ReactStrategy(),
    VueStrategy(),
    NodeApiStrategy(),
    PythonWebStrategy(),
    GeneralStrategy(),
)


class StrategySelector:
    """Return the first strategy whose predicate matches the context."""

    def __init__(self, strategies: Sequence[ArchitectureStrategy] = DEFAULT_STRATEGIES) -> None:
        self.strategies = tuple(strategies)
        self._fallback = GeneralStrategy()

    def select(self, context: ProjectContext) -> ArchitectureStrategy:
        for strategy in self.strategies:
            if strategy.applies(context):
                return strategy
        return self._fallback
