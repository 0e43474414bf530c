"""Project-type detection from manifest dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from code_score.core.manifest import Manifest
from code_score.model import Ecosystem

PROJECT_TYPES: tuple[str, ...] = (
    "react-webapp",
    "vue-webapp",
    "svelte-webapp",
    "angular-webapp",
    "node-api",
    "cli-tool",
    "javascript",
    "python-web",
    "python-cli",
    "python-library",
    "generic",
)


@dataclass(frozen=True, slots=True)
class _Rule:
    project_type: str
    framework: str
    dependencies: tuple[str, ...]


# First matching rule wins.
_NODE_RULES: tuple[_Rule, ...] = (
    _Rule("react-webapp", "react", ("react", "next", "react-dom", "gatsby", "@remix-run/react")),
    _Rule("vue-webapp", "vue", ("vue", "nuxt")),
    _Rule("svelte-webapp", "svelte", ("svelte", "@sveltejs/kit")),
    _Rule("angular-webapp", "angular", ("@angular/core",)),
    _Rule("node-api", "express", ("express",)),
    _Rule("node-api", "fastify", ("fastify",)),
    _Rule("node-api", "koa", ("koa",)),
    _Rule("node-api", "hapi", ("@hapi/hapi", "hapi")),
    _Rule("node-api", "nestjs", ("@nestjs/core",)),
    _Rule("cli-tool", "commander", ("commander", "yargs", "oclif", "@oclif/core", "meow")),
)

_PYTHON_RULES: tuple[_Rule, ...] = (
    _Rule("python-web", "django", ("django",)),
    _Rule("python-web", "fastapi", ("fastapi",)),
    _Rule("python-web", "flask", ("flask",)),
    _Rule("python-web", "starlette", ("starlette",)),
    _Rule("python-web", "aiohttp", ("aiohttp",)),
    _Rule("python-cli", "click", ("click", "typer")),
)


@dataclass(frozen=True, slots=True)
class Detection:
    project_type: str
    framework: str | None


def detect_project_type(manifest: Manifest | None, root: Path | None = None) -> Detection:
    """Map *manifest* dependencies to a project-type tag and framework.

    Without a manifest the type falls back to ``javascript`` when the root
    holds JS sources at its top level, ``generic`` otherwise.
    """
    if manifest is None:
        if root is not None and any(root.glob("*.js")):
            return Detection("javascript", None)
        return Detection("generic", None)

    if manifest.ecosystem is Ecosystem.NODE:
        for rule in _NODE_RULES:
            if manifest.has_dependency(*rule.dependencies):
                return Detection(rule.project_type, rule.framework)
        if manifest.has_entry_points:
            return Detection("cli-tool", None)
        return Detection("javascript", None)

    for rule in _PYTHON_RULES:
        if manifest.has_dependency(*rule.dependencies):
            return Detection(rule.project_type, rule.framework)
    if manifest.has_entry_points:
        return Detection("python-cli", None)
    return Detection("python-library", None)
