"""Manifest loading — one ``Manifest`` value for npm and Python projects.

Lookup order at the project root:

1. ``package.json``   (node)
2. ``pyproject.toml`` (python; PEP 621 ``[project]`` or ``[tool.poetry]``)
3. ``requirements.txt`` (python, plus ``requirements-dev.txt`` / ``dev-requirements.txt``)

A ``pyproject.toml`` that declares no dependencies of its own (tool
configuration only) takes its runtime dependencies from a sibling
``requirements.txt``.

A manifest that exists but cannot be parsed, or whose sections have the
wrong type, is still returned, with ``parse_error`` set and empty
dependency maps, so analyzers can report it.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from code_score.model import Ecosystem

_logger = logging.getLogger(__name__)

MANIFEST_FILES: tuple[str, ...] = ("package.json", "pyproject.toml", "requirements.txt")

_DEV_REQUIREMENTS = ("requirements-dev.txt", "dev-requirements.txt", "requirements/dev.txt")
_DEV_EXTRAS = frozenset({"dev", "test", "tests", "testing", "lint", "docs", "develop"})

# PEP 508 distribution name at the start of a requirement string.
_REQ_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")
_MAKE_TARGET_RE = re.compile(r"^([A-Za-z][\w-]*)\s*:(?!=)", re.MULTILINE)

_EMPTY: Mapping[str, str] = MappingProxyType({})


class ManifestShapeError(ValueError):
    """A manifest section parsed fine but holds the wrong type."""


def _table(data: Mapping[str, Any], key: str, label: str | None = None) -> dict[str, Any]:
    """``data[key]`` as a dict; absent means empty, anything else is a shape error."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestShapeError(f"{label or key} is not an object")
    return value


def _string_list(value: Any, label: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestShapeError(f"{label} is not a list of strings")
    return value


def _frozen(d: Mapping[str, Any]) -> Mapping[str, str]:
    if not d:
        return _EMPTY
    return MappingProxyType({str(k).lower(): str(v) for k, v in sorted(d.items())})


@dataclass(frozen=True)
class Manifest:
    """Parsed project manifest, normalised across ecosystems."""

    kind: str
    ecosystem: Ecosystem
    path: Path
    name: str = ""
    version: str = ""
    description: str = ""
    dependencies: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    dev_dependencies: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    scripts: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    metadata: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    has_entry_points: bool = False
    parse_error: str | None = None

    @property
    def all_dependencies(self) -> Mapping[str, str]:
        merged = dict(self.dev_dependencies)
        merged.update(self.dependencies)
        return MappingProxyType(dict(sorted(merged.items())))

    def has_dependency(self, *names: str) -> bool:
        deps = self.all_dependencies
        return any(n.lower() in deps for n in names)

    def has_script(self, *names: str) -> bool:
        return any(n in self.scripts for n in names)


def _requirement_names(lines: list[str]) -> dict[str, str]:
    deps: dict[str, str] = {}
    for raw in lines:
        line = raw.split("#", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        m = _REQ_NAME_RE.match(line)
        if m:
            name = m.group(1)
            deps[name.lower()] = line[len(name):].strip() or "*"
    return deps


def _read_requirements(path: Path) -> dict[str, str]:
    try:
        return _requirement_names(path.read_text(encoding="utf-8").splitlines())
    except OSError:
        return {}


def _dev_requirements(root: Path) -> dict[str, str]:
    dev: dict[str, str] = {}
    for req_file in _DEV_REQUIREMENTS:
        if (root / req_file).is_file():
            dev.update(_read_requirements(root / req_file))
    return dev


def _make_targets(root: Path) -> dict[str, str]:
    makefile = root / "Makefile"
    if not makefile.is_file():
        return {}
    try:
        text = makefile.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return {}
    return {t: "make " + t for t in _MAKE_TARGET_RE.findall(text)}


def _load_package_json(path: Path) -> Manifest:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        return Manifest(kind="package.json", ecosystem=Ecosystem.NODE, path=path, parse_error=str(exc))
    if not isinstance(data, dict):
        return Manifest(
            kind="package.json",
            ecosystem=Ecosystem.NODE,
            path=path,
            parse_error="top-level value is not an object",
        )
    try:
        return _package_json_manifest(path, data)
    except ManifestShapeError as exc:
        return Manifest(kind="package.json", ecosystem=Ecosystem.NODE, path=path, parse_error=str(exc))


def _package_json_manifest(path: Path, data: dict[str, Any]) -> Manifest:
    metadata: dict[str, str] = {}
    for key in ("author", "repository", "license", "homepage", "bugs", "keywords", "engines"):
        value = data.get(key)
        if value:
            metadata[key] = value if isinstance(value, str) else json.dumps(value, sort_keys=True)

    scripts = _table(data, "scripts")
    return Manifest(
        kind="package.json",
        ecosystem=Ecosystem.NODE,
        path=path,
        name=str(data.get("name", "")),
        version=str(data.get("version", "")),
        description=str(data.get("description", "")),
        dependencies=_frozen(_table(data, "dependencies")),
        dev_dependencies=_frozen(_table(data, "devDependencies")),
        scripts=MappingProxyType({k: str(v) for k, v in sorted(scripts.items())}),
        metadata=MappingProxyType(metadata),
        has_entry_points=bool(data.get("bin")),
    )


def _load_pyproject(path: Path) -> Manifest:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        return Manifest(kind="pyproject.toml", ecosystem=Ecosystem.PYTHON, path=path, parse_error=str(exc))
    try:
        return _pyproject_manifest(path, data)
    except ManifestShapeError as exc:
        return Manifest(kind="pyproject.toml", ecosystem=Ecosystem.PYTHON, path=path, parse_error=str(exc))


def _poetry_deps(table: Mapping[str, Any]) -> dict[str, str]:
    return {str(k).lower(): str(v) for k, v in table.items()}


def _pyproject_manifest(path: Path, data: dict[str, Any]) -> Manifest:
    root = path.parent
    project = _table(data, "project")
    tool = _table(data, "tool")
    poetry = _table(tool, "poetry", "tool.poetry")

    deps = _requirement_names(_string_list(project.get("dependencies"), "project.dependencies"))
    dev: dict[str, str] = {}
    extras = _table(project, "optional-dependencies", "project.optional-dependencies")
    for extra, reqs in sorted(extras.items()):
        target = dev if extra.lower() in _DEV_EXTRAS else deps
        target.update(_requirement_names(_string_list(reqs, f"project.optional-dependencies.{extra}")))
    for name, group in sorted(_table(data, "dependency-groups").items()):
        if not isinstance(group, list):
            raise ManifestShapeError(f"dependency-groups.{name} is not a list")
        # include-group entries are tables
        dev.update(_requirement_names([r for r in group if isinstance(r, str)]))

    if poetry:
        deps.update(_poetry_deps(_table(poetry, "dependencies", "tool.poetry.dependencies")))
        dev.update(_poetry_deps(_table(poetry, "dev-dependencies", "tool.poetry.dev-dependencies")))
        for name, group in sorted(_table(poetry, "group", "tool.poetry.group").items()):
            if not isinstance(group, dict):
                raise ManifestShapeError(f"tool.poetry.group.{name} is not an object")
            dev.update(_poetry_deps(_table(group, "dependencies", f"tool.poetry.group.{name}.dependencies")))
    deps.pop("python", None)

    if not deps and (root / "requirements.txt").is_file():
        deps.update(_read_requirements(root / "requirements.txt"))
    dev.update(_dev_requirements(root))

    scripts: dict[str, str] = {}
    scripts.update(_make_targets(root))
    for runner in ("poe", "taskipy"):
        tasks = _table(_table(tool, runner, f"tool.{runner}"), "tasks", f"tool.{runner}.tasks")
        scripts.update({k: str(v) for k, v in tasks.items()})

    metadata: dict[str, str] = {}
    license_value = project.get("license") or poetry.get("license")
    if license_value:
        metadata["license"] = license_value if isinstance(license_value, str) else json.dumps(license_value, sort_keys=True)
    authors = project.get("authors") or poetry.get("authors")
    if authors:
        metadata["author"] = json.dumps(authors, sort_keys=True)
    urls = _table(project, "urls", "project.urls")
    repo = urls.get("Repository") or urls.get("Source") or poetry.get("repository")
    if repo:
        metadata["repository"] = str(repo)
    homepage = urls.get("Homepage") or poetry.get("homepage")
    if homepage:
        metadata["homepage"] = str(homepage)
    if project.get("keywords") or poetry.get("keywords"):
        metadata["keywords"] = json.dumps(project.get("keywords") or poetry.get("keywords"))
    if project.get("requires-python"):
        metadata["engines"] = str(project["requires-python"])

    return Manifest(
        kind="pyproject.toml",
        ecosystem=Ecosystem.PYTHON,
        path=path,
        name=str(project.get("name") or poetry.get("name") or ""),
        version=str(project.get("version") or poetry.get("version") or ""),
        description=str(project.get("description") or poetry.get("description") or ""),
        dependencies=_frozen(deps),
        dev_dependencies=_frozen(dev),
        scripts=MappingProxyType(dict(sorted(scripts.items()))),
        metadata=MappingProxyType(metadata),
        has_entry_points=bool(project.get("scripts") or poetry.get("scripts")),
    )


def _load_requirements(path: Path) -> Manifest:
    root = path.parent
    return Manifest(
        kind="requirements.txt",
        ecosystem=Ecosystem.PYTHON,
        path=path,
        name=root.name,
        dependencies=_frozen(_read_requirements(path)),
        dev_dependencies=_frozen(_dev_requirements(root)),
        scripts=MappingProxyType(dict(sorted(_make_targets(root).items()))),
    )


_LOADERS = {
    "package.json": _load_package_json,
    "pyproject.toml": _load_pyproject,
    "requirements.txt": _load_requirements,
}


def load_manifest(root: Path) -> Manifest | None:
    """Load the first manifest found at *root*, or ``None`` if there is none."""
    for name in MANIFEST_FILES:
        path = root / name
        if path.is_file():
            manifest = _LOADERS[name](path)
            if manifest.parse_error:
                _logger.warning("Could not parse %s: %s", path, manifest.parse_error)
            return manifest
    return None
