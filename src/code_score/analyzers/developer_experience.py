"""Developer experience analyzer — tooling, docs, scripts, version control.

Point allocation (10):

    tooling          4   lint 1, format 1, build 1, workflow helpers 1
    documentation    3   README 1.5, README sections 0.5, extra docs 1
    scripts          2   essential scripts 1, development scripts 1
    version_control  1   .gitignore 0.5, CI workflow or git hooks 0.5
"""

from __future__ import annotations

import re

from code_score.analyzers.base import BaseAnalyzer, Check
from code_score.model import Category, Ecosystem

_NODE_LINT = ("eslint", "@biomejs/biome", "standard", "xo", "oxlint")
_NODE_FORMAT = ("prettier", "@biomejs/biome", "dprint")
_NODE_BUILD = ("typescript", "vite", "webpack", "esbuild", "rollup", "parcel", "tsup", "next", "@babel/core", "swc")
_NODE_HELPERS = ("husky", "lint-staged", "nodemon", "concurrently", "ts-node", "tsx", "commitizen", "@commitlint/cli")
_PY_LINT = ("ruff", "flake8", "pylint")
_PY_FORMAT = ("black", "ruff", "yapf", "autopep8", "isort")
_PY_BUILD = ("build", "hatch", "hatchling", "setuptools", "poetry-core", "flit", "pdm-backend", "maturin")
_PY_HELPERS = ("pre-commit", "tox", "nox", "invoke", "watchfiles", "ipython")

_ESSENTIAL_SCRIPTS = {
    Ecosystem.NODE: ("start", "build", "test"),
    Ecosystem.PYTHON: ("test", "lint", "build"),
}
_DEV_SCRIPTS = ("dev", "watch", "serve", "lint", "format", "fmt", "typecheck", "check")
_README_SECTIONS = re.compile(r"^#+\s*(install|installation|setup|getting started|usage|quick ?start)", re.IGNORECASE | re.MULTILINE)
_EXTRA_DOCS = ("CONTRIBUTING.md", "CHANGELOG.md", "docs", "ARCHITECTURE.md", "CODE_OF_CONDUCT.md")
_CI_PATHS = (".github/workflows", ".gitlab-ci.yml", ".circleci", "azure-pipelines.yml", "Jenkinsfile", ".travis.yml", "bitbucket-pipelines.yml")
_HOOK_PATHS = (".husky", ".pre-commit-config.yaml", ".lintstagedrc", ".lintstagedrc.json")


class DeveloperExperienceAnalyzer(BaseAnalyzer):
    """Scores how easy the project is to pick up and work on."""

    name = Category.DEVELOPER_EXPERIENCE.value
    max_score = 10.0
    version = "1.0.0"
    default_confidence = 0.75
    checks = (
        Check("tooling", 4, "check_tooling"),
        Check("documentation", 3, "check_documentation"),
        Check("scripts", 2, "check_scripts"),
        Check("version_control", 1, "check_version_control"),
    )

    def _uses(self, *names: str) -> bool:
        return self.manifest is not None and self.manifest.has_dependency(*names)

    def check_tooling(self) -> None:
        python = self.ecosystem is Ecosystem.PYTHON
        pyproject = self.manifest_text("pyproject.toml")
        lint = (
            self._uses(*(_PY_LINT if python else _NODE_LINT))
            or "[tool.ruff" in pyproject
            or self.exists(".eslintrc.json", ".eslintrc.js", "eslint.config.js", ".flake8", "ruff.toml")
        )
        fmt = (
            self._uses(*(_PY_FORMAT if python else _NODE_FORMAT))
            or "[tool.black" in pyproject
            or self.exists(".prettierrc", ".prettierrc.json", ".editorconfig")
        )
        build = self._uses(*(_PY_BUILD if python else _NODE_BUILD)) or "[build-system]" in pyproject or self.exists("tsconfig.json")
        helpers = self._uses(*(_PY_HELPERS if python else _NODE_HELPERS)) or self.exists(*_HOOK_PATHS)
        self.set_detail("dev_tools", {"lint": lint, "format": fmt, "build": build, "helpers": helpers})

        if lint:
            self.add_score(1, 1, "Linter available")
        else:
            self.flag("No linting tool", "Add a linter to the development dependencies", impact=1.5, patterns=("linting",))
        if fmt:
            self.add_score(1, 1, "Formatter available")
        else:
            self.flag("No code formatter", "Add an automatic code formatter", impact=1.0, patterns=("formatting",))
        if build:
            self.add_score(1, 1, "Build tooling configured")
        else:
            self.flag(
                "No build tooling",
                "Declare a [build-system] in pyproject.toml" if python else "Add a build tool such as Vite or tsup",
                impact=1.0,
            )
        if helpers:
            self.add_score(1, 1, "Workflow helpers configured")
        else:
            self.flag(
                "No git hooks or workflow helpers",
                "Add pre-commit hooks" if python else "Add husky and lint-staged for pre-commit checks",
                impact=0.5,
                confidence=0.6,
            )

    def check_documentation(self) -> None:
        readme = self.first_existing("README.md", "README.rst", "README.txt", "README", "readme.md")
        if readme is None:
            self.flag("No README", "Add a README describing setup and usage", impact=2.5, patterns=("documentation",))
        else:
            self.add_score(1.5, 1.5, "README present")
            if _README_SECTIONS.search(self.read(readme) or ""):
                self.add_score(0.5, 0.5, "README documents setup or usage")
            else:
                self.flag("README lacks setup instructions", "Add Installation and Usage sections to the README", impact=1.0)
        extras = [name for name in _EXTRA_DOCS if self.exists(name)]
        self.set_detail("extra_docs", extras)
        if extras:
            self.add_score(min(len(extras) * 0.5, 1), 1, f"Additional docs: {', '.join(extras)}")
        else:
            self.flag("No contributor documentation", "Add CONTRIBUTING.md or a docs/ directory", impact=0.5)

    def check_scripts(self) -> None:
        manifest = self.manifest
        if manifest is None:
            self.add_issue("No manifest; project scripts unknown")
            return
        essential = _ESSENTIAL_SCRIPTS[manifest.ecosystem]
        present = [s for s in essential if manifest.has_script(s)]
        self.set_detail("scripts", sorted(manifest.scripts))
        self.add_score(len(present) / len(essential), 1, f"Essential scripts: {', '.join(present) or 'none'}")
        missing = [s for s in essential if s not in present]
        if missing:
            self.flag(f"Missing scripts: {', '.join(missing)}", f"Add {', '.join(missing)} scripts for common tasks", impact=1.0)
        if manifest.has_script(*_DEV_SCRIPTS):
            self.add_score(1, 1, "Development scripts present")
        else:
            self.flag("No development scripts", "Add dev/lint/format scripts for everyday work", impact=0.5)

    def check_version_control(self) -> None:
        if self.exists(".gitignore"):
            self.add_score(0.5, 0.5, ".gitignore present")
        else:
            self.flag("No .gitignore", "Add a .gitignore for build output and local files", impact=1.5)
        if self.exists(*_CI_PATHS) or self.exists(*_HOOK_PATHS):
            self.add_score(0.5, 0.5, "CI workflow or git hooks configured")
        else:
            self.flag("No CI configuration", "Add a CI workflow that runs tests and linting", impact=1.5, patterns=("ci",))
