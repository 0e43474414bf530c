"""Completeness analyzer — placeholders, production readiness, metadata."""

from __future__ import annotations

import re

from code_score.analyzers.base import BaseAnalyzer, Check
from code_score.model import Category, Ecosystem

_PLACEHOLDER_RE = re.compile(r"\b(TODO|FIXME|XXX|HACK)\b|\bNotImplementedError\b|\bnot implemented\b", re.IGNORECASE)
_DEPLOY_FILES = (
    "Dockerfile",
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yaml",
    "Procfile",
    "vercel.json",
    "netlify.toml",
    "fly.toml",
    "app.yaml",
    "serverless.yml",
    "k8s",
    "helm",
)
_ENV_CONFIG = (".env.example", ".env.sample", "config", "src/config", "settings.py", "config.py")
_CI_PATHS = (".github/workflows", ".gitlab-ci.yml", ".circleci", "azure-pipelines.yml", "Jenkinsfile")
_LICENSE_FILES = ("LICENSE", "LICENSE.md", "LICENSE.txt", "LICENCE", "COPYING")


class CompletenessAnalyzer(BaseAnalyzer):
    """Scores how finished and shippable the project looks."""

    name = Category.COMPLETENESS.value
    max_score = 5.0
    version = "1.0.0"
    default_confidence = 0.7
    checks = (
        Check("placeholders", 2, "check_placeholders"),
        Check("production_readiness", 2, "check_production_readiness"),
        Check("metadata", 1, "check_metadata"),
    )

    def check_placeholders(self) -> None:
        files = self.sample(self.source_files(), 50)
        count = self.count_matches(files, _PLACEHOLDER_RE)
        self.set_detail("placeholders", count)
        if count == 0:
            self.add_score(2, 2, "No TODO/FIXME placeholders")
        elif count <= 5:
            self.add_score(1.5, 2, f"{count} placeholders")
        elif count <= 20:
            self.add_score(1, 2, f"{count} placeholders")
            self.flag(f"{count} TODO/FIXME markers", "Resolve or ticket outstanding TODO and FIXME markers", impact=1.0)
        else:
            self.add_score(0.5, 2, f"{count} placeholders")
            self.flag(f"{count} TODO/FIXME markers", "Resolve outstanding TODO and FIXME markers before release", impact=2.0)

    def check_production_readiness(self) -> None:
        manifest = self.manifest
        if self.ecosystem is Ecosystem.PYTHON:
            runnable = manifest is not None and (manifest.has_entry_points or manifest.has_script("build", "run", "serve"))
            runnable = runnable or "[build-system]" in self.manifest_text("pyproject.toml")
        else:
            runnable = manifest is not None and manifest.has_script("build", "start")
        deploy = self.first_existing(*_DEPLOY_FILES)
        signals = {
            "runnable": runnable,
            "env_config": self.exists(*_ENV_CONFIG),
            "deployment": deploy is not None,
            "ci": self.exists(*_CI_PATHS),
        }
        self.set_detail("production_readiness", signals)

        if signals["runnable"]:
            self.add_score(0.5, 0.5, "Build or start entry point defined")
        else:
            self.flag("No build or start entry point", "Define how the project is built and started", impact=1.0)
        if signals["env_config"]:
            self.add_score(0.5, 0.5, "Environment configuration documented")
        else:
            self.flag("No environment configuration", "Add .env.example or a config module", impact=0.5)
        if deploy is not None:
            self.add_score(0.5, 0.5, f"Deployment config ({deploy.name})")
        else:
            self.flag("No deployment configuration", "Add a Dockerfile or platform deployment config", impact=1.0, confidence=0.6, patterns=("deployment",))
        if signals["ci"]:
            self.add_score(0.5, 0.5, "CI pipeline configured")
        else:
            self.flag("No CI pipeline", "Add a CI pipeline that builds and tests every change", impact=1.0, patterns=("ci",))

    def check_metadata(self) -> None:
        manifest = self.manifest
        if manifest is None:
            self.add_issue("No manifest; package metadata missing")
            return
        if manifest.name and manifest.version and manifest.description:
            self.add_score(0.3, 0.3, "Name, version and description set")
        else:
            self.flag("Incomplete package metadata", "Fill in name, version and description", impact=0.5)
        rich = [key for key in ("author", "repository", "homepage", "keywords", "engines") if manifest.metadata.get(key)]
        self.add_score(0.4 * min(len(rich) / 3, 1), 0.4, f"Metadata fields: {', '.join(rich) or 'none'}")
        if manifest.metadata.get("license") or self.exists(*_LICENSE_FILES):
            self.add_score(0.3, 0.3, "License declared")
        else:
            self.flag("No license", "Add a LICENSE file and declare it in the manifest", impact=1.0)
