"""Security analyzer — dependency vulnerabilities, secrets, error handling.

Point allocation (15):

    dependency_vulnerabilities  6   audit 4, lockfile 1, audit script 1
    secrets                     4   env file 1, .env ignored 1, secret hygiene 2
    error_handling              3   try blocks 1.5, structured 0.75, contextual 0.75
    input_validation            2   validation library 1, validation patterns 1

The vulnerability audit shells out to ``npm audit`` or ``pip-audit``. When
the tool cannot run, a manifest heuristic takes over; its ceiling is one
point below the audited path so a degraded run never outscores a clean
audit.
"""

from __future__ import annotations

import logging
import re

from code_score.analyzers.base import BaseAnalyzer, Check
from code_score.core.manifest import Manifest
from code_score.core.tools import VulnerabilityReport, audit_command, run_audit
from code_score.errors import ExternalToolUnavailable
from code_score.model import Category, Ecosystem, Priority

_logger = logging.getLogger(__name__)

_UNSAFE_PACKAGES = frozenset(
    {
        "eval",
        "vm2",
        "node-serialize",
        "serialize-javascript",
        "safe-eval",
        "static-eval",
        "request",
        "pycrypto",
        "jsonpickle",
        "dill",
    }
)
_SECURITY_PACKAGES = (
    "helmet",
    "cors",
    "bcrypt",
    "bcryptjs",
    "argon2",
    "express-rate-limit",
    "csurf",
    "jsonwebtoken",
    "passlib",
    "cryptography",
    "bandit",
    "safety",
    "pip-audit",
    "argon2-cffi",
    "django-csp",
    "flask-talisman",
)
_VALIDATION_PACKAGES = (
    "zod",
    "joi",
    "yup",
    "ajv",
    "class-validator",
    "express-validator",
    "valibot",
    "superstruct",
    "pydantic",
    "marshmallow",
    "cerberus",
    "voluptuous",
    "jsonschema",
    "attrs",
)
_LOCKFILES = {
    Ecosystem.NODE: ("package-lock.json", "yarn.lock", "pnpm-lock.yaml", "bun.lockb", "npm-shrinkwrap.json"),
    Ecosystem.PYTHON: ("poetry.lock", "uv.lock", "Pipfile.lock", "pdm.lock", "requirements.lock", "requirements.txt"),
}
_AUDIT_SCRIPTS = ("audit", "security", "audit:fix", "security-check", "pip-audit", "safety", "bandit")

_ENV_USE_RE = re.compile(r"\bprocess\.env\b|\bimport\.meta\.env\b|\bos\.environ\b|\bos\.getenv\s*\(|\bconfig\s*\(\s*['\"]")
_HARDCODED_SECRET_RE = re.compile(
    r"""(?ix)
    \b(api[_-]?key|secret|password|passwd|token|private[_-]?key|access[_-]?key)\b
    \s*[:=]\s*
    ['"][^'"\s]{8,}['"]
    """
)
_TRY_RE = re.compile(r"\btry\s*[:{]")
_STRUCTURED_ERROR_RE = re.compile(
    r"\bclass\s+\w+(Error|Exception)\b|\bextends\s+Error\b|\bnew\s+\w+Error\s*\(|\braise\s+\w+(Error|Exception)\s*\("
)
_CONTEXTUAL_ERROR_RE = re.compile(
    r"\b(logger|logging|log|console)\.(error|exception|warn|warning)\s*\(|\braise\s+\w+.*\bfrom\s+\w+|\bcause\s*:"
)
_VALIDATION_RE = re.compile(
    r"\b(validate|sanitize|escape|isValid|safeParse|parse_obj|model_validate)\w*\s*\(|\bBaseModel\b|\bSchema\s*\("
)


class SecurityAnalyzer(BaseAnalyzer):
    """Scores dependency hygiene and defensive coding practices."""

    name = Category.SECURITY.value
    max_score = 15.0
    version = "1.0.0"
    default_confidence = 0.85
    checks = (
        Check("dependency_vulnerabilities", 6, "check_dependency_vulnerabilities"),
        Check("secrets", 4, "check_secrets"),
        Check("error_handling", 3, "check_error_handling"),
        Check("input_validation", 2, "check_input_validation"),
    )

    # ── dependency vulnerabilities ─────────────────────────────────

    def check_dependency_vulnerabilities(self) -> None:
        manifest = self.require_manifest()
        if manifest is None:
            return
        if not self.context.dependencies:
            self.add_score(3, 6, "No external dependencies to audit")
            self.add_issue("No external dependencies", "Nothing to audit; baseline score applied")
            self.set_detail("audit", {"status": "no-dependencies"})
            return

        try:
            report = run_audit(self.tool_runner, manifest, self.root)
        except ExternalToolUnavailable as exc:
            _logger.info("Audit unavailable for %s: %s", self.root, exc)
            self._audit_fallback(manifest, exc)
        else:
            self.set_detail("audit", {"tool": audit_command(manifest)[0], "status": "ok", **report.to_dict()})
            self._score_audit(report, manifest)

        lockfile = self.first_existing(*_LOCKFILES[manifest.ecosystem])
        if lockfile is not None:
            self.add_score(1, 1, f"Lockfile present ({lockfile.name})")
        else:
            self.flag(
                "No lockfile found",
                "Commit a lockfile so dependency versions are reproducible",
                impact=1.5,
                patterns=("dependencies",),
            )
        if manifest.has_script(*_AUDIT_SCRIPTS) or manifest.has_dependency("pip-audit", "safety", "bandit", "audit-ci", "better-npm-audit"):
            self.add_score(1, 1, "Security audit script or tool configured")
        else:
            fix = 'Add an "audit" script (npm audit)' if manifest.ecosystem is Ecosystem.NODE else "Run pip-audit in CI or as a dev task"
            self.flag("No security audit script", fix, impact=1.0, patterns=("dependencies",))

    def _score_audit(self, report: VulnerabilityReport, manifest: Manifest) -> None:
        if report.total == 0:
            self.add_score(4, 4, "No known vulnerabilities")
            return
        if report.critical:
            points, impact, priority = 1, 5.0, Priority.CRITICAL
        elif report.high:
            points, impact, priority = 2, 4.0, Priority.HIGH
        elif report.unknown and not (report.moderate or report.low):
            points, impact, priority = 2, 3.0, Priority.HIGH
        else:
            points, impact, priority = 3, 2.0, Priority.MEDIUM
        self.add_score(points, 4, f"{report.total} known vulnerabilities")
        fix = "Run npm audit fix and upgrade affected packages" if manifest.ecosystem is Ecosystem.NODE else "Upgrade the packages pip-audit reports"
        self.flag(
            f"{report.total} known vulnerabilities in dependencies",
            fix,
            impact=impact,
            confidence=0.95,
            priority=priority,
            patterns=("dependencies",),
        )

    def _audit_fallback(self, manifest: Manifest, exc: ExternalToolUnavailable) -> None:
        self.add_issue(f"{exc.tool} not available: vulnerability analysis degraded", exc.reason)
        names = {name.lower() for name in manifest.all_dependencies}
        unsafe = sorted(names & _UNSAFE_PACKAGES)
        self.set_detail("audit", {"tool": exc.tool, "status": "unavailable", "unsafe_packages": unsafe})

        self.add_score(1.5, 1.5, "Degraded dependency check")
        if unsafe:
            self.flag(
                f"Packages with known security concerns: {', '.join(unsafe)}",
                "Replace or remove packages with a history of security issues",
                impact=3.0,
                confidence=0.6,
                patterns=("dependencies",),
            )
        else:
            self.add_score(1, 1, "No known-unsafe packages")
        if manifest.has_dependency(*_SECURITY_PACKAGES):
            self.add_score(0.5, 0.5, "Security-focused packages in use")

    # ── secrets ────────────────────────────────────────────────────

    def check_secrets(self) -> None:
        if self.exists(".env.example", ".env.sample", ".env.template", ".env.local.example"):
            self.add_score(1, 1, "Environment template present")
        else:
            self.flag(
                "No environment template (.env.example)",
                "Document required environment variables in .env.example",
                impact=1.0,
                patterns=("configuration",),
            )

        gitignore = self.manifest_text(".gitignore")
        if re.search(r"^\s*\.env\b", gitignore, re.MULTILINE):
            self.add_score(1, 1, ".env ignored by git")
        else:
            self.flag(
                ".env files are not ignored by git",
                "Add .env to .gitignore so secrets are never committed",
                impact=3.0,
                priority=Priority.HIGH,
            )

        files = self.sample(self.source_files(), 30)
        env_files = self.count_files_matching(files, _ENV_USE_RE)
        hardcoded = [self.rel(p) for p in files if _HARDCODED_SECRET_RE.search(self.read(p) or "")]
        self.set_detail("secrets", {"env_usage_files": env_files, "hardcoded_candidates": hardcoded})
        if hardcoded:
            self.flag(
                f"Possible hardcoded secrets in {len(hardcoded)} files",
                "Move credentials into environment variables or a secrets manager",
                impact=5.0,
                confidence=0.7,
                priority=Priority.CRITICAL,
            )
            if env_files:
                self.add_score(0.5, 2, "Environment variables used, but hardcoded secrets found")
        elif env_files:
            self.add_score(2, 2, "Configuration read from environment")
        else:
            self.add_score(1, 2, "No secret handling detected")

    # ── error handling ─────────────────────────────────────────────

    def check_error_handling(self) -> None:
        files = self.sample(self.source_files(), 30)
        if not files:
            self.add_issue("No source files to inspect for error handling")
            return
        with_try = self.count_files_matching(files, _TRY_RE)
        structured = self.count_files_matching(files, _STRUCTURED_ERROR_RE)
        contextual = self.count_files_matching(files, _CONTEXTUAL_ERROR_RE)
        ratio = with_try / len(files)
        self.set_detail(
            "error_handling",
            {"files_with_try": with_try, "structured": structured, "contextual": contextual, "sampled": len(files)},
        )
        self.add_score(min(ratio / 0.3, 1) * 1.5, 1.5, f"{ratio:.0%} of sampled files handle errors")
        if ratio < 0.1:
            self.flag("Limited error handling", "Handle errors at I/O and API boundaries", impact=2.0, patterns=("error-handling",))
        if structured:
            self.add_score(0.75, 0.75, "Custom error types in use")
        else:
            self.add_suggestion("Define custom error types for domain failures", impact=1.0, patterns=("error-handling",))
        if contextual:
            self.add_score(0.75, 0.75, "Errors logged or chained with context")

    # ── input validation ───────────────────────────────────────────

    def check_input_validation(self) -> None:
        if self.manifest is not None and self.manifest.has_dependency(*_VALIDATION_PACKAGES):
            self.add_score(1, 1, "Validation library in use")
        else:
            fix = "Validate inputs with pydantic or marshmallow" if self.ecosystem is Ecosystem.PYTHON else "Validate inputs with a schema library such as zod or joi"
            self.flag("No input validation library", fix, impact=1.5, patterns=("validation",))
        files = self.sample(self.source_files(), 30)
        hits = self.count_files_matching(files, _VALIDATION_RE)
        self.set_detail("validation_files", hits)
        if hits:
            self.add_score(1, 1, f"Validation patterns in {hits} files")
