"""External tool integration — bounded subprocess calls and output parsers.

Every tool call goes through ``ToolRunner.run``, which enforces a timeout
and converts a missing executable, an OS error, a timeout, or a disabled
runner into ``ExternalToolUnavailable``. Callers catch that and fall back
to heuristics; nothing here ever blocks longer than the timeout.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from code_score.core.manifest import Manifest
from code_score.errors import ExternalToolUnavailable
from code_score.model import Ecosystem

_logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 30.0


@dataclass(frozen=True, slots=True)
class ToolOutput:
    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str = ""


class ToolRunner:
    """Run external command-line tools with a hard timeout."""

    def __init__(self, *, timeout: float = DEFAULT_TOOL_TIMEOUT, enabled: bool = True) -> None:
        self.timeout = timeout
        self.enabled = enabled

    def run(self, command: Sequence[str], *, cwd: Path) -> ToolOutput:
        tool = command[0]
        if not self.enabled:
            raise ExternalToolUnavailable(tool, "external tools are disabled")
        executable = shutil.which(tool)
        if executable is None:
            raise ExternalToolUnavailable(tool, "executable not found on PATH")

        _logger.debug("Running %s in %s (timeout %.0fs)", " ".join(command), cwd, self.timeout)
        try:
            result = subprocess.run(
                [executable, *command[1:]],
                cwd=str(cwd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise ExternalToolUnavailable(tool, f"timed out after {self.timeout:.0f}s") from None
        except OSError as exc:
            raise ExternalToolUnavailable(tool, str(exc)) from exc
        return ToolOutput(
            command=tuple(command),
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )


# ── dependency vulnerability audit ─────────────────────────────────


@dataclass(frozen=True, slots=True)
class VulnerabilityReport:
    critical: int = 0
    high: int = 0
    moderate: int = 0
    low: int = 0
    unknown: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.high + self.moderate + self.low + self.unknown

    def to_dict(self) -> dict[str, int]:
        return {
            "critical": self.critical,
            "high": self.high,
            "moderate": self.moderate,
            "low": self.low,
            "unknown": self.unknown,
            "total": self.total,
        }


def audit_command(manifest: Manifest) -> tuple[str, ...]:
    """Command that audits *manifest*'s dependencies for known vulnerabilities."""
    if manifest.ecosystem is Ecosystem.NODE:
        return ("npm", "audit", "--json")
    if manifest.kind == "requirements.txt":
        return ("pip-audit", "-f", "json", "--progress-spinner", "off", "-r", "requirements.txt")
    return ("pip-audit", "-f", "json", "--progress-spinner", "off", ".")


def parse_npm_audit(stdout: str) -> VulnerabilityReport:
    """Parse ``npm audit --json`` output (npm 7+ and legacy npm 6 layouts).

    Raises ``ValueError`` when the output is not a recognisable audit report.
    """
    data = json.loads(stdout)
    if not isinstance(data, dict):
        raise ValueError("npm audit output is not an object")
    if "error" in data and "metadata" not in data:
        raise ValueError(f"npm audit reported an error: {data['error']}")
    counts = (data.get("metadata") or {}).get("vulnerabilities")
    if not isinstance(counts, dict):
        raise ValueError("npm audit output has no metadata.vulnerabilities")
    return VulnerabilityReport(
        critical=int(counts.get("critical", 0)),
        high=int(counts.get("high", 0)),
        moderate=int(counts.get("moderate", 0)),
        low=int(counts.get("low", 0)) + int(counts.get("info", 0)),
    )


def parse_pip_audit(stdout: str) -> VulnerabilityReport:
    """Parse ``pip-audit -f json`` output.

    pip-audit does not grade severity, so every finding counts as
    ``unknown``. Raises ``ValueError`` on unrecognisable output.
    """
    data = json.loads(stdout)
    if isinstance(data, dict):
        deps = data.get("dependencies")
    else:
        deps = data
    if not isinstance(deps, list):
        raise ValueError("pip-audit output has no dependency list")
    unknown = sum(len(d.get("vulns") or []) for d in deps if isinstance(d, dict))
    return VulnerabilityReport(unknown=unknown)


def run_audit(runner: ToolRunner, manifest: Manifest, root: Path) -> VulnerabilityReport:
    """Run the ecosystem's audit tool and parse its report.

    Raises ``ExternalToolUnavailable`` when the tool cannot run or its
    output cannot be parsed.
    """
    command = audit_command(manifest)
    output = runner.run(command, cwd=root)
    parser = parse_npm_audit if manifest.ecosystem is Ecosystem.NODE else parse_pip_audit
    try:
        return parser(output.stdout)
    except (ValueError, TypeError) as exc:
        raise ExternalToolUnavailable(command[0], f"unparseable output ({exc})") from exc


# ── linter ──────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class LintReport:
    errors: int = 0
    warnings: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"errors": self.errors, "warnings": self.warnings}


def lint_command(manifest: Manifest | None, root: Path) -> tuple[str, ...]:
    """Linter invocation for the project, preferring a project-local ESLint."""
    if manifest is not None and manifest.ecosystem is Ecosystem.NODE:
        local = root / "node_modules" / ".bin" / "eslint"
        return (str(local) if local.exists() else "eslint", "--format", "json", ".")
    return ("ruff", "check", "--output-format", "json", "--exit-zero", ".")


def parse_eslint(stdout: str) -> LintReport:
    data = json.loads(stdout)
    if not isinstance(data, list):
        raise ValueError("eslint output is not a list of file reports")
    return LintReport(
        errors=sum(int(f.get("errorCount", 0)) for f in data),
        warnings=sum(int(f.get("warningCount", 0)) for f in data),
    )


def parse_ruff(stdout: str) -> LintReport:
    """Parse ``ruff check --output-format json``.

    Syntax errors (no rule code) count as errors, rule violations as
    warnings.
    """
    data = json.loads(stdout)
    if not isinstance(data, list):
        raise ValueError("ruff output is not a list of diagnostics")
    errors = sum(1 for d in data if not d.get("code"))
    return LintReport(errors=errors, warnings=len(data) - errors)


def run_lint(runner: ToolRunner, manifest: Manifest | None, root: Path) -> LintReport:
    """Run the project's linter and parse its report.

    Raises ``ExternalToolUnavailable`` when the linter cannot run or its
    output cannot be parsed.
    """
    command = lint_command(manifest, root)
    output = runner.run(command, cwd=root)
    is_eslint = Path(command[0]).name == "eslint"
    try:
        return parse_eslint(output.stdout) if is_eslint else parse_ruff(output.stdout)
    except (ValueError, TypeError, AttributeError) as exc:
        raise ExternalToolUnavailable(Path(command[0]).name, f"unparseable output ({exc})") from exc
