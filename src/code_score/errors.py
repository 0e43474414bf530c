"""Typed error hierarchy for the scoring engine.

Only ``ConfigurationError`` ever reaches callers of the facade; analyzer
failures are isolated by the orchestrator and tool failures degrade to
heuristic fallbacks inside the analyzer that hit them.
"""

from __future__ import annotations


class CodeScoreError(Exception):
    """Base exception for all code_score errors."""


class ConfigurationError(CodeScoreError, ValueError):
    """Raised when the caller supplies an invalid filter, context or config.

    This is the one error class that fails fast, before any analyzer runs.
    """


class ExternalToolUnavailable(CodeScoreError):
    """Raised when an external tool is missing, disabled, or times out."""

    def __init__(self, tool: str, reason: str) -> None:
        super().__init__(f"{tool}: {reason}")
        self.tool = tool
        self.reason = reason
