"""Persisted record of recommendations the user accepted.

Stored as ``<root>/.code-score/history.json``::

    {
      "schema_version": "recommendation_history_v1",
      "accepted": [{"key": "...", "category": "...", "patterns": [...]}, ...]
    }

Scoring only reads this file; ``record_accepted`` + ``save`` are driven by
the ``accept`` CLI command.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from code_score.insights.ranking import AcceptedRecommendation
from code_score.utils.json_norm import stable_json_dumps

_logger = logging.getLogger(__name__)

HISTORY_SCHEMA_VERSION = "recommendation_history_v1"
HISTORY_DIR = ".code-score"
HISTORY_FILE = "history.json"


class RecommendationHistory:
    """Accepted recommendations for one project."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._accepted: list[AcceptedRecommendation] = []

    @classmethod
    def for_project(cls, root: Path) -> RecommendationHistory:
        return cls(root / HISTORY_DIR / HISTORY_FILE).load()

    def load(self) -> RecommendationHistory:
        """Read the history file; a missing or corrupt file yields empty history."""
        self._accepted = []
        if not self.path.is_file():
            return self
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            _logger.warning("Ignoring unreadable history file %s: %s", self.path, exc)
            return self
        entries = data.get("accepted") if isinstance(data, dict) else None
        for entry in entries or []:
            if not isinstance(entry, dict) or not entry.get("key"):
                continue
            self._accepted.append(
                AcceptedRecommendation(
                    key=str(entry["key"]),
                    category=str(entry.get("category", "")),
                    patterns=tuple(str(p) for p in entry.get("patterns") or ()),
                )
            )
        return self

    def accepted(self) -> list[AcceptedRecommendation]:
        return list(self._accepted)

    def record_accepted(self, suggestion_key: str, category: str = "", patterns: Iterable[str] = ()) -> AcceptedRecommendation:
        """Append an accepted recommendation; duplicates by key are ignored."""
        for existing in self._accepted:
            if existing.key == suggestion_key:
                return existing
        if not category and ":" in suggestion_key:
            category = suggestion_key.split(":", 1)[0]
        entry = AcceptedRecommendation(key=suggestion_key, category=category, patterns=tuple(patterns))
        self._accepted.append(entry)
        return entry

    def save(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "schema_version": HISTORY_SCHEMA_VERSION,
            "accepted": [
                {"key": a.key, "category": a.category, "patterns": list(a.patterns)}
                for a in self._accepted
            ],
        }
        self.path.write_text(stable_json_dumps(payload), encoding="utf-8")
        return self.path
