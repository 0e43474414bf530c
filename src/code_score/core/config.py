"""Score configuration dataclass.

Values come from, in increasing precedence: the defaults below, a YAML
file (``.code-score.yaml`` at the project root, or an explicit path), and
``CODE_SCORE_*`` environment variables.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from code_score.errors import ConfigurationError

_logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (".code-score.yaml", ".code-score.yml", "code-score.yaml")

_DEFAULT_ANALYZER_TIMEOUT = 300.0  # 5 minutes


@dataclass(frozen=True)
class ScoreConfig:
    """Immutable scoring configuration."""

    analyzer_timeout: float = _DEFAULT_ANALYZER_TIMEOUT  # 0 = no limit
    tool_timeout: float = 30.0
    max_workers: int = 7
    external_tools: bool = True
    sample_limit: int | None = None
    recommendation_limit: int = 10
    exclude_dirs: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    project_type: str | None = None

    def __post_init__(self) -> None:
        if self.analyzer_timeout < 0:
            raise ConfigurationError("analyzer_timeout must be >= 0")
        if self.tool_timeout <= 0:
            raise ConfigurationError("tool_timeout must be > 0")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be >= 1")
        if self.sample_limit is not None and self.sample_limit < 1:
            raise ConfigurationError("sample_limit must be >= 1")
        if self.recommendation_limit < 0:
            raise ConfigurationError("recommendation_limit must be >= 0")

    @property
    def timeout(self) -> float | None:
        """Overall analyzer timeout in seconds, ``None`` when unlimited."""
        return self.analyzer_timeout or None

    # ── construction ───────────────────────────────────────────────

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, source: str = "config") -> ScoreConfig:
        """Build a config from a plain mapping, checking keys and value types."""
        fields = {f.name: f for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - set(fields))
        if unknown:
            raise ConfigurationError(f"{source}: unknown key(s): {', '.join(unknown)}")
        values: dict[str, Any] = {}
        for key, raw in data.items():
            values[key] = _coerce(key, raw, source)
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path) -> ScoreConfig:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: top-level value must be a mapping")
        return cls.from_mapping(data, source=str(path))

    @classmethod
    def discover(cls, root: Path) -> ScoreConfig:
        """Load the first config file found at *root*, or the defaults."""
        for name in CONFIG_FILENAMES:
            path = root / name
            if path.is_file():
                _logger.debug("Using config file %s", path)
                return cls.from_yaml(path)
        return cls()

    def with_env(self, environ: Mapping[str, str] | None = None) -> ScoreConfig:
        """Apply ``CODE_SCORE_*`` environment overrides."""
        env = os.environ if environ is None else environ
        changes: dict[str, Any] = {}
        for var, key in (
            ("CODE_SCORE_ANALYZER_TIMEOUT", "analyzer_timeout"),
            ("CODE_SCORE_TOOL_TIMEOUT", "tool_timeout"),
            ("CODE_SCORE_MAX_WORKERS", "max_workers"),
        ):
            raw = env.get(var, "")
            if raw:
                changes[key] = _coerce(key, raw, var)
        if env.get("CODE_SCORE_NO_TOOLS", "") not in ("", "0"):
            changes["external_tools"] = False
        return dataclasses.replace(self, **changes) if changes else self


def _coerce(key: str, raw: Any, source: str) -> Any:
    """Convert *raw* to the type of field *key*, or raise ``ConfigurationError``."""
    try:
        if key in ("analyzer_timeout", "tool_timeout"):
            if isinstance(raw, bool):
                raise TypeError(raw)
            return float(raw)
        if key in ("max_workers", "recommendation_limit"):
            if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
                raise TypeError(raw)
            return int(raw)
        if key == "sample_limit":
            if raw is None:
                return None
            if isinstance(raw, bool):
                raise TypeError(raw)
            return int(raw)
        if key == "external_tools":
            if not isinstance(raw, bool):
                raise TypeError(raw)
            return raw
        if key in ("exclude_dirs", "categories"):
            if isinstance(raw, str):
                raw = [part.strip() for part in raw.split(",") if part.strip()]
            if not isinstance(raw, (list, tuple)) or not all(isinstance(v, str) for v in raw):
                raise TypeError(raw)
            return tuple(raw)
        if key == "project_type":
            if raw is not None and not isinstance(raw, str):
                raise TypeError(raw)
            return raw
    except (TypeError, ValueError):
        raise ConfigurationError(f"{source}: invalid value for {key}: {raw!r}") from None
    raise ConfigurationError(f"{source}: unknown key: {key}")


def load_config(root: Path, config_path: Path | None = None, *, environ: Mapping[str, str] | None = None) -> ScoreConfig:
    """Resolve the effective config for a run rooted at *root*."""
    base = ScoreConfig.from_yaml(config_path) if config_path is not None else ScoreConfig.discover(root)
    return base.with_env(environ)
