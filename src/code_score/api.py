"""
code_score.api
==============

Programmatic entrypoint for using code_score as a backend engine.

Goals:
  - No argparse / CLI dependencies
  - Deterministic output (``ci_mode=True`` also rounds floats)
  - Stable, JSON-friendly outputs that match the bundled result schema

Non-goals:
  - Owning persistence; scoring never writes to the project
  - Owning presentation; callers render results

Usage::

    from code_score.api import score_project

    result, result_dict = score_project(".", categories=["security"])
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from code_score.analyzers.registry import build_analyzers
from code_score.contracts.load import OVERALL_RESULT_SCHEMA, validate_instance
from code_score.core.config import ScoreConfig, load_config
from code_score.core.discover import SamplingPolicy
from code_score.core.manifest import load_manifest
from code_score.core.project_type import PROJECT_TYPES, detect_project_type
from code_score.core.runner import Orchestrator
from code_score.core.tools import ToolRunner
from code_score.errors import ConfigurationError
from code_score.insights.history import RecommendationHistory
from code_score.model.context import ProjectContext, ScoreOptions
from code_score.model.result import OverallResult
from code_score.utils.json_norm import stable_json_dumps

_logger = logging.getLogger(__name__)


def _to_path(p: str | Path) -> Path:
    return p if isinstance(p, Path) else Path(p)


def build_context(
    root: Path,
    config: ScoreConfig,
    options: ScoreOptions,
    sampling: SamplingPolicy | None = None,
) -> ProjectContext:
    """Load the manifest, detect the project type and freeze the context."""
    manifest = load_manifest(root)
    detection = detect_project_type(manifest, root)
    project_type = config.project_type or detection.project_type
    if project_type not in PROJECT_TYPES:
        raise ConfigurationError(
            f"unknown project_type {project_type!r} (known: {', '.join(PROJECT_TYPES)})"
        )
    return ProjectContext.build(
        root,
        manifest=manifest,
        project_type=project_type,
        framework=detection.framework,
        options=options,
        sampling=sampling or SamplingPolicy(config.sample_limit),
        exclude_dirs=config.exclude_dirs,
    )


def score_project(
    root: str | Path,
    *,
    categories: Optional[Sequence[str]] = None,
    verbose: bool = False,
    include_details: bool = True,
    include_recommendations: bool = True,
    ci_mode: bool = False,
    config: Optional[ScoreConfig] = None,
    config_path: Optional[str | Path] = None,
    analyzers: Optional[Sequence[Any]] = None,
    tool_runner: Optional[ToolRunner] = None,
    sampling: Optional[SamplingPolicy] = None,
    history: Optional[RecommendationHistory] = None,
    deadline: Optional[float] = None,
) -> tuple[OverallResult, dict[str, Any]]:
    """Score the project at *root*.

    Parameters
    ----------
    root:
        Project directory.
    categories:
        Restrict the run to these categories (default: all, or the
        config file's ``categories``).
    verbose:
        Record per-check scoring reasons in each category's details.
    include_details / include_recommendations:
        Drop category details / the ranked recommendation list.
    ci_mode:
        Round floats in the returned dict for byte-stable output.
    config / config_path:
        Explicit config, or a YAML file to load it from. Otherwise a
        ``.code-score.yaml`` at *root* is used when present. Environment
        overrides apply in every case.
    analyzers:
        Override the built-in analyzer set. Each must conform to the
        ``Analyzer`` protocol (``name``, ``max_score``, ``run()``).
    tool_runner:
        Runner for external tools (audit, lint); built from config when
        omitted.
    sampling:
        Override the file sampling policy.
    history:
        Accepted-recommendation history; ``<root>/.code-score/history.json``
        is read when omitted.
    deadline:
        Absolute ``time.monotonic()`` deadline for the whole run.

    Returns
    -------
    ``(OverallResult, result_dict)``
        The dataclass and the schema-validated JSON dict.

    Raises
    ------
    ConfigurationError
        If *root* is not a directory, the config is invalid, or a category
        is unknown. Raised before any analyzer runs.
    """
    root_p = _to_path(root).resolve()
    if not root_p.is_dir():
        raise ConfigurationError(f"score_project: root is not a directory: {root_p}")

    if config is None:
        config = load_config(root_p, _to_path(config_path) if config_path is not None else None)
    else:
        config = config.with_env()

    options = ScoreOptions(
        categories=tuple(categories) if categories else config.categories,
        verbose=verbose,
        include_details=include_details,
        include_recommendations=include_recommendations,
    )
    context = build_context(root_p, config, options, sampling)

    runner = tool_runner or ToolRunner(timeout=config.tool_timeout, enabled=config.external_tools)
    orchestrator = Orchestrator(
        list(analyzers) if analyzers is not None else build_analyzers(runner),
        max_workers=config.max_workers,
        timeout=config.timeout,
        recommendation_limit=config.recommendation_limit,
    )
    if history is None:
        history = RecommendationHistory.for_project(root_p)

    _logger.info("Scoring %s (%s)", root_p, context.project_type)
    result = orchestrator.run_all(context, history=history.accepted(), deadline=deadline)

    result_dict = json.loads(stable_json_dumps(result, ci_mode=ci_mode))
    validate_instance(result_dict, OVERALL_RESULT_SCHEMA)
    return result, result_dict
