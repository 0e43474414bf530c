"""
Score Router
============
Endpoints for scoring projects.
"""
import dataclasses
import logging
from pathlib import Path
from typing import List

from fastapi import APIRouter, HTTPException

from code_score import api as core_api
from code_score.analyzers.registry import category_table
from code_score.core.config import load_config
from code_score.errors import ConfigurationError
from code_score.web_api.config import settings
from code_score.web_api.schemas.score import (
    CategoryInfo,
    ScoreRequest,
    ScoreResponse,
    ScoreSummary,
)

_logger = logging.getLogger(__name__)

router = APIRouter()


def _is_allowed(target: Path) -> bool:
    if not settings.ALLOWED_ROOTS:
        return True
    return any(target.is_relative_to(Path(root).resolve()) for root in settings.ALLOWED_ROOTS)


@router.post("", response_model=ScoreResponse)
def score_project(request: ScoreRequest):
    """
    Score a project directory.

    - **path**: Local path to score
    - **categories**: Restrict the run to these categories
    - **top**: Number of recommendations to return
    """
    target = Path(request.path).resolve()
    if not target.is_dir():
        raise HTTPException(status_code=404, detail=f"Path not found: {request.path}")
    if not _is_allowed(target):
        raise HTTPException(status_code=403, detail=f"Path not allowed: {request.path}")

    try:
        config = load_config(target)
        changes = {"analyzer_timeout": float(settings.SCORE_TIMEOUT)}
        if not settings.EXTERNAL_TOOLS:
            changes["external_tools"] = False
        if request.top is not None:
            changes["recommendation_limit"] = request.top
        config = dataclasses.replace(config, **changes)
        _, result = core_api.score_project(
            target,
            categories=request.categories or None,
            include_details=request.include_details,
            include_recommendations=request.include_recommendations,
            config=config,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        _logger.exception("Scoring %s failed", target)
        raise HTTPException(status_code=500, detail=str(e))

    summary = result["summary"]
    return ScoreResponse(
        status="partial" if summary["failed"] else "complete",
        project=result["project"],
        summary=ScoreSummary(
            score=result["score"],
            max_score=result["maxScore"],
            percentage=result["percentage"],
            grade=result["grade"],
            completed=summary["completed"],
            failed=summary["failed"],
        ),
        result=result,
    )


@router.get("/categories", response_model=List[CategoryInfo])
async def list_categories():
    """Categories, their caps and per-check point allocations."""
    return category_table()
