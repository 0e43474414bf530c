"""
Score Schemas
=============
Request and response models for score endpoints.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScoreRequest(BaseModel):
    """Request to score a project"""

    path: str = Field(..., description="Local path to the project root")
    categories: List[str] = Field(default_factory=list, description="Categories to run (empty = all)")
    include_details: bool = Field(default=True, description="Include per-category details")
    include_recommendations: bool = Field(default=True, description="Include ranked recommendations")
    top: Optional[int] = Field(default=None, ge=0, description="Number of recommendations to keep")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "path": "/path/to/project",
                "categories": ["security", "testing"],
                "include_details": False,
                "top": 5,
            }
        }
    )


class ScoreSummary(BaseModel):
    """Headline numbers of a score run"""

    score: float = Field(default=0.0)
    max_score: float = Field(default=0.0)
    percentage: float = Field(default=0.0)
    grade: str = Field(default="F")
    completed: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)


class ScoreResponse(BaseModel):
    """Response from a score operation"""

    status: str = Field(..., description="Run status: complete or partial")
    project: Dict[str, Any] = Field(default_factory=dict)
    summary: ScoreSummary
    result: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "complete",
                "project": {"name": "my-app", "type": "react-webapp", "framework": "react"},
                "summary": {
                    "score": 72.5,
                    "max_score": 100,
                    "percentage": 72.5,
                    "grade": "C",
                    "completed": ["structure", "quality"],
                    "failed": [],
                },
                "result": {},
            }
        }
    )


class CheckInfo(BaseModel):
    name: str
    maxPoints: float


class CategoryInfo(BaseModel):
    """One category with its cap and check allocation"""

    name: str
    maxScore: float
    version: str
    checks: List[CheckInfo]
