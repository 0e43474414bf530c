"""
Pydantic Schemas
===============
Request and response models for the API.
"""
from .score import CategoryInfo, ScoreRequest, ScoreResponse, ScoreSummary

__all__ = ["CategoryInfo", "ScoreRequest", "ScoreResponse", "ScoreSummary"]
