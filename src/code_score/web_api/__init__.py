"""
Code Score Web API
==================
FastAPI-based REST API for project scoring.

Quick Start:
    uvicorn code_score.web_api.main:app --reload
"""
from .main import app

__all__ = ["app"]
