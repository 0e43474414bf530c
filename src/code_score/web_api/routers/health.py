"""
Health Check Router
==================
Endpoints for health checks and readiness checks.
"""
from fastapi import APIRouter

from code_score import __version__
from code_score.contracts.load import OVERALL_RESULT_SCHEMA, load_schema

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns OK if the service is running.
    """
    return {"status": "ok", "version": __version__}


@router.get("/ready")
async def readiness_check():
    """
    Readiness check endpoint.
    Ready once the bundled result schema can be loaded.
    """
    load_schema(OVERALL_RESULT_SCHEMA)
    return {"status": "ready"}
