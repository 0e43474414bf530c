"""
Code Score HTTP Service
=======================
Scores a project directory on the server's filesystem and returns the
same result document the ``code-score score --json`` command prints.

Endpoints:
    POST /score              score one project tree
    GET  /score/categories   category weights and per-check budgets
    GET  /health, /ready     liveness and readiness

Paths are resolved on the server; set ALLOWED_ROOTS to confine scoring
to a set of directories.

Run with:
    uvicorn code_score.web_api.main:app --reload
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from code_score import __version__
from code_score.model import CATEGORY_NAMES
from code_score.web_api.config import settings
from code_score.web_api.routers import health, score

SERVICE_NAME = "Code Score API"

TAGS = [
    {"name": "Health", "description": "Liveness and readiness checks."},
    {
        "name": "Score",
        "description": "Weighted 0-100 engineering-quality score with a letter grade, "
        "per-category results and ranked recommendations.",
    },
]

app = FastAPI(
    title=SERVICE_NAME,
    description=(
        "Runs the seven category analyzers (" + ", ".join(CATEGORY_NAMES) + ") "
        "against a directory and returns the scored result."
    ),
    version=__version__,
    openapi_tags=TAGS,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# Scoring is read-only: GET for metadata, POST for a run
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(score.router, prefix="/score", tags=["Score"])


@app.get("/")
async def root():
    """Service name, version and where to send a scoring request."""
    return {
        "name": SERVICE_NAME,
        "version": __version__,
        "score": "POST /score",
        "categories": list(CATEGORY_NAMES),
        "restrictedRoots": bool(settings.ALLOWED_ROOTS),
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
