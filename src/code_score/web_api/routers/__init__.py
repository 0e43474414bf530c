"""
API Routers
===========
Each router handles a specific domain of the API.
"""
from . import health, score

__all__ = ["health", "score"]
