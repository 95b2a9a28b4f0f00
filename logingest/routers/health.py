"""
Log Ingest - Health Router

Unauthenticated liveness endpoint for load balancers.
"""

from fastapi import APIRouter

from .. import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check; does not touch the database."""
    return {
        "service": "logingest",
        "status": "ok",
        "version": __version__,
    }
