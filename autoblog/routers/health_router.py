"""Health check endpoint."""
from fastapi import APIRouter

from autoblog import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    """Health check cho load balancer / Docker."""
    return {"status": "ok", "version": __version__}
