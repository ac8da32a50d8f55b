"""Health check route."""

from fastapi import APIRouter

from fuelops.core.config import settings

router = APIRouter()


@router.get("/health")
def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy", "service": "fuelops", "version": settings.VERSION}
