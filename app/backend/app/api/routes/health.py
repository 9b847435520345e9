"""Health check endpoints."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Liveness probe; no authentication."""

    return {"status": "ok", "service": "huntly"}
