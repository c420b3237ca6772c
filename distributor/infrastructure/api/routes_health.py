"""Health check endpoint."""

from fastapi import APIRouter, Depends

from distributor.infrastructure.api.dependencies import Container, get_container

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(container: Container = Depends(get_container)):
    """Check API and storage backend connectivity."""
    reachable = await container.attendance_repo.ping()
    return {
        "status": "ok" if reachable else "degraded",
        "storage": "connected" if reachable else "unreachable",
        "service": "Attendance Distributor",
    }
