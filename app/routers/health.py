"""Health check endpoint."""

from fastapi import APIRouter, Depends

from ..config import Settings
from ..models import HealthReport
from ..security import get_settings

SERVICE_NAME = "ai-portfolio-service"

router = APIRouter(tags=["health"])


@router.get("/", response_model=HealthReport)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthReport:
    """Unauthenticated status plus which secrets are configured."""
    return HealthReport(
        status="ok",
        service=SERVICE_NAME,
        env=settings.env_report(),
    )
