from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from devflow_auth.adapters.api.dependencies import get_rate_limit_repository
from devflow_auth.core.config.settings import settings
from devflow_auth.domain.rate_limiting.repositories import RateLimitRepository

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    version: str
    services: Dict[str, Any]
    timestamp: datetime


@router.get("", response_model=HealthResponse)
async def health_check(repository: RateLimitRepository = Depends(get_rate_limit_repository)):
    """
    Report whether the rate limit store is reachable.

    A down store does not stop sign-in when the failure policy is fail-open,
    so the gateway reports itself degraded rather than failing the health check.
    """
    rate_limit_health = await repository.health_check()
    overall_status = "ok" if rate_limit_health["status"] == "healthy" else "degraded"

    return HealthResponse(
        status=overall_status,
        env=settings.APP_ENV,
        version=settings.VERSION,
        services={"rate_limit_store": rate_limit_health},
        timestamp=datetime.now(timezone.utc),
    )
