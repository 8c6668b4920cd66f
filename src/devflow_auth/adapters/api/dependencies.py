"""FastAPI dependencies shared by the API routers."""

from fastapi import HTTPException, Request, status

from devflow_auth.core.gatekeeper import AuthGatekeeper
from devflow_auth.domain.rate_limiting.repositories import RateLimitRepository


def get_gatekeeper(request: Request) -> AuthGatekeeper:
    """Return the pipeline built at startup.

    Tests replace it through ``app.dependency_overrides``.
    """
    gatekeeper = getattr(request.app.state, "gatekeeper", None)
    if gatekeeper is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service starting")
    return gatekeeper


def get_rate_limit_repository(request: Request) -> RateLimitRepository:
    repository = getattr(request.app.state, "rate_limit_repository", None)
    if repository is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service starting")
    return repository
