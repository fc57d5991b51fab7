"""Health check endpoints."""
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from admin_dashboard.config import settings
from admin_dashboard.routes.dashboard import get_controller

router = APIRouter()


@router.get("/health/live")
async def liveness():
    """Liveness probe - always returns 200 once app is running."""
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness(request: Request):
    """
    Readiness probe - returns 200 only if:
    - the selected data source is fully configured
    - the data source answers a trivial query
    """
    if not settings.validate_data_source():
        return JSONResponse(
            {"status": "not ready", "reason": "data source not configured"},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    controller = get_controller(request)
    if not await controller.source.ping():
        return JSONResponse(
            {"status": "not ready", "reason": "data source unreachable"},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return {"status": "ready", "source": controller.source.name}
