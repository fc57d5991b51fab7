"""Admin dashboard page and its JSON API."""
from pathlib import Path
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from admin_dashboard.config import settings
from admin_dashboard.controller import DashboardController, build_controller
from admin_dashboard.schemas import DashboardView

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def get_controller(request: Request) -> DashboardController:
    """Controller owned by the app, created on first use if startup did not run."""
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        controller = build_controller(settings)
        request.app.state.controller = controller
    return controller


async def current_view(controller: DashboardController) -> DashboardView:
    """Published view, running the first cycle on page load."""
    if not controller.started:
        return await controller.refresh()
    return controller.view


@router.get("/", response_class=HTMLResponse)
async def dashboard_page(
    request: Request,
    controller: DashboardController = Depends(get_controller),
):
    """Render the summary cards, activity chart and message table."""
    view = await current_view(controller)
    chart_max = max([entry.messages for entry in view.daily_stats] + [1])
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"view": view, "chart_max": chart_max},
    )


@router.post("/refresh")
async def refresh_page(controller: DashboardController = Depends(get_controller)):
    """Refresh Data button: re-run the cycle, then show the page again."""
    await controller.refresh()
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/api/dashboard", response_model=DashboardView)
async def dashboard_data(controller: DashboardController = Depends(get_controller)):
    """
    Current dashboard state.

    Returns stats, the 7-day daily_stats series (oldest first), all messages
    newest first, plus loading/error flags and the instant it was computed.
    """
    return await current_view(controller)


@router.post("/api/dashboard/refresh", response_model=DashboardView)
async def refresh_dashboard(controller: DashboardController = Depends(get_controller)):
    """Re-fetch everything and recompute. Failures are reported in the error field."""
    return await controller.refresh()
