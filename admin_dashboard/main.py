"""FastAPI application entry point."""
from fastapi import FastAPI
from admin_dashboard.config import settings
from admin_dashboard.controller import build_controller
from admin_dashboard.logging_utils import LoggingMiddleware, configure_logging
from admin_dashboard.models import init_db
from admin_dashboard.routes import dashboard, health, metrics
import logging

# Initialize logger
logger = logging.getLogger(__name__)

# Configure logging level
configure_logging(settings.log_level)

# Create FastAPI app
app = FastAPI(
    title="Chat Admin Dashboard",
    description="Admin page summarising chat message activity",
    version="1.0.0",
)
app.state.controller = None

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(dashboard.router)
app.include_router(health.router)
app.include_router(metrics.router)


@app.on_event("startup")
async def startup_event():
    """Validate configuration and create the dashboard controller."""
    if not settings.validate_data_source():
        logger.error(
            "Data source %r is not fully configured. Service will not be ready.",
            settings.data_source,
        )
        return
    if settings.data_source.lower() == "sqlite":
        init_db(settings.database_url)
    app.state.controller = build_controller(settings)
    logger.info("Application started", extra={"source": app.state.controller.source.name})


@app.on_event("shutdown")
async def shutdown_event():
    """Tear down the controller and its data source."""
    controller = app.state.controller
    app.state.controller = None
    if controller is not None:
        await controller.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "admin_dashboard.main:app",
        host="0.0.0.0",
        port=8000,
        log_config=None,  # We use our own JSON logging
    )
