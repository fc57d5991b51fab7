"""Structured JSON logging utilities."""
import json
import time
import uuid
from datetime import datetime, timezone
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import logging

# Fields copied from `extra=` onto the JSON line when present
EXTRA_FIELDS = (
    "request_id",
    "method",
    "path",
    "status",
    "latency_ms",
    "generation",
    "result",
    "source",
    "total_messages",
)

# Configure root logger to output JSON
logger = logging.getLogger()
handler = logging.StreamHandler()


def configure_logging(level: str = "INFO"):
    """Configure logging level."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)
    handler.setLevel(log_level)


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)
        if record.exc_info:
            log_data["exc"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


configure_logging()
handler.setFormatter(JSONFormatter())
if handler not in logger.handlers:
    logger.addHandler(handler)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log requests in JSON format."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        start_time = time.time()

        request.state.request_id = request_id
        response = await call_next(request)
        latency_ms = int((time.time() - start_time) * 1000)

        from admin_dashboard.routes.metrics import http_requests_total, request_latency_ms
        http_requests_total.labels(
            path=request.url.path,
            status=response.status_code
        ).inc()
        request_latency_ms.observe(latency_ms)

        logging.getLogger("http").info(
            "%s %s",
            request.method,
            request.url.path,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "latency_ms": latency_ms,
            },
        )

        return response
