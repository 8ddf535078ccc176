"""
Observability middleware and logging setup.

Every HTTP request gets a correlation id (taken from ``X-Correlation-ID``
when the caller sends one) and a single structured access log line.
WebSocket traffic passes through untouched and is logged by the realtime
package instead.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from gk_express.app.core.config import settings

logger = logging.getLogger("gk_express")
access_logger = logging.getLogger("gk_express.access")

CORRELATION_HEADER = "X-Correlation-ID"
QUIET_PATHS = {"/health"}


def setup_logging() -> None:
    """Configure the root logger from settings.log_level."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=level,
    )
    logger.setLevel(level)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        if request.url.path in QUIET_PATHS and response.status_code < 400:
            return response

        log_data = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "ip": request.client.host if request.client else "unknown"
        }

        if response.status_code >= 500:
            access_logger.error("Request failed", extra=log_data)
        elif response.status_code >= 400:
            access_logger.warning("Request rejected", extra=log_data)
        else:
            access_logger.info("Request served", extra=log_data)

        return response
