"""Request tracing for the cost model API."""
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from costmodel.services.perf_monitor import tracker

logger = logging.getLogger("cost-model-api.middleware")

SKIP_LOG_PATHS = {"/health"}
REQUEST_ID_HEADER = "X-Request-ID"


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an X-Request-ID (the caller's, when supplied),
    returns X-Process-Time in milliseconds and records the duration per
    route in the performance tracker. Client and server errors log at
    WARNING; /health probes are not logged.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        path = request.url.path
        if path in SKIP_LOG_PATHS:
            return response

        tracker.record_duration(f"{request.method} {path}", duration_ms)
        if response.status_code >= 400:
            tracker.record_failure(f"{request.method} {path}")
        logger.log(
            logging.WARNING if response.status_code >= 400 else logging.INFO,
            "request completed",
            extra={
                "http_method": request.method,
                "http_path": path,
                "http_status": response.status_code,
                "request_id": request_id,
                "duration_ms": duration_ms,
            },
        )
        return response
