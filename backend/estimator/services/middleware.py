"""Request tracing for the estimator API: request ids, timing headers, access log."""
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("estimator-api.middleware")

REQUEST_ID_HEADER = "X-Request-ID"

# Probe endpoints hit every few seconds by the platform
SKIP_LOG_PATHS = {"/health", "/metrics"}


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id and logs how long it took.

    An ``X-Request-ID`` sent by the caller (e.g. the estimate front end) is
    reused so both sides log the same id; otherwise a uuid4 is minted. The
    id and the duration are returned as ``X-Request-ID`` and
    ``X-Process-Time``. Server errors are logged at WARNING.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path in SKIP_LOG_PATHS:
            return response

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "http_method": request.method,
                "http_path": request.url.path,
                "http_status": response.status_code,
                "request_id": request_id,
                "duration_ms": duration_ms,
            },
        )
        return response
