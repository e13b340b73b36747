"""Request context middleware: request IDs, latency metrics and access logs"""

import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from leisure_ledger.infrastructure.observability.logging import log_request
from leisure_ledger.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Wrap every request in a traceable context.

    - Reuse the caller's X-Request-ID or mint one, echo it on the response
    - Observe latency labelled by route template, so /v1/session/{x} style
      paths share one series
    - Emit one structured access log line per request
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - started
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        request_duration_histogram.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
        ).observe(duration)
        log_request(request_id, request.method, endpoint, response.status_code, duration)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
