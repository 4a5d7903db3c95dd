"""
Request correlation for the HTTP API.

Each request gets an id, taken from `X-Request-ID` or generated, that is
bound to the logging context. Every record emitted while the request is
served, down to grid parsing and individual pipeline stages, carries the
same `request_id`, and the id is echoed in the response.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from eovtrans.core.logging_config import log_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestCorrelationMiddleware(BaseHTTPMiddleware):
    """Attach a request id to the request state, the log context and the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        with log_context(request_id=request_id):
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            # Rejected coordinates are routine; only server errors are logged as such
            level = logging.ERROR if response.status_code >= 500 else logging.INFO
            logger.log(
                level,
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={"duration_ms": duration_ms, "status_code": response.status_code},
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
