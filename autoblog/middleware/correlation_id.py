# Request-ID middleware: lấy X-Request-ID từ header hoặc sinh mới, bind vào structlog context và response header.
import time
import uuid
from typing import Callable

import structlog.contextvars
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from autoblog.logging_config import get_logger

logger = get_logger(__name__)

HEADER_REQUEST_ID = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Gắn request_id cho mọi log trong request; log một dòng http.request khi xong."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(HEADER_REQUEST_ID, "").strip() or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)

        start = time.perf_counter()
        response = await call_next(request)
        response.headers[HEADER_REQUEST_ID] = request_id
        logger.info(
            "http.request",
            method=request.method,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000),
        )
        return response
