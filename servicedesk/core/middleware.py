"""
Core middleware and exception handler registration for the FastAPI app.

Request ids are propagated into log records through the ``request_id``
context variable; service errors are serialised with their own status
code.
"""
from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from servicedesk.core.exceptions import BaseAppException
from servicedesk.core.logging import get_logger, request_id

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each incoming request.

    The id is reused from the incoming header when an upstream proxy set
    one, stored in ``request.state.request_id`` and echoed back.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        req_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = req_id
        token = request_id.set(req_id)
        try:
            response = await call_next(request)
        finally:
            request_id.reset(token)

        response.headers[self.header_name] = req_id
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that measures and logs request processing time.

    Adds X-Process-Time header to responses with the duration in seconds.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        logger.info(
            "Request completed",
            extra={
                "request_id": getattr(request.state, "request_id", "unknown"),
                "method": request.method,
                "url": str(request.url.path),
                "status_code": response.status_code,
                "process_time": f"{process_time:.4f}s",
            }
        )
        return response


async def app_exception_handler(request: Request, exc: BaseAppException) -> JSONResponse:
    """Translate service errors into ``{success: false, error: {...}}``."""
    if exc.status_code >= 500:
        logger.error(f"Request failed: {exc}", extra={"url": str(request.url.path)})
    else:
        logger.warning(
            f"Request returned error status {exc.status_code}: {exc}",
            extra={"url": str(request.url.path)},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, **exc.to_dict()},
    )


def register_middlewares(app: FastAPI) -> None:
    """
    Register core middlewares.

    Middlewares run in reverse order of registration, so the request id is
    assigned before timing logs the request.
    """
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAppException, app_exception_handler)
