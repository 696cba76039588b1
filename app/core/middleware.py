# app/core/middleware.py
from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.request_context import request_id_ctx

log = logging.getLogger("recipes_api.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags the request with an id (X-Request-ID) for every log line it causes."""

    async def dispatch(self, request: Request, call_next):
        token = request_id_ctx.set(request.headers.get("X-Request-ID") or uuid.uuid4().hex)
        started = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id_ctx.get()
            return response
        finally:
            log.info(
                "%s %s -> %s",
                request.method,
                request.url.path,
                response.status_code if response is not None else 500,
                extra={"elapsed_ms": round((time.perf_counter() - started) * 1000, 1)},
            )
            request_id_ctx.reset(token)
