from __future__ import annotations

"""
Request ID middleware.

- Propagates an inbound **X-Request-Id** or generates one (uuid4 hex).
- Stores it on ``request.state.request_id`` for handlers and error bodies.
- Binds it into structlog's contextvars for the duration of the request so
  every log line emitted while serving carries it.
- Echoes it back in the response headers.
"""

import uuid
from typing import Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from ..logging import bind_request_context, clear_request_context

REQUEST_ID_HEADER = "X-Request-Id"
_MAX_INBOUND_LEN = 128


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header: str = REQUEST_ID_HEADER):
        super().__init__(app)
        self.header = header

    def _inbound(self, request: Request) -> Optional[str]:
        value = request.headers.get(self.header.lower())
        if value and len(value) <= _MAX_INBOUND_LEN:
            return value
        return None

    async def dispatch(self, request: Request, call_next):
        req_id = self._inbound(request) or uuid.uuid4().hex
        request.state.request_id = req_id

        bind_request_context(request_id=req_id, method=request.method, path=request.url.path)
        try:
            response: Response = await call_next(request)
        finally:
            clear_request_context("request_id", "method", "path")

        response.headers[self.header] = req_id
        return response


def install_request_id_middleware(app: FastAPI, *, header: str = REQUEST_ID_HEADER) -> None:
    app.add_middleware(RequestIdMiddleware, header=header)


__all__ = ["REQUEST_ID_HEADER", "RequestIdMiddleware", "install_request_id_middleware"]
