from __future__ import annotations

"""
Access logging middleware.

One structured line per request with method, path, route template, status
and latency. Requests that raise are logged at error level and re-raised so
the error handlers still map them.

Install:
    from counter_relay.middleware.logging import install_access_log_middleware

    install_access_log_middleware(app)
"""

import time

import structlog
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

log = structlog.get_logger("access")


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    if route is None:
        return ""
    return getattr(route, "path_format", None) or getattr(route, "path", "") or ""


def _level_for_status(status: int) -> str:
    if status >= 500:
        return "error"
    if status >= 400:
        return "warning"
    return "info"


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception(
                "access",
                method=request.method,
                path=request.url.path,
                status=500,
                latency_ms=round((time.perf_counter() - start) * 1000, 3),
            )
            raise

        status = response.status_code
        getattr(log, _level_for_status(status))(
            "access",
            method=request.method,
            path=request.url.path,
            route=_route_template(request),
            status=status,
            latency_ms=round((time.perf_counter() - start) * 1000, 3),
            client_ip=request.client.host if request.client else "",
        )
        return response


def install_access_log_middleware(app: FastAPI) -> None:
    app.add_middleware(AccessLogMiddleware)


__all__ = ["AccessLogMiddleware", "install_access_log_middleware"]
