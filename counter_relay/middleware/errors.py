from __future__ import annotations

"""
Exception → JSON error mappers for FastAPI.

Every error body carries ``error`` (the message a client should show) plus
RFC 7807 members (``type``, ``title``, ``status``, ``detail``, ``instance``)
and the request id when one was assigned:

- ApiError subclasses (counter_relay.errors)     → their own status
- SuiRpcError (ledger failures, finality timeout) → 500, underlying message
- Starlette/FastAPI HTTPException                → its status
- RequestValidationError                         → 422
- anything else                                  → 500, exception message

Stack traces are logged, never returned.
"""

from typing import Any, Dict

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..adapters.sui_rpc import SuiRpcError
from ..errors import STATUS_TITLES, ApiError

log = structlog.get_logger(__name__)


def _problem(request: Request, err: ApiError) -> Dict[str, Any]:
    return err.to_problem(
        instance=str(request.url.path),
        request_id=getattr(request.state, "request_id", "") or "",
    )


def _respond(request: Request, err: ApiError, **kwargs: Any) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content=jsonable_encoder(_problem(request, err)), **kwargs)


# --------------------------- Handlers ---------------------------


async def _handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    level = log.error if exc.status_code >= 500 else log.warning
    level("api_error", status=exc.status_code, code=exc.code, error=exc.message, path=request.url.path)
    return _respond(request, exc)


async def _handle_rpc_error(request: Request, exc: SuiRpcError) -> JSONResponse:
    log.error("rpc_error", exc_type=exc.__class__.__name__, error=str(exc), path=request.url.path)
    return _respond(request, ApiError(str(exc), status_code=500, code="rpc_error"))


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    status = int(exc.status_code)
    detail = str(exc.detail) if exc.detail else STATUS_TITLES.get(status, "Error")
    (log.warning if status < 500 else log.error)("http_exception", status=status, error=detail, path=request.url.path)
    return _respond(request, ApiError(detail, status_code=status, code=None), headers=getattr(exc, "headers", None))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.warning("validation_error", path=request.url.path)
    err = ApiError(
        "Request validation failed.",
        status_code=422,
        code="validation_error",
        details={"errors": exc.errors()},
    )
    return _respond(request, err)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    err = ApiError.from_unexpected(exc)
    log.exception("unhandled_exception", error=err.message, path=request.url.path)
    return _respond(request, err)


# --------------------------- Installer ---------------------------


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(SuiRpcError, _handle_rpc_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)


__all__ = ["install_error_handlers"]
