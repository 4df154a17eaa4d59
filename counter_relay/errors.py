from __future__ import annotations

"""
API errors for the relay.

Handlers raise these; :mod:`counter_relay.middleware.errors` turns them into
JSON. Clients of the relay read ``error``, so every body carries it next to
the RFC 7807 members::

    {"error": "Missing COUNTER_ID", "type": "about:blank", "title": "Bad Request",
     "status": 400, "detail": "Missing COUNTER_ID", "code": "bad_request",
     "instance": "/increment", "request_id": "..."}

Ledger failures are not wrapped here; the adapters raise
:class:`counter_relay.adapters.sui_rpc.SuiRpcError` and the handlers map it.
:class:`StartupError` is separate: it aborts the process before serving.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

STATUS_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


@dataclass(eq=False)
class ApiError(Exception):
    message: str
    status_code: int = 400
    code: Optional[str] = "bad_request"
    details: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def to_problem(self, *, instance: str = "", request_id: str = "") -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "error": self.message,
            "type": "about:blank",
            "title": STATUS_TITLES.get(self.status_code, "Error"),
            "status": self.status_code,
            "detail": self.message,
            "instance": instance,
            "request_id": request_id,
        }
        if self.code:
            body["code"] = self.code
        if self.details:
            body["details"] = dict(self.details)
        return body

    @classmethod
    def from_unexpected(cls, err: BaseException) -> "ApiError":
        """Server error that keeps the underlying message visible to the caller."""
        return ServerError(str(err) or err.__class__.__name__, details={"exc_type": err.__class__.__name__})


class BadRequest(ApiError):
    def __init__(self, message: str = "Bad request", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=400, code="bad_request", details=details)


class ServerError(ApiError):
    def __init__(self, message: str = "Internal server error", *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message=message, status_code=500, code="server_error", details=details)


class StartupError(RuntimeError):
    """Fatal misconfiguration found before serving (signer, package id, network)."""


__all__ = ["ApiError", "BadRequest", "STATUS_TITLES", "ServerError", "StartupError"]
