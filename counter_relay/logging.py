from __future__ import annotations

"""
Structured logging for the relay.

structlog events and plain stdlib records (uvicorn, httpx, ...) end up in one
stream handler and share a renderer: JSON lines in production, colored
key/value output with ``LOG_FORMAT=console``. Every event carries ``service``,
``level``, ``logger`` and an ISO timestamp, plus whatever is bound in the
contextvars store (the request middleware binds ``request_id``).

Signer secrets must never reach a log line. Keys that look like secrets
(``mnemonic``, ``private_key``, ``signature``, ...) are masked by a processor,
including inside nested dicts.

    from counter_relay.logging import setup_logging, get_logger

    setup_logging(level="DEBUG", log_format="console")
    log = get_logger(__name__)
    log.info("tx_submitted", digest=digest)

Environment fallbacks: LOG_LEVEL, LOG_FORMAT, LOG_INCLUDE_STACKTRACE.
"""

import logging
import os
from typing import IO, Any, Dict, List, Mapping, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.typing import Processor

SECRET_MARKERS = (
    "mnemonic",
    "private_key",
    "privatekey",
    "secret",
    "signature",
    "password",
    "authorization",
)
MASK = "***"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = {
    "asyncio": "WARNING",
    "httpcore": "WARNING",
    "httpx": "WARNING",
}
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _is_secret(key: Any) -> bool:
    k = str(key).lower()
    return any(marker in k for marker in SECRET_MARKERS)


def _mask(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: (MASK if _is_secret(k) and v is not None else _mask(v)) for k, v in value.items()}
    return value


def redact_secrets(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        if _is_secret(key) and value is not None:
            event_dict[key] = MASK
        elif isinstance(value, Mapping):
            event_dict[key] = _mask(value)
    return event_dict


def _add_service(service_name: str) -> Processor:
    def add_service(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def _shared_processors(service_name: str, include_stacktrace: bool) -> List[Processor]:
    chain: List[Processor] = [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if include_stacktrace:
        chain.append(structlog.processors.format_exc_info)
    chain += [redact_secrets, structlog.processors.UnicodeDecoder(), _add_service(service_name)]
    return chain


def _renderer(log_format: str) -> Processor:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)
    return structlog.processors.JSONRenderer(sort_keys=True)


def _env_flag(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


def setup_logging(
    *,
    service_name: str = "counter-relay",
    level: Optional[str | int] = None,
    log_format: Optional[str] = None,
    include_stacktrace: Optional[bool] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Configure structlog and route stdlib logging through the same renderer.

    ``level`` and ``log_format`` default to LOG_LEVEL / LOG_FORMAT, then to
    INFO / json. Stack traces are rendered for json output unless
    ``include_stacktrace`` (or LOG_INCLUDE_STACKTRACE) says otherwise; the
    console renderer prints exceptions itself. Output goes to ``stream``
    (stderr by default).
    """
    level = level or os.getenv("LOG_LEVEL") or "INFO"
    if isinstance(level, str):
        level = level.strip().upper()
    log_format = (log_format or os.getenv("LOG_FORMAT") or "json").strip().lower()
    if include_stacktrace is None:
        env = _env_flag("LOG_INCLUDE_STACKTRACE")
        include_stacktrace = (log_format == "json") if env is None else env

    shared = _shared_processors(service_name, include_stacktrace)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in UVICORN_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers[:] = [handler]
        lg.propagate = False
        lg.setLevel(level)

    for name, default in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(os.getenv(f"LOG_LEVEL_{name.upper()}", default))


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_request_context(**kv: Any) -> None:
    """Bind request-scoped values (request id, method, path) for every log line."""
    structlog.contextvars.bind_contextvars(**kv)


def clear_request_context(*keys: str) -> None:
    """Unbind ``keys``, or everything when none are given."""
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()


__all__ = [
    "bind_request_context",
    "clear_request_context",
    "get_logger",
    "redact_secrets",
    "setup_logging",
]
