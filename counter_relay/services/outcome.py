"""
Best-effort side calls.

Some remote calls are optional for a request to succeed (re-reading a counter
after a mutation, per-object type lookups during creation detection). They go
through :func:`best_effort`, which never raises: the caller receives an
:class:`Outcome` holding either the value or the swallowed error, and decides
how to degrade (usually to ``None``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from ..logging import get_logger

T = TypeVar("T")

log = get_logger(__name__)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    label: str
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: Optional[T] = None) -> Optional[T]:
        return self.value if self.ok else default


async def best_effort(label: str, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> Outcome[T]:
    """Await ``fn(*args, **kwargs)``; log and capture any ``Exception``."""
    try:
        return Outcome(label=label, value=await fn(*args, **kwargs))
    except Exception as e:
        log.warning("best_effort_failed", call=label, error=str(e), exc_type=e.__class__.__name__)
        return Outcome(label=label, error=e)


__all__ = ["Outcome", "best_effort"]
