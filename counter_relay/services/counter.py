"""
Counter operations: create / increment / reset / value.

Each mutating operation builds a Move call against
``{PACKAGE_ID}::counter::<entry>``, resolves gas overrides from the request,
runs it through :func:`counter_relay.services.executor.execute`, and shapes a
JSON-ready dict. Responses always carry the digest, the gas overrides used,
the normalized TxStatus events and the raw events.

Creation detection is an ordered chain recorded in the response as
``detectedBy``:

1. ``object_change_type``  a ``created`` object change whose ``objectType``
                           ends with ``::counter::Counter``
2. ``object_lookup``       otherwise, fetch the type of every created object
                           and take the first match (lookup failures are
                           skipped)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..adapters.transaction import Transaction
from ..config import COUNTER_MODULE, COUNTER_STRUCT
from ..context import RelayContext
from ..errors import BadRequest
from ..logging import get_logger
from .executor import ExecutionResult, execute
from .gas import resolve_gas
from .outcome import best_effort

log = get_logger(__name__)

COUNTER_TYPE_SUFFIX = f"::{COUNTER_MODULE}::{COUNTER_STRUCT}"


@dataclass(frozen=True)
class CreationMatch:
    object_id: Optional[str]
    strategy: str  # "object_change_type" | "object_lookup" | "none"


def _target(ctx: RelayContext, entry: str) -> str:
    return f"{ctx.package_id}::{COUNTER_MODULE}::{entry}"


def _created(changes: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    return [c for c in changes if isinstance(c, Mapping) and c.get("type") == "created"]


def _match_by_change_type(changes: Iterable[Mapping[str, Any]]) -> Optional[str]:
    for c in _created(changes):
        if (c.get("objectType") or "").endswith(COUNTER_TYPE_SUFFIX):
            return c.get("objectId")
    return None


async def _match_by_lookup(ctx: RelayContext, changes: Iterable[Mapping[str, Any]]) -> Optional[str]:
    for c in _created(changes):
        object_id = c.get("objectId")
        if not object_id:
            continue
        outcome = await best_effort(f"get_object_type:{object_id}", ctx.sui.get_object, object_id, {"showType": True})
        if not outcome.ok:
            continue
        obj_type = ((outcome.value or {}).get("data") or {}).get("type") or c.get("objectType") or ""
        if obj_type.endswith(COUNTER_TYPE_SUFFIX):
            return object_id
    return None


async def detect_counter(ctx: RelayContext, changes: List[Mapping[str, Any]]) -> CreationMatch:
    found = _match_by_change_type(changes)
    if found:
        return CreationMatch(found, "object_change_type")
    found = await _match_by_lookup(ctx, changes)
    if found:
        return CreationMatch(found, "object_lookup")
    return CreationMatch(None, "none")


def resolve_counter_id(
    ctx: RelayContext,
    body: Optional[Mapping[str, Any]] = None,
    query: Optional[Mapping[str, Any]] = None,
) -> str:
    """Request body → query string → COUNTER_ID; raise BadRequest when none is set."""
    for src in (body, query):
        if isinstance(src, Mapping):
            value = src.get("counterId")
            if value:
                return str(value)
    if ctx.settings.counter_id:
        return ctx.settings.counter_id
    raise BadRequest("Missing COUNTER_ID")


async def fetch_value(ctx: RelayContext, counter_id: str) -> Any:
    obj = await ctx.sui.get_object(counter_id, {"showContent": True})
    fields = (((obj or {}).get("data") or {}).get("content") or {}).get("fields") or {}
    return fields.get("value")


def _debug_payload(res: ExecutionResult) -> Dict[str, Any]:
    return {
        **res.gas.as_response(),
        "txStatusEvents": res.tx_status_events,
        "events": res.events,
    }


def _gas_for(ctx: RelayContext, body: Optional[Mapping[str, Any]], query: Optional[Mapping[str, Any]]):
    return resolve_gas(
        body,
        query,
        default_budget=ctx.settings.sui_gas_budget,
        default_price=ctx.settings.sui_gas_price,
    )


# ---------- operations ----------


async def create_counter(
    ctx: RelayContext,
    body: Optional[Mapping[str, Any]] = None,
    query: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    tx = Transaction.move_call(_target(ctx, "create"))
    res = await execute(ctx, tx, _gas_for(ctx, body, query))

    match = await detect_counter(ctx, res.object_changes)
    if match.object_id:
        log.info("counter_created", counter_id=match.object_id, detected_by=match.strategy)
        return {
            "success": True,
            "counterId": match.object_id,
            "detectedBy": match.strategy,
            "digest": res.digest,
            **_debug_payload(res),
        }

    log.warning("counter_not_detected", digest=res.digest, effects_status=res.effects_status)
    return {
        "success": False,
        "message": "No counter created",
        "digest": res.digest,
        **_debug_payload(res),
    }


async def _mutate(
    ctx: RelayContext,
    entry: str,
    body: Optional[Mapping[str, Any]],
    query: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    counter_id = resolve_counter_id(ctx, body, query)
    tx = Transaction.move_call(_target(ctx, entry))
    tx.add_argument(tx.object(counter_id))
    res = await execute(ctx, tx, _gas_for(ctx, body, query))

    value = (await best_effort(f"get_counter_value:{counter_id}", fetch_value, ctx, counter_id)).value_or(None)
    return {
        "success": res.succeeded,
        "digest": res.digest,
        "value": value,
        "counterId": counter_id,
        "effectsStatus": res.effects_status,
        "effectsError": res.effects_error,
        **_debug_payload(res),
    }


async def increment_counter(
    ctx: RelayContext,
    body: Optional[Mapping[str, Any]] = None,
    query: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    return await _mutate(ctx, "increment", body, query)


async def reset_counter(
    ctx: RelayContext,
    body: Optional[Mapping[str, Any]] = None,
    query: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    return await _mutate(ctx, "reset", body, query)


async def read_value(ctx: RelayContext, query: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    counter_id = resolve_counter_id(ctx, None, query)
    return {"value": await fetch_value(ctx, counter_id)}


__all__ = [
    "COUNTER_TYPE_SUFFIX",
    "CreationMatch",
    "create_counter",
    "detect_counter",
    "fetch_value",
    "increment_counter",
    "read_value",
    "reset_counter",
    "resolve_counter_id",
]
