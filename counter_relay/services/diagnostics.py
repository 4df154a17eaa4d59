"""
Read-only diagnostics: transaction lookup by digest and counter module layout.
"""

from __future__ import annotations

from typing import Any, Dict

from ..adapters.sui_rpc import RESPONSE_OPTIONS
from ..config import COUNTER_MODULE
from ..context import RelayContext
from .events import extract_tx_status


async def lookup_transaction(ctx: RelayContext, digest: str) -> Dict[str, Any]:
    tx = await ctx.sui.get_transaction_block(digest, RESPONSE_OPTIONS)
    status = (tx.get("effects") or {}).get("status") or {}
    events = tx.get("events") or []
    return {
        "digest": digest,
        "effectsStatus": status.get("status"),
        "effectsError": status.get("error"),
        "eventTypes": [e.get("type") for e in events if isinstance(e, dict)],
        "events": events,
        "extractedTxStatus": extract_tx_status(events),
    }


async def describe_module(ctx: RelayContext) -> Dict[str, Any]:
    # build_context refuses to start without a package id
    package = ctx.package_id
    mod = await ctx.sui.get_normalized_move_module(package, COUNTER_MODULE)
    functions = mod.get("exposedFunctions")
    if functions is None:
        functions = mod.get("functions")
    return {
        "package": package,
        "module": COUNTER_MODULE,
        "structs": list((mod.get("structs") or {}).keys()),
        "functions": list((functions or {}).keys()),
    }


__all__ = ["describe_module", "lookup_transaction"]
