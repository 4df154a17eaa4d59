from __future__ import annotations

"""
Diagnostic Routers

Endpoints:
  - GET /tx/{digest}    : effects status, event types, raw events and the
                          extracted TxStatus events of a transaction
  - GET /debug/module   : struct and function names of the counter module
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..context import RelayContext, get_context
from ..services import diagnostics

router = APIRouter(tags=["diagnostics"])


@router.get("/tx/{digest}", summary="Inspect a transaction", response_model=None)
async def get_tx(digest: str, ctx: RelayContext = Depends(get_context)) -> Dict[str, Any]:
    return await diagnostics.lookup_transaction(ctx, digest)


@router.get("/debug/module", summary="Describe the counter module", response_model=None)
async def get_module(ctx: RelayContext = Depends(get_context)) -> Dict[str, Any]:
    return await diagnostics.describe_module(ctx)
