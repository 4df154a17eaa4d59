from __future__ import annotations

"""
Counter Routers

Endpoints:
  - POST /create     : create a counter object, return its id
  - POST /increment  : increment a counter (body/query `counterId` or COUNTER_ID)
  - POST /reset      : reset a counter
  - GET  /value      : read the current value (query `counterId` or COUNTER_ID)

Gas overrides are accepted on every POST, in the JSON body or the query string:
`gasBudget`/`gas_budget`, `gasPrice`/`gas_price`.

These endpoints are thin shims over `counter_relay.services.counter`; errors
are raised as ApiError / SuiRpcError and mapped by the error handlers.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request

from ..context import RelayContext, get_context
from ..services import counter

router = APIRouter(tags=["counter"])


@router.post("/create", summary="Create a counter", response_model=None)
async def post_create(
    request: Request,
    body: Optional[Dict[str, Any]] = Body(default=None),
    ctx: RelayContext = Depends(get_context),
) -> Dict[str, Any]:
    return await counter.create_counter(ctx, body, request.query_params)


@router.post("/increment", summary="Increment a counter", response_model=None)
async def post_increment(
    request: Request,
    body: Optional[Dict[str, Any]] = Body(default=None),
    ctx: RelayContext = Depends(get_context),
) -> Dict[str, Any]:
    return await counter.increment_counter(ctx, body, request.query_params)


@router.post("/reset", summary="Reset a counter to zero", response_model=None)
async def post_reset(
    request: Request,
    body: Optional[Dict[str, Any]] = Body(default=None),
    ctx: RelayContext = Depends(get_context),
) -> Dict[str, Any]:
    return await counter.reset_counter(ctx, body, request.query_params)


@router.get("/value", summary="Read a counter value", response_model=None)
async def get_value(request: Request, ctx: RelayContext = Depends(get_context)) -> Dict[str, Any]:
    return await counter.read_value(ctx, request.query_params)
