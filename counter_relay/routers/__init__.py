"""
Routers package: aggregates all HTTP routes into a single APIRouter.

Usage (from app factory):
    from counter_relay.routers import build_router
    app.include_router(build_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from . import counter, health, tx

ROUTERS = (health.router, counter.router, tx.router)


def build_router() -> APIRouter:
    root = APIRouter()
    for r in ROUTERS:
        root.include_router(r)
    return root


__all__ = ["ROUTERS", "build_router"]
