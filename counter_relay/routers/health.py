from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from ..version import version_blob

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness check", response_model=None)
def health() -> Dict[str, Any]:
    """
    Simple liveness check: always returns 200 if the process is serving requests.
    """
    return {"ok": True}


@router.get("/version", summary="Service version", response_model=None)
def version() -> Dict[str, Any]:
    return version_blob()
