"""
counter_relay.services
======================

Service layer used by the routers. Submodules are imported lazily.

Public submodules
-----------------
- gas          : gas override resolution (body → query → env) and application
- events       : TxStatus event selection and field decoding
- executor     : sign, submit, wait for finality, normalize events
- counter      : create / increment / reset / value operations
- diagnostics  : transaction lookup and module description
- outcome      : best-effort wrapper for optional remote calls
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

__all__ = ["gas", "events", "executor", "counter", "diagnostics", "outcome"]


def __getattr__(name: str):
    if name in __all__:
        return import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if TYPE_CHECKING:  # pragma: no cover
    from . import counter as counter
    from . import diagnostics as diagnostics
    from . import events as events
    from . import executor as executor
    from . import gas as gas
    from . import outcome as outcome
