"""
Adapters for integrating the relay with the Sui ledger.

Thin, testable facades over external systems so the service layer can be
kept framework-agnostic:

- keypair      : signer identity (mnemonic / base64 secret → Ed25519 + address)
- transaction  : Move call descriptor with gas overrides, submitted at most once
- sui_rpc      : JSON-RPC client (build, execute, wait for finality, read objects)

Submodules are loaded lazily via PEP 562 (__getattr__).
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

__all__ = ["keypair", "transaction", "sui_rpc"]


def __getattr__(name: str):
    if name in __all__:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if TYPE_CHECKING:  # pragma: no cover
    from . import keypair as keypair
    from . import sui_rpc as sui_rpc
    from . import transaction as transaction
