"""
Process-wide, immutable state handed to request handlers.

:func:`build_context` runs once at startup. It resolves the signer and checks
the package id and network, raising :class:`~counter_relay.errors.StartupError`
on anything unusable so the process can exit before serving. Handlers obtain
the context through the :func:`get_context` FastAPI dependency.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request

from .adapters.keypair import IdentityError, SigningIdentity, load_identity
from .adapters.sui_rpc import SuiRpc, from_settings
from .config import Settings
from .errors import StartupError


@dataclass(frozen=True)
class RelayContext:
    settings: Settings
    identity: SigningIdentity
    sui: Any  # SuiRpc or a compatible client
    metrics: Optional[Any] = None

    @property
    def package_id(self) -> str:
        return self.settings.package_id  # type: ignore[return-value]


def build_context(
    settings: Settings,
    *,
    sui: Optional[SuiRpc] = None,
    identity: Optional[SigningIdentity] = None,
) -> RelayContext:
    if identity is None:
        try:
            identity = load_identity(settings.sui_mnemonic, settings.sui_private_key)
        except IdentityError as e:
            raise StartupError(f"Failed to initialize keypair: {e}") from e

    if not settings.package_id:
        raise StartupError("Missing PACKAGE_ID")

    if sui is None:
        try:
            sui = from_settings(settings)
        except ValueError as e:
            raise StartupError(str(e)) from e

    return RelayContext(settings=settings, identity=identity, sui=sui)


def get_context(request: Request) -> RelayContext:
    return request.app.state.relay


__all__ = ["RelayContext", "build_context", "get_context"]
