"""
JSON-RPC client for talking to a Sui full node.

This adapter is intentionally small. It provides:
- a retrying async JSON-RPC transport over HTTP(S)
- ergonomic methods for the endpoints the relay uses:
  * unsafe_moveCall                 (node-side transaction building)
  * sui_executeTransactionBlock     (submit signed bytes)
  * sui_getTransactionBlock         (lookup + finality polling)
  * sui_getObject
  * sui_getNormalizedMoveModule
- a helper to wait until a transaction is visible (finality)

Notes
-----
* Transaction bytes travel as base64 strings, as the node expects.
* Submission is never retried here: a transport failure while executing is
  surfaced to the caller as-is.
* Gas price is not a parameter of ``unsafe_moveCall``; when a descriptor carries
  a price override it is patched into the returned bytes (see
  :func:`counter_relay.adapters.transaction.patch_gas_price`). A failed patch is
  logged and the node's price is kept.
"""

from __future__ import annotations

import asyncio
import base64
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..logging import get_logger
from .keypair import SigningIdentity
from .transaction import Transaction, patch_gas_price

log = get_logger(__name__)

RESPONSE_OPTIONS = {"showEvents": True, "showEffects": True, "showObjectChanges": True}
REQUEST_TYPE = "WaitForLocalExecution"


# ----------------------------- Errors ---------------------------------------


class SuiRpcError(Exception):
    """Base class for all ledger RPC errors."""


class RpcTransportError(SuiRpcError):
    """Network/HTTP transport-level error."""


class RpcResponseError(SuiRpcError):
    """JSON-RPC error object returned from the node."""

    def __init__(self, code: int, message: str, data: Any | None = None):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


class FinalityTimeout(SuiRpcError):
    """The transaction did not become visible before the deadline."""


# ----------------------------- Helpers --------------------------------------


def _build_headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    hdrs = {
        "content-type": "application/json",
        "accept": "application/json",
    }
    if extra:
        hdrs.update(extra)
    return hdrs


@dataclass
class SuiRpcConfig:
    url: str
    timeout_s: float = 30.0
    max_retries: int = 2
    backoff_base_s: float = 0.25  # exponential backoff starting delay
    default_gas_budget: int = 100_000_000
    headers: Optional[Dict[str, str]] = None


@dataclass(frozen=True)
class BuiltTransaction:
    """Unsigned TransactionData bytes with the gas values they carry."""

    tx_bytes: bytes
    gas_budget: int
    gas_price: Optional[int] = None

    @property
    def tx_bytes_b64(self) -> str:
        return base64.b64encode(self.tx_bytes).decode("ascii")


# ----------------------------- Client ---------------------------------------


class SuiRpc:
    """
    Minimal async JSON-RPC client for a Sui full node.
    """

    def __init__(self, config: SuiRpcConfig, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._cfg = config
        self._transport = transport
        self._id = 0
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def url(self) -> str:
        return self._cfg.url

    # ---------- lifecycle ----------

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._cfg.url,
                timeout=self._cfg.timeout_s,
                headers=_build_headers(self._cfg.headers),
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SuiRpc":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ---------- core transport ----------

    async def _call(self, method: str, params: Optional[List[Any]] = None, *, retry: bool = True) -> Any:
        """
        Perform a single JSON-RPC call, retrying transport failures when allowed.
        """
        if self._client is None:
            await self.start()

        assert self._client is not None  # for type-checkers

        self._id += 1
        payload = {"jsonrpc": "2.0", "id": self._id, "method": method, "params": params or []}
        max_retries = self._cfg.max_retries if retry else 0

        attempt = 0
        while True:
            attempt += 1
            try:
                resp = await self._client.post("", json=payload)
                status = resp.status_code
                text = resp.content
                if status != 200:
                    raise RpcTransportError(f"HTTP {status}: {text[:256]!r}")
                data = json.loads(text)
                if data.get("error") is not None:
                    err = data["error"]
                    raise RpcResponseError(err.get("code", -32000), err.get("message", "Unknown error"), err.get("data"))
                return data.get("result")
            except (httpx.TimeoutException, httpx.TransportError, RpcTransportError) as exc:
                if attempt > max_retries:
                    raise RpcTransportError(f"RPC {method} failed after {attempt} attempts: {exc}") from exc
                delay = self._cfg.backoff_base_s * (2 ** (attempt - 1))
                log.debug("rpc_retry", method=method, attempt=attempt, delay_s=delay, error=str(exc))
                await asyncio.sleep(delay)

    # ---------- transactions ----------

    async def build_transaction(self, tx: Transaction, sender: str) -> BuiltTransaction:
        """
        Mark ``tx`` submitted and ask the node to build its TransactionData.
        """
        tx.mark_submitted()
        budget = tx.gas_budget or self._cfg.default_gas_budget
        result = await self._call(
            "unsafe_moveCall",
            [
                sender,
                tx.package,
                tx.module,
                tx.function,
                list(tx.type_arguments),
                tx.json_arguments(),
                None,  # gas object: let the node select one
                str(budget),
                None,
            ],
        )
        tx_bytes = base64.b64decode(result["txBytes"])

        price: Optional[int] = None
        if tx.gas_price is not None:
            try:
                tx_bytes = patch_gas_price(tx_bytes, price=tx.gas_price, budget=budget)
                price = tx.gas_price
            except (ValueError, OverflowError) as e:
                log.warning("gas_price_override_failed", price=tx.gas_price, error=str(e))
        return BuiltTransaction(tx_bytes=tx_bytes, gas_budget=budget, gas_price=price)

    async def execute_transaction(
        self,
        built: BuiltTransaction,
        signer: SigningIdentity,
        options: Optional[Dict[str, bool]] = None,
    ) -> Dict[str, Any]:
        signature = signer.sign_transaction(built.tx_bytes)
        return await self._call(
            "sui_executeTransactionBlock",
            [built.tx_bytes_b64, [signature], options or RESPONSE_OPTIONS, REQUEST_TYPE],
            retry=False,
        )

    async def get_transaction_block(self, digest: str, options: Optional[Dict[str, bool]] = None) -> Dict[str, Any]:
        return await self._call("sui_getTransactionBlock", [digest, options or RESPONSE_OPTIONS])

    async def wait_for_transaction(
        self,
        digest: str,
        options: Optional[Dict[str, bool]] = None,
        *,
        timeout_s: float = 60.0,
        poll_interval_s: float = 2.0,
    ) -> Dict[str, Any]:
        """
        Poll until the node can serve ``digest``; raise FinalityTimeout otherwise.
        """
        deadline = time.monotonic() + timeout_s
        while True:
            try:
                return await self.get_transaction_block(digest, options)
            except RpcResponseError as e:
                if time.monotonic() >= deadline:
                    raise FinalityTimeout(
                        f"Timed out waiting for transaction {digest} after {timeout_s}s: {e.message}"
                    ) from e
            await asyncio.sleep(poll_interval_s)

    # ---------- objects & modules ----------

    async def get_object(self, object_id: str, options: Optional[Dict[str, bool]] = None) -> Dict[str, Any]:
        return await self._call("sui_getObject", [object_id, options or {"showType": True}])

    async def get_normalized_move_module(self, package: str, module: str) -> Dict[str, Any]:
        return await self._call("sui_getNormalizedMoveModule", [package, module])


# ----------------------------- Factory --------------------------------------


def from_settings(settings: Any, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> SuiRpc:
    """
    Build a client from :class:`counter_relay.config.Settings`.
    """
    return SuiRpc(
        SuiRpcConfig(
            url=settings.rpc_url,
            timeout_s=settings.rpc_timeout_s,
            max_retries=settings.rpc_max_retries,
            default_gas_budget=settings.sui_default_gas_budget,
        ),
        transport=transport,
    )


__all__ = [
    "BuiltTransaction",
    "FinalityTimeout",
    "RESPONSE_OPTIONS",
    "RpcResponseError",
    "RpcTransportError",
    "SuiRpc",
    "SuiRpcConfig",
    "SuiRpcError",
    "from_settings",
]
