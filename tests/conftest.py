from __future__ import annotations

import copy
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from counter_relay.adapters.keypair import SigningIdentity
from counter_relay.adapters.sui_rpc import BuiltTransaction, RpcResponseError
from counter_relay.app import create_app
from counter_relay.config import Settings
from counter_relay.context import RelayContext
from counter_relay.metrics import Metrics

PACKAGE_ID = "0xPKG"
COUNTER_TYPE = f"{PACKAGE_ID}::counter::Counter"
DIGEST = "9xQvTQy6hZ2J4u2sGMbxUecr1Pw1B3VxzUhT3bW1Q3mA"


def status_event(action: Any = b"INCREMENT", status: Any = b"OK", sender: str = "0xSENDER", **extra: Any) -> Dict[str, Any]:
    """
    A TxStatus event as a full node reports it. ``bytes`` fields become u8
    arrays; strings are kept as given (base64 or plain text).
    """
    if isinstance(action, bytes):
        action = list(action)
    if isinstance(status, bytes):
        status = list(status)
    event = {
        "id": {"txDigest": DIGEST, "eventSeq": "0"},
        "packageId": PACKAGE_ID,
        "transactionModule": "counter",
        "sender": sender,
        "type": f"{PACKAGE_ID}::counter::TxStatus",
        "parsedJson": {"action": action, "status": status, "sender": sender},
        "bcs": "3q2+7w==",
        "timestampMs": "1700000000000",
    }
    event.update(extra)
    return event


def tx_result(
    *,
    status: str = "success",
    error: Optional[str] = None,
    events: Optional[List[Dict[str, Any]]] = None,
    object_changes: Optional[List[Dict[str, Any]]] = None,
    digest: str = DIGEST,
) -> Dict[str, Any]:
    effects_status: Dict[str, Any] = {"status": status}
    if error is not None:
        effects_status["error"] = error
    return {
        "digest": digest,
        "effects": {"status": effects_status},
        "events": events if events is not None else [],
        "objectChanges": object_changes if object_changes is not None else [],
    }


class FakeSui:
    """
    Test double for counter_relay.adapters.sui_rpc.SuiRpc.

    Records every call and serves canned ledger responses:
    - ``result``: what wait_for_transaction / get_transaction_block return
    - ``objects``: object id -> {"type": ..., "value": ...}
    - ``failures``: method name -> exception to raise
    """

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.result: Dict[str, Any] = tx_result()
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.failures: Dict[str, BaseException] = {}
        self.module: Dict[str, Any] = {
            "structs": {"Counter": {}},
            "exposedFunctions": {"create": {}, "increment": {}, "reset": {}},
        }
        self.closed = False

    def _maybe_fail(self, name: str) -> None:
        exc = self.failures.get(name)
        if exc is not None:
            raise exc

    def calls_to(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    async def build_transaction(self, tx, sender: str) -> BuiltTransaction:
        self.calls.append(("build_transaction", tx.target, tx.json_arguments(), tx.gas_budget, tx.gas_price, sender))
        self._maybe_fail("build_transaction")
        tx.mark_submitted()
        return BuiltTransaction(
            tx_bytes=b"\x00\x01\x02\x03",
            gas_budget=tx.gas_budget or 100_000_000,
            gas_price=tx.gas_price,
        )

    async def execute_transaction(self, built: BuiltTransaction, signer, options=None) -> Dict[str, Any]:
        self.calls.append(("execute_transaction", built, signer.sign_transaction(built.tx_bytes)))
        self._maybe_fail("execute_transaction")
        return {"digest": self.result["digest"]}

    async def wait_for_transaction(self, digest: str, options=None, *, timeout_s: float = 60.0, poll_interval_s: float = 2.0):
        self.calls.append(("wait_for_transaction", digest, timeout_s, poll_interval_s))
        self._maybe_fail("wait_for_transaction")
        return copy.deepcopy(self.result)

    async def get_transaction_block(self, digest: str, options=None) -> Dict[str, Any]:
        self.calls.append(("get_transaction_block", digest))
        self._maybe_fail("get_transaction_block")
        return copy.deepcopy(self.result)

    async def get_object(self, object_id: str, options=None) -> Dict[str, Any]:
        self.calls.append(("get_object", object_id, dict(options or {})))
        self._maybe_fail("get_object")
        obj = self.objects.get(object_id)
        if obj is None:
            raise RpcResponseError(-32602, f"Object {object_id} not found")
        if options and options.get("showContent"):
            return {"data": {"objectId": object_id, "content": {"fields": {"value": obj.get("value")}}}}
        return {"data": {"objectId": object_id, "type": obj.get("type")}}

    async def get_normalized_move_module(self, package: str, module: str) -> Dict[str, Any]:
        self.calls.append(("get_normalized_move_module", package, module))
        self._maybe_fail("get_normalized_move_module")
        return self.module

    async def close(self) -> None:
        self.closed = True


# ----------------------------
# Core fixtures
# ----------------------------
@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        package_id=PACKAGE_ID,
        counter_id=None,
        sui_gas_budget=None,
        sui_gas_price=None,
        finality_timeout_s=1.0,
        finality_poll_interval_s=0.01,
    )


@pytest.fixture
def identity() -> SigningIdentity:
    return SigningIdentity.from_seed(bytes(range(32)))


@pytest.fixture
def fake_sui() -> FakeSui:
    return FakeSui()


@pytest.fixture
def make_ctx(identity: SigningIdentity, fake_sui: FakeSui) -> Callable[..., RelayContext]:
    """Build a RelayContext over the fake ledger, with fresh metrics."""

    def _make(settings: Settings) -> RelayContext:
        return RelayContext(settings=settings, identity=identity, sui=fake_sui, metrics=Metrics())

    return _make


@pytest.fixture
def ctx(make_ctx, settings: Settings) -> RelayContext:
    return make_ctx(settings)


# ----------------------------
# FastAPI application fixtures
# ----------------------------
@pytest.fixture
def app(settings: Settings, identity: SigningIdentity, fake_sui: FakeSui) -> FastAPI:
    return create_app(settings, sui=fake_sui, identity=identity)


@pytest.fixture
async def aclient(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """
    Async HTTP client bound to the ASGI app. Unhandled errors come back as the
    500 responses the error handlers produce instead of being re-raised.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
