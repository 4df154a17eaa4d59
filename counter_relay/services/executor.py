"""
Transaction executor: gas overrides → sign & submit → wait for finality →
TxStatus extraction.

Submission is at-most-once from the relay's side: exceptions raised while
building, submitting or waiting propagate to the caller and nothing is
retried. The finalized ledger response is returned untouched alongside the
normalized status events and the gas overrides that were actually applied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..adapters.sui_rpc import RESPONSE_OPTIONS
from ..adapters.transaction import Transaction
from ..context import RelayContext
from ..logging import get_logger
from .events import extract_tx_status
from .gas import GasParams, apply_gas

log = get_logger(__name__)


@dataclass
class ExecutionResult:
    result: Dict[str, Any]
    tx_status_events: List[Dict[str, Any]] = field(default_factory=list)
    gas: GasParams = field(default_factory=GasParams)

    @property
    def digest(self) -> Optional[str]:
        return self.result.get("digest")

    @property
    def events(self) -> List[Dict[str, Any]]:
        return self.result.get("events") or []

    @property
    def object_changes(self) -> List[Dict[str, Any]]:
        return self.result.get("objectChanges") or []

    @property
    def effects_status(self) -> Optional[str]:
        return ((self.result.get("effects") or {}).get("status") or {}).get("status")

    @property
    def effects_error(self) -> Optional[str]:
        return ((self.result.get("effects") or {}).get("status") or {}).get("error")

    @property
    def succeeded(self) -> bool:
        return self.effects_status == "success"


def _record(ctx: RelayContext, function: str, outcome: str) -> None:
    if ctx.metrics is not None:
        ctx.metrics.transactions_total.labels(function, outcome).inc()


async def execute(ctx: RelayContext, tx: Transaction, gas: Optional[GasParams] = None) -> ExecutionResult:
    applied = apply_gas(tx, gas or GasParams())

    log.info("tx_submitting", target=tx.target, sender=ctx.identity.address)
    try:
        built = await ctx.sui.build_transaction(tx, ctx.identity.address)
        submitted = await ctx.sui.execute_transaction(built, ctx.identity, RESPONSE_OPTIONS)
        digest = submitted["digest"]
        log.info("tx_submitted", digest=digest)

        status = await ctx.sui.wait_for_transaction(
            digest,
            RESPONSE_OPTIONS,
            timeout_s=ctx.settings.finality_timeout_s,
            poll_interval_s=ctx.settings.finality_poll_interval_s,
        )
    except Exception:
        _record(ctx, tx.function, "error")
        raise

    events = status.get("events")
    if isinstance(events, list) and events:
        log.info("tx_event_types", digest=digest, types=[e.get("type") for e in events if isinstance(e, dict)])
    else:
        log.info("tx_no_events", digest=digest)

    tx_status_events = extract_tx_status(events or [])
    if tx_status_events:
        log.info("tx_status_events", digest=digest, events=tx_status_events)
    else:
        log.info("tx_status_events_missing", digest=digest, looked_for="TxStatus")

    result = ExecutionResult(
        result=status,
        tx_status_events=tx_status_events,
        gas=GasParams(gas_budget=applied.gas_budget, gas_price=built.gas_price),
    )
    if result.succeeded:
        log.info("tx_success", digest=digest)
        _record(ctx, tx.function, "success")
    else:
        log.error("tx_failure", digest=digest, error=result.effects_error)
        _record(ctx, tx.function, "failure")
    return result


__all__ = ["ExecutionResult", "execute"]
