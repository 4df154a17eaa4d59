from __future__ import annotations

import pytest

from conftest import DIGEST, status_event, tx_result
from counter_relay.adapters.sui_rpc import RpcTransportError
from counter_relay.adapters.transaction import Transaction
from counter_relay.services.executor import execute
from counter_relay.services.gas import GasParams


def _tx_count(ctx, function: str, outcome: str) -> float:
    value = ctx.metrics.registry.get_sample_value(
        "counter_transactions_total", {"function": function, "outcome": outcome}
    )
    return value or 0.0


@pytest.mark.asyncio
async def test_execute_applies_gas_and_waits_for_finality(ctx, fake_sui):
    fake_sui.result = tx_result(events=[status_event()])
    tx = Transaction.move_call("0xPKG::counter::increment")

    res = await execute(ctx, tx, GasParams(gas_budget=5000, gas_price=1000))

    [build] = fake_sui.calls_to("build_transaction")
    assert build[1:5] == ("0xPKG::counter::increment", [], 5000, 1000)
    assert build[5] == ctx.identity.address
    [wait] = fake_sui.calls_to("wait_for_transaction")
    assert wait == ("wait_for_transaction", DIGEST, 1.0, 0.01)

    assert res.digest == DIGEST
    assert res.succeeded
    assert res.gas.as_response() == {"gasBudget": 5000, "gasPrice": 1000}
    assert [e["action_decoded"] for e in res.tx_status_events] == ["INCREMENT"]
    assert _tx_count(ctx, "increment", "success") == 1


@pytest.mark.asyncio
async def test_execute_without_overrides_reports_no_gas(ctx, fake_sui):
    res = await execute(ctx, Transaction.move_call("0xPKG::counter::create"))
    assert res.gas.as_response() == {"gasBudget": None, "gasPrice": None}
    assert res.tx_status_events == []
    assert res.events == []


@pytest.mark.asyncio
async def test_failed_effects_are_returned_not_raised(ctx, fake_sui):
    fake_sui.result = tx_result(status="failure", error="MoveAbort(counter, 1)")
    res = await execute(ctx, Transaction.move_call("0xPKG::counter::reset"))
    assert not res.succeeded
    assert res.effects_status == "failure"
    assert res.effects_error == "MoveAbort(counter, 1)"
    assert _tx_count(ctx, "reset", "failure") == 1


@pytest.mark.asyncio
async def test_submission_errors_propagate_without_retry(ctx, fake_sui):
    fake_sui.failures["execute_transaction"] = RpcTransportError("connection reset")
    tx = Transaction.move_call("0xPKG::counter::increment")

    with pytest.raises(RpcTransportError):
        await execute(ctx, tx)

    assert len(fake_sui.calls_to("execute_transaction")) == 1
    assert fake_sui.calls_to("wait_for_transaction") == []
    assert tx.submitted
    assert _tx_count(ctx, "increment", "error") == 1
