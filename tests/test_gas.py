from __future__ import annotations

import pytest

from counter_relay.adapters.transaction import Transaction
from counter_relay.services.gas import (GasParams, apply_gas, parse_gas_value,
                                        resolve_gas)


@pytest.mark.parametrize(
    "value,expected",
    [
        (5000, 5000),
        ("5000", 5000),
        (" 5000 ", 5000),
        ("5e3", 5000),
        (5000.0, 5000),
        ("abc", None),
        ("", None),
        ("12.5", None),
        (0, None),
        (-1, None),
        (True, None),
        (None, None),
        ([5000], None),
        ("NaN", None),
        (str(2**64 - 1), 2**64 - 1),
        (str(2**64), None),
        (2**64, None),
        ("1e20", None),
        ("1e3000000", None),
        ("-1e3000000", None),
    ],
)
def test_parse_gas_value(value, expected):
    assert parse_gas_value(value) == expected


def test_body_beats_query_and_env():
    params = resolve_gas(
        {"gasBudget": "5000"},
        {"gasBudget": "4000", "gasPrice": "900"},
        default_budget="1000",
        default_price="750",
    )
    assert params == GasParams(gas_budget=5000, gas_price=900)


def test_snake_case_keys_are_accepted():
    params = resolve_gas({"gas_budget": 7000, "gas_price": 1200}, None)
    assert params == GasParams(gas_budget=7000, gas_price=1200)


def test_env_defaults_apply_when_request_is_silent():
    assert resolve_gas({}, {}, default_budget="1000", default_price=None) == GasParams(1000, None)


def test_nothing_configured_means_absent():
    assert resolve_gas(None, None) == GasParams(None, None)


def test_unusable_value_falls_through_to_next_source():
    params = resolve_gas({"gasBudget": "lots"}, {"gasBudget": "3000"}, default_budget="1000")
    assert params.gas_budget == 3000


def test_non_mapping_body_is_ignored():
    assert resolve_gas(["gasBudget"], {"gasPrice": "10"}).gas_price == 10  # type: ignore[arg-type]


def test_apply_gas_sets_overrides():
    tx = Transaction.move_call("0xPKG::counter::increment")
    applied = apply_gas(tx, GasParams(gas_budget=5000, gas_price=1000))
    assert (tx.gas_budget, tx.gas_price) == (5000, 1000)
    assert applied.as_response() == {"gasBudget": 5000, "gasPrice": 1000}


def test_apply_gas_after_submission_is_skipped():
    tx = Transaction.move_call("0xPKG::counter::increment")
    tx.mark_submitted()
    applied = apply_gas(tx, GasParams(gas_budget=5000))
    assert applied == GasParams(None, None)
    assert tx.gas_budget is None


def test_out_of_range_override_is_skipped():
    tx = Transaction.move_call("0xPKG::counter::increment")
    applied = apply_gas(tx, GasParams(gas_budget=2**64, gas_price=1000))
    assert applied == GasParams(gas_budget=None, gas_price=1000)
    assert tx.gas_budget is None
