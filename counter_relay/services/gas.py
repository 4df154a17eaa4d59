"""
Gas parameter resolution.

Each parameter resolves independently, first usable value wins:

    body (gasBudget, gas_budget) → query (gasBudget, gas_budget) → env default → absent

A value is usable when it is a positive integer that fits in a u64, or a
string / float that represents one ("5000", "5e3", 5000.0). Anything else counts as absent for
that source only. Absent parameters leave the choice to the ledger client.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Sequence

from ..adapters.transaction import U64_MAX, Transaction, TransactionStateError
from ..logging import get_logger

log = get_logger(__name__)

BUDGET_KEYS = ("gasBudget", "gas_budget")
PRICE_KEYS = ("gasPrice", "gas_price")
_U64_DIGITS = len(str(U64_MAX)) - 1


@dataclass(frozen=True)
class GasParams:
    gas_budget: Optional[int] = None
    gas_price: Optional[int] = None

    def as_response(self) -> Dict[str, Optional[int]]:
        return {"gasBudget": self.gas_budget, "gasPrice": self.gas_price}


def parse_gas_value(value: Any) -> Optional[int]:
    """Return ``value`` as a positive int, or None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 < value <= U64_MAX else None
    if isinstance(value, (float, str)):
        try:
            d = Decimal(str(value).strip())
        except InvalidOperation:
            return None
        # Exponent checked first: "1e3000000" must not be expanded
        if not d.is_finite() or d <= 0 or d.adjusted() > _U64_DIGITS:
            return None
        if d != d.to_integral_value():
            return None
        n = int(d)
        return n if n <= U64_MAX else None
    return None


def _first_usable(sources: Sequence[Optional[Mapping[str, Any]]], keys: Sequence[str], default: Any) -> Optional[int]:
    for src in sources:
        if not src:
            continue
        for key in keys:
            parsed = parse_gas_value(src.get(key))
            if parsed is not None:
                return parsed
    return parse_gas_value(default)


def resolve_gas(
    body: Optional[Mapping[str, Any]],
    query: Optional[Mapping[str, Any]],
    *,
    default_budget: Any = None,
    default_price: Any = None,
) -> GasParams:
    body = body if isinstance(body, Mapping) else None
    sources = (body, query)
    return GasParams(
        gas_budget=_first_usable(sources, BUDGET_KEYS, default_budget),
        gas_price=_first_usable(sources, PRICE_KEYS, default_price),
    )


def apply_gas(tx: Transaction, params: GasParams) -> GasParams:
    """
    Apply overrides to ``tx``; a rejected override is logged and skipped.
    Returns the overrides that were actually set.
    """
    budget = price = None
    if params.gas_budget is not None:
        try:
            tx.set_gas_budget(params.gas_budget)
            budget = params.gas_budget
            log.info("gas_budget_set", gas_budget=budget)
        except (TransactionStateError, ValueError) as e:
            log.warning("gas_budget_override_failed", gas_budget=params.gas_budget, error=str(e))
    if params.gas_price is not None:
        try:
            tx.set_gas_price(params.gas_price)
            price = params.gas_price
            log.info("gas_price_set", gas_price=price)
        except (TransactionStateError, ValueError) as e:
            log.warning("gas_price_override_failed", gas_price=params.gas_price, error=str(e))
    return GasParams(gas_budget=budget, gas_price=price)


__all__ = ["BUDGET_KEYS", "PRICE_KEYS", "GasParams", "apply_gas", "parse_gas_value", "resolve_gas"]
