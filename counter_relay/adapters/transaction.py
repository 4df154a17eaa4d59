"""
Transaction descriptor: one pending Move call plus optional gas overrides.

A :class:`Transaction` is a mutable builder until it is handed to the ledger
client, which calls :meth:`Transaction.mark_submitted`. From then on it is
frozen: a second submission or any further gas change raises
:class:`TransactionStateError`.

Arguments are either pure JSON values (``tx.pure(5)``) or references to
existing objects (``tx.object("0x...")``); both are sent to the node's
``unsafe_moveCall`` builder, which resolves object references itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union


class TransactionStateError(RuntimeError):
    """Raised when a descriptor is reused or changed after submission."""


@dataclass(frozen=True)
class PureArg:
    value: Any

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class ObjectArg:
    object_id: str

    def to_json(self) -> Any:
        return self.object_id


Argument = Union[PureArg, ObjectArg]

U64_MAX = 2**64 - 1


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    if value > U64_MAX:
        raise ValueError(f"{name} does not fit in u64")
    return value


@dataclass
class Transaction:
    package: str
    module: str
    function: str
    arguments: List[Argument] = field(default_factory=list)
    type_arguments: List[str] = field(default_factory=list)
    gas_budget: Optional[int] = None
    gas_price: Optional[int] = None
    _submitted: bool = field(default=False, repr=False)

    @classmethod
    def move_call(cls, target: str, arguments: Optional[List[Argument]] = None) -> "Transaction":
        """Build from a ``package::module::function`` target string."""
        parts = target.split("::")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Invalid Move call target {target!r}")
        return cls(package=parts[0], module=parts[1], function=parts[2], arguments=list(arguments or []))

    @property
    def target(self) -> str:
        return f"{self.package}::{self.module}::{self.function}"

    @property
    def submitted(self) -> bool:
        return self._submitted

    # ---------- builder ----------

    def pure(self, value: Any) -> PureArg:
        return PureArg(value)

    def object(self, object_id: str) -> ObjectArg:
        return ObjectArg(object_id)

    def _ensure_open(self) -> None:
        if self._submitted:
            raise TransactionStateError(f"Transaction {self.target} was already submitted")

    def add_argument(self, arg: Argument) -> None:
        self._ensure_open()
        self.arguments.append(arg)

    def set_gas_budget(self, budget: int) -> None:
        self._ensure_open()
        self.gas_budget = _positive_int("gas budget", budget)

    def set_gas_price(self, price: int) -> None:
        self._ensure_open()
        self.gas_price = _positive_int("gas price", price)

    def json_arguments(self) -> List[Any]:
        return [a.to_json() for a in self.arguments]

    def mark_submitted(self) -> None:
        self._ensure_open()
        self._submitted = True


# ---------- gas price patching ----------

_U64 = 8
_EXPIRATION_NONE = 0x00
_EXPIRATION_EPOCH = 0x01


def patch_gas_price(tx_bytes: bytes, *, price: int, budget: int) -> bytes:
    """
    Rewrite ``GasData.price`` inside BCS-encoded ``TransactionData``.

    ``TransactionData::V1`` ends with ``gas_data.price: u64``,
    ``gas_data.budget: u64`` and ``expiration`` (``None`` or ``Epoch(u64)``).
    The budget is used as an anchor: the layout is only accepted when the
    bytes in the budget slot equal ``budget``. Raises ValueError otherwise,
    or when ``price`` does not fit in a u64.
    """
    if not 0 < price <= U64_MAX:
        raise ValueError(f"gas price {price} does not fit in u64")
    candidates = []
    n = len(tx_bytes)
    # Epoch(u64): tag + 8 bytes
    if n >= 1 + _U64 + 2 * _U64 and tx_bytes[n - 1 - _U64] == _EXPIRATION_EPOCH:
        candidates.append(n - 1 - _U64)
    if n >= 1 + 2 * _U64 and tx_bytes[n - 1] == _EXPIRATION_NONE:
        candidates.append(n - 1)

    for budget_end in candidates:
        budget_start = budget_end - _U64
        price_start = budget_start - _U64
        if int.from_bytes(tx_bytes[budget_start:budget_end], "little") == budget:
            return (
                tx_bytes[:price_start]
                + int(price).to_bytes(_U64, "little")
                + tx_bytes[budget_start:]
            )
    raise ValueError("Could not locate gas data in transaction bytes")


__all__ = [
    "Argument",
    "ObjectArg",
    "PureArg",
    "Transaction",
    "TransactionStateError",
    "U64_MAX",
    "patch_gas_price",
]
