"""Weighted-average costing, one pool per unit dimension.

Everything here is pure ``Decimal`` arithmetic on immutable values. The case
and unit pools never exchange cost; a conversion moves quantity between them
at zero cost. Rounding happens once, when a value is about to be stored.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from stockledger.core.constants import MONEY_QUANTUM, ZERO
from stockledger.core.errors import (
    INSUFFICIENT_CASE,
    INSUFFICIENT_UNIT,
    BusinessRuleViolation,
    ValidationError,
)


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def average_cost(total, quantity: int) -> Decimal:
    if quantity <= 0:
        return ZERO
    return to_decimal(total) / Decimal(quantity)


def extended_cost(unit_cost, quantity: int) -> Decimal:
    return to_decimal(unit_cost) * Decimal(quantity)


def outbound_cost(total, quantity: int, request: int) -> Decimal:
    """Cost basis leaving a pool of ``quantity`` items worth ``total``.

    Taking the whole pool takes the whole total, so nothing is left behind
    by rounding.
    """
    if request < 0:
        raise ValidationError("Outbound request must not be negative")
    if request == 0 or quantity <= 0:
        return ZERO
    if request >= quantity:
        return to_decimal(total)
    return to_decimal(total) * Decimal(request) / Decimal(quantity)


@dataclass(frozen=True)
class BalanceState:
    quantity_case: int = 0
    quantity_unit: int = 0
    total_cost_case: Decimal = ZERO
    total_cost_unit: Decimal = ZERO

    @property
    def avg_cost_case(self) -> Decimal:
        return average_cost(self.total_cost_case, self.quantity_case)

    @property
    def avg_cost_unit(self) -> Decimal:
        return average_cost(self.total_cost_unit, self.quantity_unit)

    @classmethod
    def of(cls, balance) -> "BalanceState":
        if balance is None:
            return cls()
        return cls(
            quantity_case=int(balance.quantity_case or 0),
            quantity_unit=int(balance.quantity_unit or 0),
            total_cost_case=to_decimal(balance.total_cost_case),
            total_cost_unit=to_decimal(balance.total_cost_unit),
        )


@dataclass(frozen=True)
class MovementDelta:
    quantity_case: int = 0
    quantity_unit: int = 0
    cost_case: Decimal = ZERO
    cost_unit: Decimal = ZERO

    @property
    def total_cost(self) -> Decimal:
        return self.cost_case + self.cost_unit

    def negated(self) -> "MovementDelta":
        return MovementDelta(
            quantity_case=-self.quantity_case,
            quantity_unit=-self.quantity_unit,
            cost_case=-self.cost_case,
            cost_unit=-self.cost_unit,
        )

    def rounded(self) -> "MovementDelta":
        return MovementDelta(
            quantity_case=self.quantity_case,
            quantity_unit=self.quantity_unit,
            cost_case=round_money(self.cost_case),
            cost_unit=round_money(self.cost_unit),
        )


def apply_delta(state: BalanceState, delta: MovementDelta) -> BalanceState:
    quantity_case = state.quantity_case + delta.quantity_case
    quantity_unit = state.quantity_unit + delta.quantity_unit
    if quantity_case < 0:
        raise BusinessRuleViolation(
            INSUFFICIENT_CASE,
            "Case quantity would drop to {}".format(quantity_case),
        )
    if quantity_unit < 0:
        raise BusinessRuleViolation(
            INSUFFICIENT_UNIT,
            "Unit quantity would drop to {}".format(quantity_unit),
        )
    return BalanceState(
        quantity_case=quantity_case,
        quantity_unit=quantity_unit,
        total_cost_case=state.total_cost_case + delta.cost_case,
        total_cost_unit=state.total_cost_unit + delta.cost_unit,
    )


def inbound_delta(state: BalanceState, quantity_case: int, quantity_unit: int,
                  unit_cost_case=None, unit_cost_unit=None) -> MovementDelta:
    """Cost an inbound; a missing unit cost takes that pool's running average."""
    case_price = state.avg_cost_case if unit_cost_case is None else to_decimal(unit_cost_case)
    unit_price = state.avg_cost_unit if unit_cost_unit is None else to_decimal(unit_cost_unit)
    return MovementDelta(
        quantity_case=quantity_case,
        quantity_unit=quantity_unit,
        cost_case=extended_cost(case_price, quantity_case),
        cost_unit=extended_cost(unit_price, quantity_unit),
    )


def outbound_delta(state: BalanceState, quantity_case: int, quantity_unit: int) -> MovementDelta:
    return MovementDelta(
        quantity_case=-quantity_case,
        quantity_unit=-quantity_unit,
        cost_case=-outbound_cost(state.total_cost_case, state.quantity_case, quantity_case),
        cost_unit=-outbound_cost(state.total_cost_unit, state.quantity_unit, quantity_unit),
    )


def signed_delta(state: BalanceState, diff_case: int, diff_unit: int) -> MovementDelta:
    """Cost a signed correction (stock-take) at the current averages."""

    def _dimension(total, quantity, diff):
        if diff >= 0:
            return extended_cost(average_cost(total, quantity), diff)
        return -outbound_cost(total, quantity, -diff)

    return MovementDelta(
        quantity_case=diff_case,
        quantity_unit=diff_unit,
        cost_case=_dimension(state.total_cost_case, state.quantity_case, diff_case),
        cost_unit=_dimension(state.total_cost_unit, state.quantity_unit, diff_unit),
    )


__all__ = [
    "BalanceState",
    "MovementDelta",
    "apply_delta",
    "average_cost",
    "extended_cost",
    "inbound_delta",
    "outbound_cost",
    "outbound_delta",
    "round_money",
    "signed_delta",
    "to_decimal",
]
