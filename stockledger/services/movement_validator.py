from dataclasses import dataclass
from typing import Union

from stockledger.core.errors import (
    INSUFFICIENT_CASE,
    INSUFFICIENT_UNIT,
    NO_INVENTORY_RECORD,
    BusinessRuleViolation,
    ValidationError,
)


@dataclass(frozen=True)
class Admitted:
    pass


@dataclass(frozen=True)
class Rejected:
    reason: str


Decision = Union[Admitted, Rejected]


def validate_quantities(quantity_case, quantity_unit) -> None:
    for label, value in (("quantity_case", quantity_case), ("quantity_unit", quantity_unit)):
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("{} must be an integer".format(label))
        if value < 0:
            raise ValidationError("{} must not be negative".format(label))
    if not (quantity_case or 0) and not (quantity_unit or 0):
        raise ValidationError("At least one of quantity_case or quantity_unit must be positive")


def can_outbound(balance, request_case: int, request_unit: int) -> Decision:
    """Admit an outbound only if each dimension covers its own request.

    Cases never satisfy a unit request and units never satisfy a case request.
    """
    if balance is None:
        return Rejected(NO_INVENTORY_RECORD)
    if request_case > int(balance.quantity_case or 0):
        return Rejected(INSUFFICIENT_CASE)
    if request_unit > int(balance.quantity_unit or 0):
        return Rejected(INSUFFICIENT_UNIT)
    return Admitted()


def ensure_outbound(balance, request_case: int, request_unit: int) -> None:
    decision = can_outbound(balance, request_case, request_unit)
    if isinstance(decision, Rejected):
        available_case = getattr(balance, "quantity_case", 0) if balance is not None else 0
        available_unit = getattr(balance, "quantity_unit", 0) if balance is not None else 0
        raise BusinessRuleViolation(
            decision.reason,
            "Requested {} case / {} unit, available {} case / {} unit".format(
                request_case, request_unit, available_case, available_unit
            ),
        )


__all__ = [
    "Admitted",
    "Decision",
    "Rejected",
    "can_outbound",
    "ensure_outbound",
    "validate_quantities",
]
