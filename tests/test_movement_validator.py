import unittest

from stockledger.core.errors import (
    INSUFFICIENT_CASE,
    INSUFFICIENT_UNIT,
    NO_INVENTORY_RECORD,
    BusinessRuleViolation,
    ValidationError,
)
from stockledger.services.costing import BalanceState
from stockledger.services.movement_validator import (
    Admitted,
    Rejected,
    can_outbound,
    ensure_outbound,
    validate_quantities,
)


class CanOutboundTest(unittest.TestCase):
    def test_admits_covered_request(self):
        self.assertEqual(can_outbound(BalanceState(2, 5), 2, 5), Admitted())

    def test_cases_never_cover_units(self):
        decision = can_outbound(BalanceState(quantity_case=10, quantity_unit=0), 0, 1)
        self.assertEqual(decision, Rejected(INSUFFICIENT_UNIT))

    def test_units_never_cover_cases(self):
        decision = can_outbound(BalanceState(quantity_case=0, quantity_unit=240), 1, 0)
        self.assertEqual(decision, Rejected(INSUFFICIENT_CASE))

    def test_missing_balance(self):
        self.assertEqual(can_outbound(None, 1, 0), Rejected(NO_INVENTORY_RECORD))

    def test_ensure_outbound_raises_reason_code(self):
        with self.assertRaises(BusinessRuleViolation) as ctx:
            ensure_outbound(BalanceState(quantity_case=1), 2, 0)
        self.assertEqual(ctx.exception.code, INSUFFICIENT_CASE)


class ValidateQuantitiesTest(unittest.TestCase):
    def test_all_zero_is_invalid(self):
        with self.assertRaises(ValidationError):
            validate_quantities(0, 0)

    def test_negative_is_invalid(self):
        with self.assertRaises(ValidationError):
            validate_quantities(-1, 3)

    def test_single_dimension_is_enough(self):
        validate_quantities(0, 3)
        validate_quantities(1, 0)


if __name__ == "__main__":
    unittest.main()
