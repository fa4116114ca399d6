import random
import unittest
from decimal import Decimal

from stockledger.core.errors import INSUFFICIENT_CASE, INSUFFICIENT_UNIT, BusinessRuleViolation
from stockledger.services.costing import (
    BalanceState,
    MovementDelta,
    apply_delta,
    average_cost,
    extended_cost,
    inbound_delta,
    outbound_cost,
    outbound_delta,
    round_money,
    signed_delta,
)


class AverageCostTest(unittest.TestCase):
    def test_outbound_keeps_average(self):
        state = BalanceState(quantity_case=150, total_cost_case=Decimal("1600"))
        after = apply_delta(state, outbound_delta(state, 30, 0))

        self.assertEqual(after.quantity_case, 120)
        self.assertEqual(after.total_cost_case, Decimal("1280"))
        self.assertEqual(round_money(after.avg_cost_case), Decimal("10.6667"))
        self.assertEqual(round_money(state.avg_cost_case), round_money(after.avg_cost_case))

    def test_mixed_inbound_weighted_average(self):
        state = apply_delta(BalanceState(), inbound_delta(BalanceState(), 100, 0, Decimal("10")))
        state = apply_delta(state, inbound_delta(state, 50, 0, Decimal("12")))

        self.assertEqual(state.quantity_case, 150)
        self.assertEqual(state.total_cost_case, Decimal("1600"))
        self.assertEqual(round_money(state.avg_cost_case), Decimal("10.6667"))

    def test_average_of_empty_pool_is_zero(self):
        self.assertEqual(average_cost(Decimal("12.5"), 0), Decimal("0"))

    def test_missing_unit_cost_takes_running_average(self):
        state = BalanceState(quantity_unit=4, total_cost_unit=Decimal("10"))
        delta = inbound_delta(state, 0, 2)
        self.assertEqual(delta.cost_unit, Decimal("5"))
        self.assertEqual(delta.cost_case, Decimal("0"))


class OutboundCostTest(unittest.TestCase):
    def test_emptying_the_pool_takes_whole_total(self):
        self.assertEqual(outbound_cost(Decimal("100"), 3, 3), Decimal("100"))

    def test_partial_cost_is_proportional(self):
        self.assertEqual(round_money(outbound_cost(Decimal("100"), 3, 1)), Decimal("33.3333"))

    def test_zero_request_costs_nothing(self):
        self.assertEqual(outbound_cost(Decimal("100"), 3, 0), Decimal("0"))

    def test_pools_are_independent(self):
        state = BalanceState(
            quantity_case=10,
            quantity_unit=10,
            total_cost_case=Decimal("500"),
            total_cost_unit=Decimal("30"),
        )
        after = apply_delta(state, outbound_delta(state, 2, 0))
        self.assertEqual(after.total_cost_unit, Decimal("30"))
        self.assertEqual(after.quantity_unit, 10)


class ApplyDeltaTest(unittest.TestCase):
    def test_negative_case_is_refused(self):
        with self.assertRaises(BusinessRuleViolation) as ctx:
            apply_delta(BalanceState(quantity_case=1), MovementDelta(quantity_case=-2))
        self.assertEqual(ctx.exception.code, INSUFFICIENT_CASE)

    def test_negative_unit_is_refused(self):
        with self.assertRaises(BusinessRuleViolation) as ctx:
            apply_delta(BalanceState(quantity_case=5), MovementDelta(quantity_unit=-1))
        self.assertEqual(ctx.exception.code, INSUFFICIENT_UNIT)

    def test_negated_delta_restores_state(self):
        state = BalanceState(3, 4, Decimal("30"), Decimal("8"))
        delta = MovementDelta(2, 1, Decimal("21.5"), Decimal("2"))
        self.assertEqual(apply_delta(apply_delta(state, delta), delta.negated()), state)

    def test_signed_delta_costs_corrections_at_average(self):
        state = BalanceState(quantity_case=4, total_cost_case=Decimal("10"))
        gain = signed_delta(state, 2, 0)
        loss = signed_delta(state, -4, 0)
        self.assertEqual(gain.cost_case, Decimal("5"))
        self.assertEqual(loss.cost_case, Decimal("-10"))


class RoundingTest(unittest.TestCase):
    def test_round_half_up(self):
        self.assertEqual(round_money(Decimal("1.00005")), Decimal("1.0001"))
        self.assertEqual(round_money(Decimal("-1.00005")), Decimal("-1.0001"))
        self.assertEqual(round_money(Decimal("2.00004")), Decimal("2.0000"))

    def test_extended_cost(self):
        self.assertEqual(extended_cost(Decimal("1.25"), 4), Decimal("5.00"))


class RandomSequenceTest(unittest.TestCase):
    def test_random_movements_never_go_negative(self):
        rng = random.Random(20240310)
        state = BalanceState()
        for _ in range(500):
            if rng.random() < 0.5:
                delta = inbound_delta(
                    state,
                    rng.randint(0, 5),
                    rng.randint(0, 5),
                    Decimal(rng.randint(1, 500)) / 10,
                    Decimal(rng.randint(1, 90)) / 10,
                )
            else:
                request_case = rng.randint(0, 6)
                request_unit = rng.randint(0, 6)
                if request_case > state.quantity_case or request_unit > state.quantity_unit:
                    with self.assertRaises(BusinessRuleViolation):
                        apply_delta(state, outbound_delta(state, request_case, request_unit))
                    continue
                delta = outbound_delta(state, request_case, request_unit)
            state = apply_delta(state, delta)

            self.assertGreaterEqual(state.quantity_case, 0)
            self.assertGreaterEqual(state.quantity_unit, 0)
            self.assertGreaterEqual(state.total_cost_case, 0)
            self.assertGreaterEqual(state.total_cost_unit, 0)
            if state.quantity_case == 0:
                self.assertEqual(state.total_cost_case, 0)
            if state.quantity_unit == 0:
                self.assertEqual(state.total_cost_unit, 0)


if __name__ == "__main__":
    unittest.main()
