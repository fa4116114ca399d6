import unittest
from datetime import date
from decimal import Decimal

from sqlalchemy import select

from stockledger.core.constants import STOCKTAKE_COMPLETED, STOCKTAKE_DRAFT, TX_STOCKTAKE
from stockledger.core.errors import (
    ALREADY_COMPLETED,
    INSUFFICIENT_CASE,
    NOT_CANCELLABLE,
    BusinessRuleViolation,
    NotFound,
    ValidationError,
)
from stockledger.models.transaction import LedgerTransaction
from stockledger.schemas.stocktake import StockTakeCreate, StockTakeItemCreate
from stockledger.services.ledger_service import cancel_transaction
from stockledger.services.stocktake_service import (
    complete_stocktake,
    create_stocktake,
    get_stocktake,
    list_stocktakes,
)
from tests.support import ADMIN, MANAGER, NOW, TODAY, LedgerTestCase


class StockTakeTestCase(LedgerTestCase):
    def count(self, *lines, stocktake_date=None):
        command = StockTakeCreate(
            store_id=self.store.id,
            stocktake_date=stocktake_date,
            items=[StockTakeItemCreate(**line) for line in lines],
        )
        stocktake = create_stocktake(self.db, command, MANAGER, now=NOW)
        self.db.commit()
        return stocktake

    def entries(self, stocktake_id):
        return self.db.execute(
            select(LedgerTransaction)
            .where(LedgerTransaction.stocktake_id == stocktake_id)
            .order_by(LedgerTransaction.id)
        ).scalars().all()


class CreateStockTakeTest(StockTakeTestCase):
    def test_captures_system_quantities_and_diff(self):
        self.inbound(case=10, unit=20, cost_case="100", cost_unit="5")
        stocktake = self.count({"product_id": self.product.id, "actual_case": 8, "actual_unit": 25})

        self.assertEqual(stocktake.status, STOCKTAKE_DRAFT)
        self.assertEqual(stocktake.stocktake_date, TODAY)
        self.assertEqual(stocktake.month, "2024-03")
        item = stocktake.items[0]
        self.assertEqual((item.system_case, item.system_unit), (10, 20))
        self.assertEqual((item.diff_case, item.diff_unit), (-2, 5))

    def test_product_without_balance_counts_from_zero(self):
        stocktake = self.count({"product_id": self.product.id, "actual_case": 3})
        item = stocktake.items[0]
        self.assertEqual((item.system_case, item.system_unit), (0, 0))
        self.assertEqual(item.diff_case, 3)

    def test_explicit_date_sets_month(self):
        stocktake = self.count(
            {"product_id": self.product.id, "actual_case": 1},
            stocktake_date=date(2024, 2, 29),
        )
        self.assertEqual(stocktake.month, "2024-02")
        self.assertEqual(len(list_stocktakes(self.db, self.store.id, month="2024-02")), 1)
        self.assertEqual(list_stocktakes(self.db, self.store.id, month="2024-03"), [])
        with self.assertRaises(ValidationError):
            list_stocktakes(self.db, self.store.id, month="2024-13")

    def test_duplicate_product_rejected(self):
        with self.assertRaises(ValidationError):
            self.count(
                {"product_id": self.product.id, "actual_case": 1},
                {"product_id": self.product.id, "actual_case": 2},
            )

    def test_negative_count_rejected(self):
        with self.assertRaises(ValidationError):
            self.count({"product_id": self.product.id, "actual_unit": -1})

    def test_empty_stocktake_rejected(self):
        with self.assertRaises(ValidationError):
            self.count()

    def test_unknown_product(self):
        with self.assertRaises(NotFound):
            self.count({"product_id": 999, "actual_case": 1})

    def test_unknown_stocktake(self):
        with self.assertRaises(NotFound):
            get_stocktake(self.db, 999)


class CompleteStockTakeTest(StockTakeTestCase):
    def test_diff_frozen_at_creation(self):
        self.inbound(case=10, unit=20, cost_case="100", cost_unit="5")
        stocktake = self.count({"product_id": self.product.id, "actual_case": 8, "actual_unit": 25})
        self.outbound(case=1)

        complete_stocktake(self.db, stocktake.id, ADMIN, now=NOW)

        balance = self.balance()
        self.assertEqual((balance.quantity_case, balance.quantity_unit), (7, 25))
        self.assertEqual(balance.total_cost_case, Decimal("700"))
        self.assertEqual(balance.total_cost_unit, Decimal("125"))

        entry = self.entries(stocktake.id)[0]
        self.assertEqual(entry.type, TX_STOCKTAKE)
        self.assertEqual(entry.business_date, TODAY)
        self.assertEqual((entry.quantity_case, entry.quantity_unit), (-2, 5))
        self.assertEqual(entry.cost_case, Decimal("-200"))
        self.assertEqual(entry.cost_unit, Decimal("25"))
        self.assertEqual(stocktake.status, STOCKTAKE_COMPLETED)
        self.assertEqual(stocktake.completed_by_name, ADMIN.name)

    def test_posted_entries_cannot_be_cancelled(self):
        self.inbound(case=10, cost_case="100")
        stocktake = self.count({"product_id": self.product.id, "actual_case": 9})
        complete_stocktake(self.db, stocktake.id, ADMIN, now=NOW)
        entry = self.entries(stocktake.id)[0]

        with self.assertRaises(BusinessRuleViolation) as ctx:
            cancel_transaction(self.db, entry.id, ADMIN, now=NOW)
        self.assertEqual(ctx.exception.code, NOT_CANCELLABLE)
        self.assertFalse(entry.is_cancelled)
        self.assertEqual(self.balance().quantity_case, 9)

    def test_counting_to_zero_empties_cost_pool(self):
        self.inbound(case=3, cost_case="3.3333")
        stocktake = self.count({"product_id": self.product.id, "actual_case": 0})
        complete_stocktake(self.db, stocktake.id, ADMIN, now=NOW)

        balance = self.balance()
        self.assertEqual(balance.quantity_case, 0)
        self.assertEqual(balance.total_cost_case, Decimal("0"))

    def test_zero_diff_items_are_skipped(self):
        other = self.add_product("p-200")
        self.inbound(case=2, cost_case="10")
        self.inbound(case=1, cost_case="7", product=other)
        stocktake = self.count(
            {"product_id": self.product.id, "actual_case": 2},
            {"product_id": other.id, "actual_case": 4},
        )
        complete_stocktake(self.db, stocktake.id, ADMIN, now=NOW)

        entries = self.entries(stocktake.id)
        self.assertEqual([entry.product_id for entry in entries], [other.id])
        self.assertEqual(self.balance(other).total_cost_case, Decimal("28"))

    def test_shortfall_beyond_balance_rejected(self):
        self.inbound(case=5, cost_case="10")
        stocktake = self.count({"product_id": self.product.id, "actual_case": 0})
        self.outbound(case=4)
        self.db.commit()

        with self.assertRaises(BusinessRuleViolation) as ctx:
            complete_stocktake(self.db, stocktake.id, ADMIN, now=NOW)
        self.assertEqual(ctx.exception.code, INSUFFICIENT_CASE)
        self.db.rollback()

        self.assertEqual(get_stocktake(self.db, stocktake.id).status, STOCKTAKE_DRAFT)
        self.assertEqual(self.balance().quantity_case, 1)

    def test_second_completion_fails(self):
        stocktake = self.count({"product_id": self.product.id, "actual_case": 1})
        complete_stocktake(self.db, stocktake.id, ADMIN, now=NOW)
        with self.assertRaises(BusinessRuleViolation) as ctx:
            complete_stocktake(self.db, stocktake.id, ADMIN, now=NOW)
        self.assertEqual(ctx.exception.code, ALREADY_COMPLETED)
        self.assertEqual(len(self.entries(stocktake.id)), 1)


if __name__ == "__main__":
    unittest.main()
