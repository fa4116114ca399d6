import json
import unittest
from decimal import Decimal

from stockledger.core.constants import AUDIT_CREATE, AUDIT_DELETE, AUDIT_UPDATE
from stockledger.core.errors import NotFound, ValidationError
from stockledger.schemas.product import ProductCreate, ProductUpdate
from stockledger.schemas.store import StoreCreate, StoreUpdate
from stockledger.services.audit_service import list_audit_logs
from stockledger.services.catalog_service import (
    balances_by_store,
    canonical_code,
    create_product,
    create_store,
    deactivate_product,
    deactivate_store,
    get_product_by_barcode,
    get_product_by_sku,
    get_store_by_channel,
    list_stores,
    low_stock,
    search_products,
    update_product,
    update_store,
)
from tests.support import ADMIN, LedgerTestCase


class CanonicalCodeTest(unittest.TestCase):
    def test_uppercases_and_strips(self):
        self.assertEqual(canonical_code("  bev-001 "), "BEV-001")

    def test_blank_rejected(self):
        with self.assertRaises(ValidationError):
            canonical_code("   ")
        with self.assertRaises(ValidationError):
            canonical_code(None)


class StoreCatalogTest(LedgerTestCase):
    def test_store_code_is_canonical_and_unique(self):
        self.assertEqual(self.store.code, "S01")
        with self.assertRaises(ValidationError):
            create_store(self.db, StoreCreate(code="S01 ", name="Duplicate"), ADMIN)

    def test_channel_bound_to_one_store(self):
        with self.assertRaises(ValidationError):
            create_store(self.db, StoreCreate(code="s02", name="Two", channel_id="group-1"), ADMIN)

        second = create_store(self.db, StoreCreate(code="s02", name="Two"), ADMIN)
        with self.assertRaises(ValidationError):
            update_store(self.db, second.id, StoreUpdate(channel_id="group-1"), ADMIN)

    def test_lookup_by_channel_skips_inactive_store(self):
        self.assertEqual(get_store_by_channel(self.db, "group-1").id, self.store.id)
        deactivate_store(self.db, self.store.id, ADMIN)
        with self.assertRaises(NotFound):
            get_store_by_channel(self.db, "group-1")
        self.assertEqual(list_stores(self.db), [])
        self.assertEqual(len(list_stores(self.db, include_inactive=True)), 1)

    def test_changes_are_audited(self):
        update_store(self.db, self.store.id, StoreUpdate(name="Store Uno"), ADMIN)
        deactivate_store(self.db, self.store.id, ADMIN)

        logs = list_audit_logs(self.db, "stores", self.store.id)
        self.assertEqual([log.action for log in logs], [AUDIT_DELETE, AUDIT_UPDATE, AUDIT_CREATE])
        self.assertEqual(json.loads(logs[1].old_value)["name"], "Store One")
        self.assertEqual(json.loads(logs[1].new_value)["name"], "Store Uno")
        self.assertEqual(logs[0].operator_name, ADMIN.name)
        self.assertEqual(len(list_audit_logs(self.db, "stores", self.store.id, limit=1)), 1)
        self.assertEqual(list_audit_logs(self.db, "products", self.store.id + 1000), [])


class ProductCatalogTest(LedgerTestCase):
    def test_sku_lookup_is_case_insensitive(self):
        self.assertEqual(self.product.sku, "P-100")
        self.assertEqual(get_product_by_sku(self.db, "p-100").id, self.product.id)
        self.assertEqual(get_product_by_barcode(self.db, "4710000000100").id, self.product.id)
        with self.assertRaises(NotFound):
            get_product_by_barcode(self.db, "0000")

    def test_duplicate_sku_rejected(self):
        with self.assertRaises(ValidationError):
            create_product(self.db, ProductCreate(sku="P-100", name="Again"), ADMIN)

    def test_invalid_numbers_rejected(self):
        with self.assertRaises(ValidationError):
            create_product(self.db, ProductCreate(sku="x-1", name="X", units_per_case=0), ADMIN)
        with self.assertRaises(ValidationError):
            update_product(self.db, self.product.id, ProductUpdate(unit_price=Decimal("-1")), ADMIN)

    def test_search_matches_name_sku_and_barcode(self):
        self.add_product("snk-010", name="Rice Cracker", barcode="4710000000999")
        self.assertEqual([p.sku for p in search_products(self.db, "tea")], ["P-100"])
        self.assertEqual([p.sku for p in search_products(self.db, "snk")], ["SNK-010"])
        self.assertEqual([p.sku for p in search_products(self.db, "4710000000999")], ["SNK-010"])
        self.assertEqual(len(search_products(self.db)), 2)

    def test_inactive_product_cannot_move(self):
        deactivate_product(self.db, self.product.id, ADMIN)
        with self.assertRaises(ValidationError):
            self.inbound(case=1, cost_case="1")
        self.assertEqual(search_products(self.db, "tea"), [])


class LowStockTest(LedgerTestCase):
    def test_either_dimension_below_safety_stock(self):
        other = self.add_product("p-200", safety_stock_unit=3)
        self.inbound(case=6, unit=10, cost_case="1", cost_unit="1")
        self.inbound(unit=2, cost_unit="1", product=other)

        rows = low_stock(self.db, self.store.id)
        self.assertEqual([product.sku for _, product in rows], ["P-200"])

        self.outbound(unit=1)
        rows = low_stock(self.db)
        self.assertEqual([product.sku for _, product in rows], ["P-100", "P-200"])

    def test_balances_by_store(self):
        self.inbound(case=1, cost_case="1")
        balances = balances_by_store(self.db, self.store.id)
        self.assertEqual([balance.product_id for balance in balances], [self.product.id])
        with self.assertRaises(NotFound):
            balances_by_store(self.db, 999)


if __name__ == "__main__":
    unittest.main()
