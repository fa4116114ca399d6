import unittest
from decimal import Decimal

from stockledger.core.constants import SOURCE_CHANNEL, TX_INBOUND, TX_OUTBOUND
from stockledger.core.errors import (
    INSUFFICIENT_UNIT,
    NO_ACTIVE_SELECTION,
    BusinessRuleViolation,
    NotFound,
    ValidationError,
)
from stockledger.schemas.store import StoreCreate
from stockledger.services.catalog_service import create_store
from stockledger.services.channel_service import (
    DIRECTION_IN,
    DIRECTION_OUT,
    Selection,
    SelectionCache,
    channel_movement,
    movement_reply,
    select_product,
)
from tests.support import ADMIN, NOW, LedgerTestCase


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class SelectionCacheTest(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = SelectionCache(ttl_seconds=60, clock=self.clock)
        self.selection = Selection(store_id=1, product_id=2, sku="P-100", name="Green Tea")

    def test_entry_expires_after_ttl(self):
        self.cache.put(("group-1", "u1"), self.selection)
        self.clock.now += 59
        self.assertEqual(self.cache.get(("group-1", "u1")), self.selection)
        self.clock.now += 1
        self.assertIsNone(self.cache.get(("group-1", "u1")))
        self.assertEqual(len(self.cache), 0)

    def test_put_refreshes_expiry(self):
        self.cache.put(("group-1", "u1"), self.selection)
        self.clock.now += 50
        self.cache.put(("group-1", "u1"), self.selection)
        self.clock.now += 50
        self.assertIsNotNone(self.cache.get(("group-1", "u1")))

    def test_purge_and_evict(self):
        self.cache.put(("group-1", "u1"), self.selection)
        self.cache.put(("group-1", "u2"), self.selection)
        self.cache.evict(("group-1", "u2"))
        self.assertEqual(len(self.cache), 1)
        self.clock.now += 120
        self.assertEqual(self.cache.purge_expired(), 1)
        self.assertEqual(len(self.cache), 0)

    def test_put_drops_other_expired_entries(self):
        for user in ("u1", "u2", "u3"):
            self.cache.put(("group-1", user), self.selection)
        self.clock.now += 60
        self.cache.put(("group-1", "u4"), self.selection)
        self.assertEqual(len(self.cache), 1)
        self.assertEqual(self.cache.get(("group-1", "u4")), self.selection)


class ChannelMovementTest(LedgerTestCase):
    def setUp(self):
        super().setUp()
        self.clock = FakeClock()
        self.cache = SelectionCache(ttl_seconds=300, clock=self.clock)

    def test_select_by_barcode_then_post_inbound(self):
        self.inbound(unit=10, cost_unit="2")
        selection = select_product(self.db, "group-1", "u1", barcode="4710000000100", cache=self.cache)
        self.assertEqual(selection.sku, "P-100")

        entry = channel_movement(self.db, "group-1", "u1", DIRECTION_IN, 0, 5, now=NOW, cache=self.cache)

        self.assertEqual(entry.type, TX_INBOUND)
        self.assertEqual(entry.source, SOURCE_CHANNEL)
        self.assertEqual(entry.operator_name, "channel:u1")
        # No price in chat, so the running average is used.
        self.assertEqual(entry.unit_cost_unit, Decimal("2"))
        self.assertEqual(self.balance().total_cost_unit, Decimal("30"))
        self.assertEqual(movement_reply(entry, selection), "IN P-100 Green Tea: 0 case / 5 unit")

    def test_outbound_by_sku(self):
        self.inbound(unit=3, cost_unit="1")
        select_product(self.db, "group-1", "u1", sku="p-100", cache=self.cache)
        entry = channel_movement(
            self.db, "group-1", "u1", DIRECTION_OUT, 0, 2, now=NOW, cache=self.cache, display_name="Amy"
        )
        self.assertEqual(entry.type, TX_OUTBOUND)
        self.assertEqual(entry.operator_name, "Amy")
        self.assertEqual(self.balance().quantity_unit, 1)

        with self.assertRaises(BusinessRuleViolation) as ctx:
            channel_movement(self.db, "group-1", "u1", DIRECTION_OUT, 0, 2, now=NOW, cache=self.cache)
        self.assertEqual(ctx.exception.code, INSUFFICIENT_UNIT)

    def test_movement_without_selection(self):
        with self.assertRaises(BusinessRuleViolation) as ctx:
            channel_movement(self.db, "group-1", "u1", DIRECTION_IN, 1, 0, now=NOW, cache=self.cache)
        self.assertEqual(ctx.exception.code, NO_ACTIVE_SELECTION)

    def test_expired_selection(self):
        select_product(self.db, "group-1", "u1", sku="P-100", cache=self.cache)
        self.clock.now += 301
        with self.assertRaises(BusinessRuleViolation) as ctx:
            channel_movement(self.db, "group-1", "u1", DIRECTION_IN, 1, 0, now=NOW, cache=self.cache)
        self.assertEqual(ctx.exception.code, NO_ACTIVE_SELECTION)

    def test_selection_is_per_user(self):
        select_product(self.db, "group-1", "u1", sku="P-100", cache=self.cache)
        with self.assertRaises(BusinessRuleViolation):
            channel_movement(self.db, "group-1", "u2", DIRECTION_IN, 1, 0, now=NOW, cache=self.cache)

    def test_selection_from_rebound_channel_is_ignored(self):
        select_product(self.db, "group-1", "u1", sku="P-100", cache=self.cache)
        self.cache.put(
            ("group-2", "u1"),
            Selection(store_id=self.store.id, product_id=self.product.id, sku="P-100", name="Green Tea"),
        )
        create_store(self.db, StoreCreate(code="s02", name="Two", channel_id="group-2"), ADMIN)
        with self.assertRaises(BusinessRuleViolation) as ctx:
            channel_movement(self.db, "group-2", "u1", DIRECTION_IN, 1, 0, now=NOW, cache=self.cache)
        self.assertEqual(ctx.exception.code, NO_ACTIVE_SELECTION)

    def test_unbound_channel(self):
        with self.assertRaises(NotFound):
            select_product(self.db, "group-9", "u1", sku="P-100", cache=self.cache)

    def test_select_needs_sku_or_barcode(self):
        with self.assertRaises(ValidationError):
            select_product(self.db, "group-1", "u1", cache=self.cache)

    def test_unknown_direction(self):
        select_product(self.db, "group-1", "u1", sku="P-100", cache=self.cache)
        with self.assertRaises(ValidationError):
            channel_movement(self.db, "group-1", "u1", "sideways", 1, 0, now=NOW, cache=self.cache)


if __name__ == "__main__":
    unittest.main()
