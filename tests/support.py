import unittest
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from stockledger.core.constants import ROLE_ADMIN, ROLE_STORE_MANAGER
from stockledger.core.identity import Operator
from stockledger.database.engine import build_engine, create_schema
from stockledger.database.session import build_session_factory
from stockledger.schemas.movement import InboundCreate, OutboundCreate
from stockledger.schemas.product import ProductCreate
from stockledger.schemas.store import StoreCreate
from stockledger.services.catalog_service import create_product, create_store
from stockledger.services.ledger_service import get_balance, post_inbound, post_outbound

TAIPEI = ZoneInfo("Asia/Taipei")


def local_time(year, month, day, hour=12, minute=0, second=0, microsecond=0):
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=TAIPEI)


TODAY = date(2024, 3, 10)
NOW = local_time(2024, 3, 10, 12)

ADMIN = Operator(operator_id=1, name="admin", role=ROLE_ADMIN)
MANAGER = Operator(operator_id=2, name="manager", role=ROLE_STORE_MANAGER)


def at(business_date: date, hour=12):
    return local_time(business_date.year, business_date.month, business_date.day, hour)


def memory_session_factory():
    engine = build_engine("sqlite:///:memory:")
    create_schema(bind=engine)
    return engine, build_session_factory(engine)


class LedgerTestCase(unittest.TestCase):
    def setUp(self):
        self.engine, self.Session = memory_session_factory()
        self.db = self.Session()
        self.store = create_store(
            self.db,
            StoreCreate(code="s01", name="Store One", channel_id="group-1"),
            ADMIN,
        )
        self.product = create_product(
            self.db,
            ProductCreate(
                sku="p-100",
                name="Green Tea",
                barcode="4710000000100",
                units_per_case=24,
                safety_stock_case=5,
                safety_stock_unit=10,
            ),
            ADMIN,
        )
        self.db.commit()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def add_product(self, sku, name="Other", **kwargs):
        product = create_product(self.db, ProductCreate(sku=sku, name=name, **kwargs), ADMIN)
        self.db.commit()
        return product

    def inbound(self, case=0, unit=0, cost_case=None, cost_unit=None, now=NOW, product=None):
        command = InboundCreate(
            store_id=self.store.id,
            product_id=(product or self.product).id,
            quantity_case=case,
            quantity_unit=unit,
            unit_cost_case=None if cost_case is None else Decimal(str(cost_case)),
            unit_cost_unit=None if cost_unit is None else Decimal(str(cost_unit)),
        )
        return post_inbound(self.db, command, MANAGER, now=now)

    def outbound(self, case=0, unit=0, now=NOW, product=None):
        command = OutboundCreate(
            store_id=self.store.id,
            product_id=(product or self.product).id,
            quantity_case=case,
            quantity_unit=unit,
        )
        return post_outbound(self.db, command, MANAGER, now=now)

    def balance(self, product=None):
        return get_balance(self.db, self.store.id, (product or self.product).id)
