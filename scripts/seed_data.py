import argparse
from decimal import Decimal

from sqlalchemy import delete, select

from stockledger.core.identity import SYSTEM_OPERATOR
from stockledger.core.logging import setup_logging
from stockledger.database import SessionLocal, create_schema
from stockledger.models import (
    Adjustment,
    AdjustmentItem,
    AuditLog,
    DailySnapshot,
    InventoryBalance,
    LedgerTransaction,
    Product,
    StockTake,
    StockTakeItem,
    Store,
)
from stockledger.schemas.movement import InboundCreate
from stockledger.schemas.product import ProductCreate
from stockledger.schemas.store import StoreCreate
from stockledger.services.catalog_service import create_product, create_store
from stockledger.services.ledger_service import post_inbound, run_in_transaction


def parse_args():
    parser = argparse.ArgumentParser(description="Seed sample stores, products and opening stock.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear existing data before seeding.",
    )
    return parser.parse_args()


def _reset(db):
    for model in (
        DailySnapshot,
        AuditLog,
        StockTakeItem,
        StockTake,
        LedgerTransaction,
        AdjustmentItem,
        Adjustment,
        InventoryBalance,
        Product,
        Store,
    ):
        db.execute(delete(model))
    db.commit()


def _seed_catalog(db):
    stores = [
        create_store(db, StoreCreate(code="TPE01", name="Taipei Main", address="Zhongshan Rd"), SYSTEM_OPERATOR),
        create_store(db, StoreCreate(code="TPE02", name="Taipei East", channel_id="group-tpe02"), SYSTEM_OPERATOR),
    ]
    products = [
        create_product(
            db,
            ProductCreate(
                sku="BEV-001",
                name="Oolong Tea 600ml",
                barcode="4710001000012",
                category="beverage",
                units_per_case=24,
                unit_price=Decimal("25"),
                safety_stock_case=5,
                safety_stock_unit=12,
            ),
            SYSTEM_OPERATOR,
        ),
        create_product(
            db,
            ProductCreate(
                sku="SNK-010",
                name="Rice Cracker",
                barcode="4710001000104",
                category="snack",
                units_per_case=12,
                unit_price=Decimal("40"),
                safety_stock_case=2,
            ),
            SYSTEM_OPERATOR,
        ),
    ]
    return [store.id for store in stores], [product.id for product in products]


def main():
    setup_logging()
    args = parse_args()

    create_schema()

    db = SessionLocal()
    try:
        if args.reset:
            _reset(db)

        has_store = db.execute(select(Store.id).limit(1)).first()
        if has_store:
            print("Seed skipped: stores already exist.")
            return
    finally:
        db.close()

    store_ids, product_ids = run_in_transaction(SessionLocal, _seed_catalog)
    for store_id in store_ids:
        for product_id in product_ids:
            run_in_transaction(
                SessionLocal,
                post_inbound,
                InboundCreate(
                    store_id=store_id,
                    product_id=product_id,
                    quantity_case=10,
                    quantity_unit=6,
                    unit_cost_case=Decimal("480"),
                    unit_cost_unit=Decimal("20"),
                    note="Opening stock",
                ),
                SYSTEM_OPERATOR,
            )
    print("Seed data created.")


if __name__ == "__main__":
    main()
