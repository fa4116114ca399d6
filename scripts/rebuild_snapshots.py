import argparse
import logging

from sqlalchemy import select

from stockledger.core.logging import setup_logging
from stockledger.database import SessionLocal, create_schema
from stockledger.models.stores import Store
from stockledger.services.ledger_service import run_in_transaction
from stockledger.services.snapshot_service import rebuild_snapshots

logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Drop and regenerate daily snapshots from the ledger.")
    parser.add_argument("--store", help="Store code; all stores when omitted.")
    return parser.parse_args()


def _store_ids(code=None):
    db = SessionLocal()
    try:
        stmt = select(Store.id).order_by(Store.id)
        if code:
            stmt = stmt.where(Store.code == code.strip().upper())
        return [row[0] for row in db.execute(stmt).all()]
    finally:
        db.close()


def main():
    setup_logging()
    args = parse_args()
    create_schema()

    store_ids = _store_ids(args.store)
    if not store_ids:
        print("No matching stores.")
        return
    for store_id in store_ids:
        written = run_in_transaction(SessionLocal, rebuild_snapshots, store_id)
        logger.info("Rebuilt %s snapshots", len(written), extra={"store_id": store_id})
    print("Rebuilt snapshots for {} store(s).".format(len(store_ids)))


if __name__ == "__main__":
    main()
