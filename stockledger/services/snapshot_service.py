import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from stockledger.core.business_calendar import current_business_date, iter_business_dates
from stockledger.core.constants import (
    ADJUSTMENT_BUCKET_TYPES,
    INBOUND_BUCKET_TYPES,
    OUTBOUND_BUCKET_TYPES,
    TX_CANCEL,
    ZERO,
)
from stockledger.models.daily_snapshot import DailySnapshot
from stockledger.models.transaction import LedgerTransaction
from stockledger.services.costing import average_cost, round_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass
class _Bucket:
    case: int = 0
    unit: int = 0
    cost_case: Decimal = field(default=ZERO)
    cost_unit: Decimal = field(default=ZERO)

    def add(self, quantity_case, quantity_unit, cost_case, cost_unit) -> None:
        self.case += quantity_case
        self.unit += quantity_unit
        self.cost_case += cost_case
        self.cost_unit += cost_unit


def _counted(stmt):
    # A cancelled entry and its cancel entry cancel out; neither is reported.
    return stmt.where(
        LedgerTransaction.is_cancelled.is_(False),
        LedgerTransaction.type != TX_CANCEL,
    )


def _day_entries(db: Session, store_id: int, product_id: int, business_date: date):
    stmt = select(LedgerTransaction).where(
        LedgerTransaction.store_id == store_id,
        LedgerTransaction.product_id == product_id,
        LedgerTransaction.business_date == business_date,
    )
    return db.execute(_counted(stmt).order_by(LedgerTransaction.id)).scalars().all()


def _get_snapshot(db: Session, store_id: int, product_id: int, business_date: date):
    return db.execute(
        select(DailySnapshot).where(
            DailySnapshot.store_id == store_id,
            DailySnapshot.product_id == product_id,
            DailySnapshot.snapshot_date == business_date,
        )
    ).scalars().first()


def _ledger_total(
    db: Session,
    store_id: int,
    product_id: int,
    before: date,
    after: Optional[date] = None,
) -> _Bucket:
    stmt = select(
        func.coalesce(func.sum(LedgerTransaction.quantity_case), 0),
        func.coalesce(func.sum(LedgerTransaction.quantity_unit), 0),
        func.coalesce(func.sum(LedgerTransaction.cost_case), 0),
        func.coalesce(func.sum(LedgerTransaction.cost_unit), 0),
    ).where(
        LedgerTransaction.store_id == store_id,
        LedgerTransaction.product_id == product_id,
        LedgerTransaction.business_date < before,
    )
    if after is not None:
        stmt = stmt.where(LedgerTransaction.business_date > after)
    case, unit, cost_case, cost_unit = db.execute(_counted(stmt)).one()
    return _Bucket(int(case), int(unit), round_money(cost_case), round_money(cost_unit))


def _opening(db: Session, store_id: int, product_id: int, business_date: date) -> _Bucket:
    previous = db.execute(
        select(DailySnapshot)
        .where(
            DailySnapshot.store_id == store_id,
            DailySnapshot.product_id == product_id,
            DailySnapshot.snapshot_date < business_date,
        )
        .order_by(DailySnapshot.snapshot_date.desc())
        .limit(1)
    ).scalars().first()
    if previous is None:
        # Fold the whole ledger, which is zero for a new product.
        return _ledger_total(db, store_id, product_id, business_date)

    # Days between the snapshot and business_date may have no snapshot of their own.
    opening = _ledger_total(db, store_id, product_id, business_date, after=previous.snapshot_date)
    opening.add(
        previous.closing_case,
        previous.closing_unit,
        to_decimal(previous.closing_cost_case),
        to_decimal(previous.closing_cost_unit),
    )
    return opening


def recompute_snapshot(
    db: Session,
    store_id: int,
    product_id: int,
    business_date: date,
) -> DailySnapshot:
    opening = _opening(db, store_id, product_id, business_date)
    inbound = _Bucket()
    outbound = _Bucket()
    adjustment = _Bucket()

    for entry in _day_entries(db, store_id, product_id, business_date):
        cost_case = to_decimal(entry.cost_case)
        cost_unit = to_decimal(entry.cost_unit)
        if entry.type in INBOUND_BUCKET_TYPES:
            inbound.add(entry.quantity_case, entry.quantity_unit, cost_case, cost_unit)
        elif entry.type in OUTBOUND_BUCKET_TYPES:
            outbound.add(
                abs(entry.quantity_case),
                abs(entry.quantity_unit),
                abs(cost_case),
                abs(cost_unit),
            )
        elif entry.type in ADJUSTMENT_BUCKET_TYPES:
            adjustment.add(entry.quantity_case, entry.quantity_unit, cost_case, cost_unit)
        else:
            logger.warning("Ignoring ledger entry %s of type %s", entry.id, entry.type)

    closing = _Bucket(
        opening.case + inbound.case - outbound.case + adjustment.case,
        opening.unit + inbound.unit - outbound.unit + adjustment.unit,
        opening.cost_case + inbound.cost_case - outbound.cost_case + adjustment.cost_case,
        opening.cost_unit + inbound.cost_unit - outbound.cost_unit + adjustment.cost_unit,
    )

    snapshot = _get_snapshot(db, store_id, product_id, business_date)
    if snapshot is None:
        snapshot = DailySnapshot(
            store_id=store_id,
            product_id=product_id,
            snapshot_date=business_date,
        )
        db.add(snapshot)

    for prefix, bucket in (
        ("opening", opening),
        ("inbound", inbound),
        ("outbound", outbound),
        ("adjustment", adjustment),
        ("closing", closing),
    ):
        setattr(snapshot, prefix + "_case", bucket.case)
        setattr(snapshot, prefix + "_unit", bucket.unit)
        setattr(snapshot, prefix + "_cost_case", round_money(bucket.cost_case))
        setattr(snapshot, prefix + "_cost_unit", round_money(bucket.cost_unit))
    snapshot.avg_cost_case = round_money(average_cost(closing.cost_case, closing.case))
    snapshot.avg_cost_unit = round_money(average_cost(closing.cost_unit, closing.unit))

    db.flush()
    return snapshot


def active_product_ids(db: Session, store_id: int, up_to: Optional[date] = None) -> list[int]:
    stmt = select(LedgerTransaction.product_id).where(LedgerTransaction.store_id == store_id)
    if up_to is not None:
        stmt = stmt.where(LedgerTransaction.business_date <= up_to)
    stmt = stmt.distinct().order_by(LedgerTransaction.product_id)
    return [row[0] for row in db.execute(stmt).all()]


def retroactive_recompute(
    db: Session,
    from_date: date,
    store_id: int,
    *,
    product_ids: Optional[Iterable[int]] = None,
    now: Optional[datetime] = None,
) -> list[DailySnapshot]:
    """Recompute every business date from ``from_date`` through today.

    Dates are walked in order so each day's opening reads the closing just
    written for the day before.
    """
    today = current_business_date(now)
    if product_ids is None:
        targets = active_product_ids(db, store_id, today)
    else:
        targets = sorted(set(product_ids))

    written = []
    for business_date in iter_business_dates(from_date, today):
        for product_id in targets:
            written.append(recompute_snapshot(db, store_id, product_id, business_date))

    logger.info(
        "Recomputed %s snapshots from %s",
        len(written),
        from_date.isoformat(),
        extra={"store_id": store_id},
    )
    return written


def rebuild_snapshots(
    db: Session,
    store_id: int,
    *,
    now: Optional[datetime] = None,
) -> list[DailySnapshot]:
    db.execute(delete(DailySnapshot).where(DailySnapshot.store_id == store_id))
    db.flush()

    first_date = db.execute(
        select(func.min(LedgerTransaction.business_date)).where(
            LedgerTransaction.store_id == store_id
        )
    ).scalar()
    if first_date is None:
        return []
    return retroactive_recompute(db, first_date, store_id, now=now)


def snapshots_by_date(db: Session, store_id: int, business_date: date) -> list[DailySnapshot]:
    return list(
        db.execute(
            select(DailySnapshot)
            .where(
                DailySnapshot.store_id == store_id,
                DailySnapshot.snapshot_date == business_date,
            )
            .order_by(DailySnapshot.product_id)
        )
        .scalars()
        .all()
    )


__all__ = [
    "active_product_ids",
    "rebuild_snapshots",
    "recompute_snapshot",
    "retroactive_recompute",
    "snapshots_by_date",
]
