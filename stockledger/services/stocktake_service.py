import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from stockledger.core.business_calendar import current_business_date
from stockledger.core.constants import (
    AUDIT_CREATE,
    AUDIT_UPDATE,
    STOCKTAKE_COMPLETED,
    STOCKTAKE_DRAFT,
    TX_STOCKTAKE,
)
from stockledger.core.dates import is_month_tag, month_tag, utc_now
from stockledger.core.errors import ALREADY_COMPLETED, BusinessRuleViolation, NotFound, ValidationError
from stockledger.core.identity import Operator
from stockledger.models.product import Product
from stockledger.models.stocktake import StockTake, StockTakeItem
from stockledger.schemas.stocktake import StockTakeCreate
from stockledger.services.audit_service import record_audit
from stockledger.services.catalog_service import get_store
from stockledger.services.costing import BalanceState, signed_delta
from stockledger.services.ledger_service import get_balance, post_movement
from stockledger.services.movement_validator import ensure_outbound

logger = logging.getLogger(__name__)


def create_stocktake(
    db: Session,
    command: StockTakeCreate,
    operator: Operator,
    *,
    now: Optional[datetime] = None,
) -> StockTake:
    store = get_store(db, command.store_id)
    if not store.is_active:
        raise ValidationError("Store {} is inactive".format(store.code))
    if not command.items:
        raise ValidationError("Stock-take needs at least one item")

    seen = set()
    items = []
    for line in command.items:
        if line.product_id in seen:
            raise ValidationError("Product {} is counted twice".format(line.product_id))
        seen.add(line.product_id)
        if line.actual_case < 0 or line.actual_unit < 0:
            raise ValidationError("Counted quantities must not be negative")
        if db.get(Product, line.product_id) is None:
            raise NotFound("Product {} not found".format(line.product_id))

        # System figures are frozen now; later movements do not change the diff.
        balance = get_balance(db, store.id, line.product_id)
        system_case = balance.quantity_case if balance is not None else 0
        system_unit = balance.quantity_unit if balance is not None else 0
        items.append(
            StockTakeItem(
                product_id=line.product_id,
                system_case=system_case,
                system_unit=system_unit,
                actual_case=line.actual_case,
                actual_unit=line.actual_unit,
                diff_case=line.actual_case - system_case,
                diff_unit=line.actual_unit - system_unit,
                note=line.note,
            )
        )

    stocktake_date = command.stocktake_date or current_business_date(now)
    stocktake = StockTake(
        store_id=store.id,
        stocktake_date=stocktake_date,
        month=month_tag(stocktake_date),
        status=STOCKTAKE_DRAFT,
        created_by_id=operator.operator_id,
        created_by_name=operator.name,
        note=command.note,
    )
    stocktake.items = items
    db.add(stocktake)
    db.flush()
    record_audit(
        db,
        "stock_takes",
        stocktake.id,
        AUDIT_CREATE,
        operator,
        new_value={"status": STOCKTAKE_DRAFT, "month": stocktake.month, "items": len(items)},
    )
    logger.info(
        "Created stock-take %s with %s items",
        stocktake.id,
        len(items),
        extra={"store_id": store.id, "operator": operator.name},
    )
    return stocktake


def get_stocktake(db: Session, stocktake_id: int) -> StockTake:
    stocktake = db.execute(
        select(StockTake)
        .options(selectinload(StockTake.items))
        .where(StockTake.id == stocktake_id)
    ).scalars().first()
    if stocktake is None:
        raise NotFound("Stock-take {} not found".format(stocktake_id))
    return stocktake


def list_stocktakes(db: Session, store_id: int, *, month: Optional[str] = None) -> list[StockTake]:
    stmt = (
        select(StockTake)
        .options(selectinload(StockTake.items))
        .where(StockTake.store_id == store_id)
    )
    if month:
        if not is_month_tag(month):
            raise ValidationError("month must look like YYYY-MM")
        stmt = stmt.where(StockTake.month == month.strip())
    return list(db.execute(stmt.order_by(StockTake.id.desc())).scalars().all())


def complete_stocktake(
    db: Session,
    stocktake_id: int,
    operator: Operator,
    *,
    now: Optional[datetime] = None,
) -> StockTake:
    stocktake = get_stocktake(db, stocktake_id)
    now = now or utc_now()
    result = db.execute(
        update(StockTake)
        .where(StockTake.id == stocktake.id, StockTake.status == STOCKTAKE_DRAFT)
        .values(
            status=STOCKTAKE_COMPLETED,
            completed_by_id=operator.operator_id,
            completed_by_name=operator.name,
            completed_at=now,
        )
        .execution_options(synchronize_session="evaluate")
    )
    if result.rowcount != 1:
        raise BusinessRuleViolation(
            ALREADY_COMPLETED, "Stock-take {} is already completed".format(stocktake.id)
        )

    today = current_business_date(now)
    applied = 0
    for item in stocktake.items:
        if not item.diff_case and not item.diff_unit:
            continue
        balance = get_balance(db, stocktake.store_id, item.product_id, for_update=True)
        shortfall_case = -item.diff_case if item.diff_case < 0 else 0
        shortfall_unit = -item.diff_unit if item.diff_unit < 0 else 0
        if shortfall_case or shortfall_unit:
            ensure_outbound(balance, shortfall_case, shortfall_unit)
        state = BalanceState.of(balance)
        post_movement(
            db,
            stocktake.store_id,
            item.product_id,
            TX_STOCKTAKE,
            signed_delta(state, item.diff_case, item.diff_unit),
            operator,
            today,
            now=now,
            unit_cost_case=state.avg_cost_case if item.diff_case else None,
            unit_cost_unit=state.avg_cost_unit if item.diff_unit else None,
            stocktake_id=stocktake.id,
            note=item.note,
        )
        applied += 1

    record_audit(
        db,
        "stock_takes",
        stocktake.id,
        AUDIT_UPDATE,
        operator,
        old_value={"status": STOCKTAKE_DRAFT},
        new_value={"status": STOCKTAKE_COMPLETED, "entries": applied},
    )
    logger.info(
        "Completed stock-take %s, %s corrections",
        stocktake.id,
        applied,
        extra={"store_id": stocktake.store_id, "business_date": today, "operator": operator.name},
    )
    return stocktake


__all__ = [
    "complete_stocktake",
    "create_stocktake",
    "get_stocktake",
    "list_stocktakes",
]
