"""Adjustment requests: make-up movements and case/unit conversions.

An adjustment is created ``pending`` and applied to the ledger only when it
is approved. Approval is all-or-nothing across its items and is dated at the
adjustment date, so snapshots from that date on are recomputed afterwards.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from stockledger.core.business_calendar import current_business_date
from stockledger.core.constants import (
    ADJUSTMENT_APPROVED,
    ADJUSTMENT_CONVERSION,
    ADJUSTMENT_MAKE_UP_INBOUND,
    ADJUSTMENT_MAKE_UP_OUTBOUND,
    ADJUSTMENT_PENDING,
    ADJUSTMENT_REJECTED,
    ADJUSTMENT_STATUSES,
    ADJUSTMENT_TYPES,
    AUDIT_CREATE,
    AUDIT_UPDATE,
    TX_ADJUSTMENT_IN,
    TX_ADJUSTMENT_OUT,
    TX_CONVERSION,
)
from stockledger.core.dates import utc_now
from stockledger.core.errors import ALREADY_PROCESSED, BusinessRuleViolation, NotFound, ValidationError
from stockledger.core.identity import Operator
from stockledger.models.adjustment import Adjustment, AdjustmentItem
from stockledger.models.product import Product
from stockledger.schemas.adjustment import AdjustmentCreate, AdjustmentItemCreate
from stockledger.services import notifications
from stockledger.services.audit_service import record_audit
from stockledger.services.catalog_service import get_store
from stockledger.services.costing import (
    BalanceState,
    MovementDelta,
    inbound_delta,
    outbound_delta,
    to_decimal,
)
from stockledger.services.ledger_service import get_balance, post_movement
from stockledger.services.movement_validator import ensure_outbound, validate_quantities

logger = logging.getLogger(__name__)


def _validate_conversion(item: AdjustmentItemCreate) -> None:
    pairs = (("from_case", "to_unit"), ("from_unit", "to_case"))
    present = 0
    for source, target in pairs:
        source_qty = getattr(item, source)
        target_qty = getattr(item, target)
        if source_qty < 0 or target_qty < 0:
            raise ValidationError("Conversion quantities must not be negative")
        if (source_qty == 0) != (target_qty == 0):
            raise ValidationError(
                "{} and {} must both be zero or both be positive".format(source, target)
            )
        if source_qty > 0:
            present += 1
    if not present:
        raise ValidationError("Conversion item needs at least one case/unit move")


def _validate_make_up_inbound(item: AdjustmentItemCreate) -> None:
    validate_quantities(item.quantity_case, item.quantity_unit)
    for quantity, cost, label in (
        (item.quantity_case, item.unit_cost_case, "unit_cost_case"),
        (item.quantity_unit, item.unit_cost_unit, "unit_cost_unit"),
    ):
        if not quantity:
            continue
        if cost is None:
            raise ValidationError("{} is required for make-up inbound".format(label))
        if to_decimal(cost) < 0:
            raise ValidationError("{} must not be negative".format(label))


def _validate_item(db: Session, adjustment_type: str, item: AdjustmentItemCreate) -> None:
    product = db.get(Product, item.product_id)
    if product is None:
        raise NotFound("Product {} not found".format(item.product_id))
    if not product.is_active:
        raise ValidationError("Product {} is inactive".format(product.sku))

    if adjustment_type == ADJUSTMENT_MAKE_UP_INBOUND:
        _validate_make_up_inbound(item)
    elif adjustment_type == ADJUSTMENT_MAKE_UP_OUTBOUND:
        validate_quantities(item.quantity_case, item.quantity_unit)
    else:
        _validate_conversion(item)


def create_adjustment(
    db: Session,
    command: AdjustmentCreate,
    operator: Operator,
    *,
    now: Optional[datetime] = None,
) -> Adjustment:
    if command.type not in ADJUSTMENT_TYPES:
        raise ValidationError("Unknown adjustment type: {}".format(command.type))
    store = get_store(db, command.store_id)
    if not store.is_active:
        raise ValidationError("Store {} is inactive".format(store.code))
    if not command.items:
        raise ValidationError("Adjustment needs at least one item")

    today = current_business_date(now)
    if command.adjustment_date > today:
        raise ValidationError(
            "Adjustment date {} is after the current business date {}".format(
                command.adjustment_date.isoformat(), today.isoformat()
            )
        )

    for item in command.items:
        _validate_item(db, command.type, item)

    adjustment = Adjustment(
        store_id=store.id,
        type=command.type,
        adjustment_date=command.adjustment_date,
        status=ADJUSTMENT_PENDING,
        reason=command.reason or "",
        created_by_id=operator.operator_id,
        created_by_name=operator.name,
    )
    adjustment.items = [
        AdjustmentItem(
            product_id=item.product_id,
            quantity_case=item.quantity_case,
            quantity_unit=item.quantity_unit,
            unit_cost_case=item.unit_cost_case,
            unit_cost_unit=item.unit_cost_unit,
            from_case=item.from_case,
            to_unit=item.to_unit,
            from_unit=item.from_unit,
            to_case=item.to_case,
            note=item.note,
        )
        for item in command.items
    ]
    db.add(adjustment)
    db.flush()
    record_audit(
        db,
        "adjustments",
        adjustment.id,
        AUDIT_CREATE,
        operator,
        new_value={
            "type": adjustment.type,
            "adjustment_date": adjustment.adjustment_date,
            "status": adjustment.status,
            "items": len(adjustment.items),
        },
    )
    logger.info(
        "Created %s adjustment %s",
        adjustment.type,
        adjustment.id,
        extra={"store_id": store.id, "business_date": adjustment.adjustment_date, "operator": operator.name},
    )
    return adjustment


def get_adjustment(db: Session, adjustment_id: int) -> Adjustment:
    adjustment = db.execute(
        select(Adjustment)
        .options(selectinload(Adjustment.items))
        .where(Adjustment.id == adjustment_id)
    ).scalars().first()
    if adjustment is None:
        raise NotFound("Adjustment {} not found".format(adjustment_id))
    return adjustment


def list_adjustments(
    db: Session,
    store_id: Optional[int] = None,
    status: Optional[str] = None,
) -> list[Adjustment]:
    if status is not None and status not in ADJUSTMENT_STATUSES:
        raise ValidationError("Unknown adjustment status: {}".format(status))
    stmt = select(Adjustment).options(selectinload(Adjustment.items))
    if store_id is not None:
        stmt = stmt.where(Adjustment.store_id == store_id)
    if status is not None:
        stmt = stmt.where(Adjustment.status == status)
    return list(db.execute(stmt.order_by(Adjustment.id.desc())).scalars().all())


def _transition(db: Session, adjustment: Adjustment, status: str, operator: Operator, now: datetime) -> None:
    result = db.execute(
        update(Adjustment)
        .where(Adjustment.id == adjustment.id, Adjustment.status == ADJUSTMENT_PENDING)
        .values(
            status=status,
            approved_by_id=operator.operator_id,
            approved_by_name=operator.name,
            approved_at=now,
        )
        .execution_options(synchronize_session="evaluate")
    )
    if result.rowcount != 1:
        raise BusinessRuleViolation(
            ALREADY_PROCESSED,
            "Adjustment {} has already been processed".format(adjustment.id),
        )


def _apply_conversion(db, adjustment, item, operator, now):
    balance = get_balance(db, adjustment.store_id, item.product_id, for_update=True)
    if balance is None:
        ensure_outbound(None, item.from_case, item.from_unit)
    state = BalanceState.of(balance)

    # (a) cases -> units first, so (b) may draw on the units it produced.
    if item.from_case:
        ensure_outbound(state, item.from_case, 0)
        state = BalanceState(
            state.quantity_case - item.from_case,
            state.quantity_unit + item.to_unit,
            state.total_cost_case,
            state.total_cost_unit,
        )
    if item.from_unit:
        ensure_outbound(state, 0, item.from_unit)

    delta = MovementDelta(
        quantity_case=item.to_case - item.from_case,
        quantity_unit=item.to_unit - item.from_unit,
    )
    return post_movement(
        db,
        adjustment.store_id,
        item.product_id,
        TX_CONVERSION,
        delta,
        operator,
        adjustment.adjustment_date,
        now=now,
        adjustment_id=adjustment.id,
        note=item.note,
        notify=False,
    )


def _apply_item(db: Session, adjustment: Adjustment, item: AdjustmentItem, operator: Operator, now: datetime):
    if adjustment.type == ADJUSTMENT_CONVERSION:
        return _apply_conversion(db, adjustment, item, operator, now)

    balance = get_balance(db, adjustment.store_id, item.product_id, for_update=True)
    state = BalanceState.of(balance)
    if adjustment.type == ADJUSTMENT_MAKE_UP_INBOUND:
        tx_type = TX_ADJUSTMENT_IN
        delta = inbound_delta(
            state,
            item.quantity_case,
            item.quantity_unit,
            item.unit_cost_case,
            item.unit_cost_unit,
        )
        unit_cost_case = item.unit_cost_case if item.quantity_case else None
        unit_cost_unit = item.unit_cost_unit if item.quantity_unit else None
    else:
        # Costed at today's running average, not the average on adjustment_date.
        ensure_outbound(balance, item.quantity_case, item.quantity_unit)
        tx_type = TX_ADJUSTMENT_OUT
        delta = outbound_delta(state, item.quantity_case, item.quantity_unit)
        unit_cost_case = state.avg_cost_case if item.quantity_case else None
        unit_cost_unit = state.avg_cost_unit if item.quantity_unit else None

    return post_movement(
        db,
        adjustment.store_id,
        item.product_id,
        tx_type,
        delta,
        operator,
        adjustment.adjustment_date,
        now=now,
        unit_cost_case=None if unit_cost_case is None else to_decimal(unit_cost_case),
        unit_cost_unit=None if unit_cost_unit is None else to_decimal(unit_cost_unit),
        adjustment_id=adjustment.id,
        note=item.note,
        notify=False,
    )


def approve_adjustment(
    db: Session,
    adjustment_id: int,
    operator: Operator,
    *,
    now: Optional[datetime] = None,
) -> Adjustment:
    adjustment = get_adjustment(db, adjustment_id)
    now = now or utc_now()
    _transition(db, adjustment, ADJUSTMENT_APPROVED, operator, now)

    for item in adjustment.items:
        _apply_item(db, adjustment, item, operator, now)

    product_ids = tuple(sorted({item.product_id for item in adjustment.items}))
    notifications.queue_event(
        db,
        notifications.AdjustmentApproved(adjustment.store_id, adjustment.adjustment_date, product_ids),
    )
    record_audit(
        db,
        "adjustments",
        adjustment.id,
        AUDIT_UPDATE,
        operator,
        old_value={"status": ADJUSTMENT_PENDING},
        new_value={"status": ADJUSTMENT_APPROVED},
    )
    logger.info(
        "Approved adjustment %s",
        adjustment.id,
        extra={
            "store_id": adjustment.store_id,
            "business_date": adjustment.adjustment_date,
            "operator": operator.name,
        },
    )
    return adjustment


def reject_adjustment(
    db: Session,
    adjustment_id: int,
    operator: Operator,
    *,
    now: Optional[datetime] = None,
) -> Adjustment:
    adjustment = get_adjustment(db, adjustment_id)
    _transition(db, adjustment, ADJUSTMENT_REJECTED, operator, now or utc_now())
    record_audit(
        db,
        "adjustments",
        adjustment.id,
        AUDIT_UPDATE,
        operator,
        old_value={"status": ADJUSTMENT_PENDING},
        new_value={"status": ADJUSTMENT_REJECTED},
    )
    logger.info("Rejected adjustment %s", adjustment.id, extra={"store_id": adjustment.store_id})
    return adjustment


__all__ = [
    "approve_adjustment",
    "create_adjustment",
    "get_adjustment",
    "list_adjustments",
    "reject_adjustment",
]
