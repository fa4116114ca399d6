"""Append-only ledger and materialized balances.

Every stock change goes through ``apply_movement``, which holds the balance
row lock for the rest of the database transaction. Callers are expected to
run the write paths here through ``run_in_transaction`` so that conflicts
are retried and post-commit events are dispatched.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stockledger.config import get_settings
from stockledger.core.business_calendar import current_business_date
from stockledger.core.constants import (
    TX_CANCEL,
    TRANSACTION_TYPES,
    TX_INBOUND,
    TX_OUTBOUND,
)
from stockledger.core.dates import utc_now
from stockledger.core.errors import (
    ALREADY_CANCELLED,
    HAS_SUBSEQUENT_ACTIVITY,
    NOT_CANCELLABLE,
    OUTSIDE_CANCELLATION_WINDOW,
    BusinessRuleViolation,
    ConcurrencyConflict,
    NotFound,
    StorageUnavailable,
    ValidationError,
)
from stockledger.core.identity import Operator
from stockledger.models.inventory import InventoryBalance
from stockledger.models.product import Product
from stockledger.models.stores import Store
from stockledger.models.transaction import LedgerTransaction
from stockledger.schemas.movement import InboundCreate, OutboundCreate
from stockledger.services import notifications
from stockledger.services.costing import (
    BalanceState,
    MovementDelta,
    apply_delta,
    inbound_delta,
    outbound_delta,
    round_money,
    to_decimal,
)
from stockledger.services.movement_validator import ensure_outbound, validate_quantities

logger = logging.getLogger(__name__)


def get_balance(
    db: Session,
    store_id: int,
    product_id: int,
    *,
    for_update: bool = False,
) -> Optional[InventoryBalance]:
    stmt = select(InventoryBalance).where(
        InventoryBalance.store_id == store_id,
        InventoryBalance.product_id == product_id,
    )
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalars().first()


def ensure_active_target(db: Session, store_id: int, product_id: int) -> tuple[Store, Product]:
    store = db.get(Store, store_id)
    if store is None:
        raise NotFound("Store {} not found".format(store_id))
    if not store.is_active:
        raise ValidationError("Store {} is inactive".format(store.code))
    product = db.get(Product, product_id)
    if product is None:
        raise NotFound("Product {} not found".format(product_id))
    if not product.is_active:
        raise ValidationError("Product {} is inactive".format(product.sku))
    return store, product


def _store_state(balance: InventoryBalance, state: BalanceState) -> None:
    balance.quantity_case = state.quantity_case
    balance.quantity_unit = state.quantity_unit
    balance.total_cost_case = round_money(state.total_cost_case)
    balance.total_cost_unit = round_money(state.total_cost_unit)
    balance.avg_cost_case = round_money(state.avg_cost_case)
    balance.avg_cost_unit = round_money(state.avg_cost_unit)


def apply_movement(
    db: Session,
    store_id: int,
    product_id: int,
    delta_case: int,
    delta_unit: int,
    delta_cost_case=0,
    delta_cost_unit=0,
) -> InventoryBalance:
    balance = get_balance(db, store_id, product_id, for_update=True)
    delta = MovementDelta(
        quantity_case=delta_case,
        quantity_unit=delta_unit,
        cost_case=to_decimal(delta_cost_case),
        cost_unit=to_decimal(delta_cost_unit),
    )
    new_state = apply_delta(BalanceState.of(balance), delta)

    if balance is None:
        balance = InventoryBalance(store_id=store_id, product_id=product_id)
        db.add(balance)
    _store_state(balance, new_state)

    try:
        db.flush()
    except StaleDataError as exc:
        raise ConcurrencyConflict(
            "Balance for store {} product {} changed concurrently".format(store_id, product_id)
        ) from exc
    except IntegrityError as exc:
        raise ConcurrencyConflict(
            "Balance for store {} product {} was created concurrently".format(store_id, product_id)
        ) from exc
    return balance


def record_transaction(db: Session, entry: LedgerTransaction) -> int:
    db.add(entry)
    db.flush()
    return entry.id


def post_movement(
    db: Session,
    store_id: int,
    product_id: int,
    tx_type: str,
    delta: MovementDelta,
    operator: Operator,
    business_date: date,
    *,
    now: Optional[datetime] = None,
    unit_cost_case=None,
    unit_cost_unit=None,
    adjustment_id: Optional[int] = None,
    stocktake_id: Optional[int] = None,
    note: Optional[str] = None,
    notify: bool = True,
) -> LedgerTransaction:
    """Apply ``delta`` to the balance and append the matching ledger entry."""
    delta = delta.rounded()
    apply_movement(
        db,
        store_id,
        product_id,
        delta.quantity_case,
        delta.quantity_unit,
        delta.cost_case,
        delta.cost_unit,
    )
    entry = LedgerTransaction(
        store_id=store_id,
        product_id=product_id,
        type=tx_type,
        quantity_case=delta.quantity_case,
        quantity_unit=delta.quantity_unit,
        unit_cost_case=None if unit_cost_case is None else round_money(unit_cost_case),
        unit_cost_unit=None if unit_cost_unit is None else round_money(unit_cost_unit),
        cost_case=delta.cost_case,
        cost_unit=delta.cost_unit,
        total_cost=delta.total_cost,
        business_date=business_date,
        transaction_time=now or utc_now(),
        source=operator.source,
        operator_id=operator.operator_id,
        operator_name=operator.name,
        adjustment_id=adjustment_id,
        stocktake_id=stocktake_id,
        is_cancelled=False,
        note=note,
    )
    record_transaction(db, entry)
    if notify:
        notifications.queue_event(
            db, notifications.MovementCommitted(store_id, product_id, business_date)
        )
    logger.info(
        "Recorded %s %s case / %s unit",
        tx_type,
        delta.quantity_case,
        delta.quantity_unit,
        extra={
            "store_id": store_id,
            "product_id": product_id,
            "transaction_id": entry.id,
            "business_date": business_date,
            "operator": operator.name,
        },
    )
    return entry


def _priced(quantity: int, unit_cost):
    if not quantity:
        return None
    return round_money(unit_cost)


def post_inbound(
    db: Session,
    command: InboundCreate,
    operator: Operator,
    *,
    now: Optional[datetime] = None,
) -> LedgerTransaction:
    validate_quantities(command.quantity_case, command.quantity_unit)
    for label, value in (
        ("unit_cost_case", command.unit_cost_case),
        ("unit_cost_unit", command.unit_cost_unit),
    ):
        if value is not None and to_decimal(value) < 0:
            raise ValidationError("{} must not be negative".format(label))
    ensure_active_target(db, command.store_id, command.product_id)

    now = now or utc_now()
    balance = get_balance(db, command.store_id, command.product_id, for_update=True)
    state = BalanceState.of(balance)
    delta = inbound_delta(
        state,
        command.quantity_case,
        command.quantity_unit,
        command.unit_cost_case,
        command.unit_cost_unit,
    )
    unit_cost_case = state.avg_cost_case if command.unit_cost_case is None else command.unit_cost_case
    unit_cost_unit = state.avg_cost_unit if command.unit_cost_unit is None else command.unit_cost_unit
    return post_movement(
        db,
        command.store_id,
        command.product_id,
        TX_INBOUND,
        delta,
        operator,
        current_business_date(now),
        now=now,
        unit_cost_case=_priced(command.quantity_case, unit_cost_case),
        unit_cost_unit=_priced(command.quantity_unit, unit_cost_unit),
        note=command.note,
    )


def post_outbound(
    db: Session,
    command: OutboundCreate,
    operator: Operator,
    *,
    now: Optional[datetime] = None,
) -> LedgerTransaction:
    validate_quantities(command.quantity_case, command.quantity_unit)
    ensure_active_target(db, command.store_id, command.product_id)

    now = now or utc_now()
    balance = get_balance(db, command.store_id, command.product_id, for_update=True)
    ensure_outbound(balance, command.quantity_case, command.quantity_unit)
    state = BalanceState.of(balance)
    delta = outbound_delta(state, command.quantity_case, command.quantity_unit)
    return post_movement(
        db,
        command.store_id,
        command.product_id,
        TX_OUTBOUND,
        delta,
        operator,
        current_business_date(now),
        now=now,
        unit_cost_case=_priced(command.quantity_case, state.avg_cost_case),
        unit_cost_unit=_priced(command.quantity_unit, state.avg_cost_unit),
        note=command.note,
    )


def get_transaction(db: Session, transaction_id: int) -> LedgerTransaction:
    entry = db.get(LedgerTransaction, transaction_id)
    if entry is None:
        raise NotFound("Transaction {} not found".format(transaction_id))
    return entry


def _has_subsequent_activity(db: Session, entry: LedgerTransaction) -> bool:
    later = db.execute(
        select(LedgerTransaction.id)
        .where(
            LedgerTransaction.store_id == entry.store_id,
            LedgerTransaction.product_id == entry.product_id,
            LedgerTransaction.id > entry.id,
            LedgerTransaction.is_cancelled.is_(False),
            LedgerTransaction.type != TX_CANCEL,
        )
        .limit(1)
    ).first()
    return later is not None


def cancel_transaction(
    db: Session,
    transaction_id: int,
    operator: Operator,
    *,
    now: Optional[datetime] = None,
    note: Optional[str] = None,
) -> LedgerTransaction:
    original = db.execute(
        select(LedgerTransaction)
        .where(LedgerTransaction.id == transaction_id)
        .with_for_update()
    ).scalars().first()
    if original is None:
        raise NotFound("Transaction {} not found".format(transaction_id))
    if original.type == TX_CANCEL:
        raise BusinessRuleViolation(NOT_CANCELLABLE, "Cancellation entries cannot be cancelled")
    if original.adjustment_id is not None or original.stocktake_id is not None:
        # Workflow results are final once approved or completed.
        raise BusinessRuleViolation(
            NOT_CANCELLABLE,
            "Transaction {} was posted by an adjustment or stock take".format(transaction_id),
        )
    if original.is_cancelled:
        raise BusinessRuleViolation(
            ALREADY_CANCELLED, "Transaction {} is already cancelled".format(transaction_id)
        )

    now = now or utc_now()
    today = current_business_date(now)
    if original.business_date != today:
        raise BusinessRuleViolation(
            OUTSIDE_CANCELLATION_WINDOW,
            "Transaction {} belongs to business date {}; only {} can be cancelled".format(
                transaction_id, original.business_date.isoformat(), today.isoformat()
            ),
        )

    # Lock the balance before looking for later entries so nothing can slip in between.
    get_balance(db, original.store_id, original.product_id, for_update=True)
    if _has_subsequent_activity(db, original):
        raise BusinessRuleViolation(
            HAS_SUBSEQUENT_ACTIVITY,
            "Transaction {} is not the latest activity for this product".format(transaction_id),
        )

    reversal = MovementDelta(
        quantity_case=original.quantity_case,
        quantity_unit=original.quantity_unit,
        cost_case=to_decimal(original.cost_case),
        cost_unit=to_decimal(original.cost_unit),
    ).negated()
    cancel_entry = post_movement(
        db,
        original.store_id,
        original.product_id,
        TX_CANCEL,
        reversal,
        operator,
        today,
        now=now,
        unit_cost_case=original.unit_cost_case,
        unit_cost_unit=original.unit_cost_unit,
        note=note or "Cancel #{}".format(original.id),
    )
    cancel_entry.cancelled_transaction_id = original.id
    original.is_cancelled = True
    original.cancelled_by_id = cancel_entry.id
    db.flush()
    logger.info(
        "Cancelled transaction %s",
        original.id,
        extra={"store_id": original.store_id, "transaction_id": cancel_entry.id, "operator": operator.name},
    )
    return cancel_entry


def list_transactions(
    db: Session,
    store_id: int,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    product_id: Optional[int] = None,
    tx_type: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[LedgerTransaction]:
    settings = get_settings()
    if limit is None:
        limit = settings.TRANSACTION_LIST_LIMIT
    limit = max(1, min(int(limit), settings.TRANSACTION_LIST_MAX_LIMIT))

    stmt = select(LedgerTransaction).where(LedgerTransaction.store_id == store_id)
    if start_date is not None:
        stmt = stmt.where(LedgerTransaction.business_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(LedgerTransaction.business_date <= end_date)
    if product_id is not None:
        stmt = stmt.where(LedgerTransaction.product_id == product_id)
    if tx_type is not None:
        if tx_type not in TRANSACTION_TYPES:
            raise ValidationError("Unknown transaction type: {}".format(tx_type))
        stmt = stmt.where(LedgerTransaction.type == tx_type)
    stmt = stmt.order_by(LedgerTransaction.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def _is_lock_timeout(exc: OperationalError) -> bool:
    text = str(getattr(exc, "orig", exc)).lower()
    return "database is locked" in text or "lock wait timeout" in text or "deadlock" in text


def _attempt(db: Session, func, args, kwargs):
    try:
        result = func(db, *args, **kwargs)
        db.commit()
        return result
    except (StaleDataError, IntegrityError) as exc:
        raise ConcurrencyConflict("Concurrent write detected") from exc
    except OperationalError as exc:
        if _is_lock_timeout(exc):
            raise ConcurrencyConflict("Timed out waiting for a row lock") from exc
        raise StorageUnavailable("Storage is unavailable") from exc
    except InterfaceError as exc:
        raise StorageUnavailable("Storage is unavailable") from exc


def run_in_transaction(session_factory, func, *args, **kwargs):
    """Run ``func(db, *args, **kwargs)`` in its own committed transaction.

    ``ConcurrencyConflict`` is retried up to ``LEDGER_MAX_RETRIES`` attempts;
    anything else rolls back and propagates. Events queued by ``func`` are
    dispatched only after a successful commit.
    """
    attempts = max(1, int(get_settings().LEDGER_MAX_RETRIES))
    attempt = 0
    while True:
        attempt += 1
        db = session_factory()
        try:
            result = _attempt(db, func, args, kwargs)
            events = notifications.pop_events(db)
        except ConcurrencyConflict:
            db.rollback()
            notifications.discard_events(db)
            if attempt >= attempts:
                logger.warning("Giving up after %s conflicting attempts", attempt)
                raise
            logger.warning("Concurrency conflict on attempt %s/%s, retrying", attempt, attempts)
            continue
        except BaseException:
            db.rollback()
            notifications.discard_events(db)
            raise
        finally:
            db.close()

        notifications.dispatch(events, session_factory, now=kwargs.get("now"))
        return result


__all__ = [
    "apply_movement",
    "cancel_transaction",
    "ensure_active_target",
    "get_balance",
    "get_transaction",
    "list_transactions",
    "post_inbound",
    "post_movement",
    "post_outbound",
    "record_transaction",
    "run_in_transaction",
]
