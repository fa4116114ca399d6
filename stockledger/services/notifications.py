"""Post-commit events.

Write paths queue events on the session; ``run_in_transaction`` hands them
to ``dispatch`` once the movement is durable. Snapshot and report failures
are logged here and never reach the caller.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from stockledger.services import report_service, snapshot_service

logger = logging.getLogger(__name__)

PENDING_EVENTS_KEY = "pending_events"


@dataclass(frozen=True)
class MovementCommitted:
    store_id: int
    product_id: int
    business_date: date


@dataclass(frozen=True)
class AdjustmentApproved:
    store_id: int
    from_date: date
    product_ids: tuple


def queue_event(db: Session, event) -> None:
    db.info.setdefault(PENDING_EVENTS_KEY, []).append(event)


def pop_events(db: Session) -> list:
    return db.info.pop(PENDING_EVENTS_KEY, [])


def discard_events(db: Session) -> None:
    db.info.pop(PENDING_EVENTS_KEY, None)


def _unique(events: Iterable) -> list:
    seen = set()
    ordered = []
    for event in events:
        if event in seen:
            continue
        seen.add(event)
        ordered.append(event)
    return ordered


def _handle_movement(db: Session, event: MovementCommitted) -> None:
    snapshot_service.recompute_snapshot(db, event.store_id, event.product_id, event.business_date)
    db.commit()
    report_service.export_daily_report(db, event.store_id, event.business_date)


def _handle_adjustment(db: Session, event: AdjustmentApproved, now: Optional[datetime]) -> None:
    touched = snapshot_service.retroactive_recompute(
        db,
        event.from_date,
        event.store_id,
        product_ids=list(event.product_ids),
        now=now,
    )
    db.commit()
    for business_date in sorted({snapshot.snapshot_date for snapshot in touched}):
        report_service.export_daily_report(db, event.store_id, business_date)


def dispatch(events, session_factory, *, now: Optional[datetime] = None) -> None:
    for event in _unique(events):
        db = session_factory()
        try:
            if isinstance(event, MovementCommitted):
                _handle_movement(db, event)
            elif isinstance(event, AdjustmentApproved):
                _handle_adjustment(db, event, now)
            else:
                logger.warning("Unknown post-commit event %r", event)
        except Exception:
            db.rollback()
            logger.exception(
                "Post-commit handling failed for %s",
                type(event).__name__,
                extra={"store_id": getattr(event, "store_id", None)},
            )
        finally:
            db.close()


__all__ = [
    "AdjustmentApproved",
    "MovementCommitted",
    "discard_events",
    "dispatch",
    "pop_events",
    "queue_event",
]
