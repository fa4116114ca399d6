from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.core.business_calendar import current_business_date
from stockledger.core.identity import Operator
from stockledger.dependencies import get_db, get_operator, get_session_factory, require_admin
from stockledger.schemas.snapshot import RecomputeRequest, RecomputeResult, SnapshotRead
from stockledger.services import catalog_service, snapshot_service
from stockledger.services.ledger_service import run_in_transaction

router = APIRouter(prefix="/snapshots", tags=["Snapshots"])


@router.get("", response_model=List[SnapshotRead])
def snapshots_by_date(
    store_id: int,
    business_date: Optional[date] = None,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_operator),
):
    catalog_service.get_store(db, store_id)
    return snapshot_service.snapshots_by_date(db, store_id, business_date or current_business_date())


def _recompute(db, payload: RecomputeRequest):
    catalog_service.get_store(db, payload.store_id)
    written = snapshot_service.retroactive_recompute(
        db, payload.from_date, payload.store_id, product_ids=payload.product_ids
    )
    return RecomputeResult(store_id=payload.store_id, snapshots_written=len(written))


def _rebuild(db, store_id: int):
    catalog_service.get_store(db, store_id)
    written = snapshot_service.rebuild_snapshots(db, store_id)
    return RecomputeResult(store_id=store_id, snapshots_written=len(written))


@router.post("/recompute", response_model=RecomputeResult)
def recompute(
    payload: RecomputeRequest,
    session_factory=Depends(get_session_factory),
    _operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, _recompute, payload)


@router.post("/rebuild/{store_id}", response_model=RecomputeResult)
def rebuild(
    store_id: int,
    session_factory=Depends(get_session_factory),
    _operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, _rebuild, store_id)
