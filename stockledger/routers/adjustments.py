from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.core.identity import Operator
from stockledger.dependencies import (
    get_db,
    get_operator,
    get_session_factory,
    require_admin,
    require_writer,
)
from stockledger.schemas.adjustment import AdjustmentCreate, AdjustmentRead
from stockledger.services import adjustment_service
from stockledger.services.ledger_service import run_in_transaction

router = APIRouter(prefix="/adjustments", tags=["Adjustments"])


@router.get("", response_model=List[AdjustmentRead])
def list_adjustments(
    store_id: Optional[int] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_operator),
):
    return adjustment_service.list_adjustments(db, store_id=store_id, status=status)


@router.get("/{adjustment_id}", response_model=AdjustmentRead)
def get_adjustment(adjustment_id: int, db: Session = Depends(get_db), _operator: Operator = Depends(get_operator)):
    return adjustment_service.get_adjustment(db, adjustment_id)


@router.post("", response_model=AdjustmentRead, status_code=201)
def create_adjustment(
    payload: AdjustmentCreate,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_writer),
):
    return run_in_transaction(session_factory, adjustment_service.create_adjustment, payload, operator)


@router.post("/{adjustment_id}/approve", response_model=AdjustmentRead)
def approve_adjustment(
    adjustment_id: int,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, adjustment_service.approve_adjustment, adjustment_id, operator)


@router.post("/{adjustment_id}/reject", response_model=AdjustmentRead)
def reject_adjustment(
    adjustment_id: int,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, adjustment_service.reject_adjustment, adjustment_id, operator)
