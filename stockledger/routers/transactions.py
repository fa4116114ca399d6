from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.core.identity import Operator
from stockledger.dependencies import get_db, get_operator, get_session_factory, require_writer
from stockledger.schemas.transaction import CancelRequest, TransactionRead
from stockledger.services import ledger_service

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("", response_model=List[TransactionRead])
def list_transactions(
    store_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    product_id: Optional[int] = None,
    type: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_operator),
):
    return ledger_service.list_transactions(
        db,
        store_id,
        start_date=start_date,
        end_date=end_date,
        product_id=product_id,
        tx_type=type,
        limit=limit,
    )


@router.get("/{transaction_id}", response_model=TransactionRead)
def get_transaction(transaction_id: int, db: Session = Depends(get_db), _operator: Operator = Depends(get_operator)):
    return ledger_service.get_transaction(db, transaction_id)


@router.post("/{transaction_id}/cancel", response_model=TransactionRead)
def cancel_transaction(
    transaction_id: int,
    payload: Optional[CancelRequest] = None,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_writer),
):
    return ledger_service.run_in_transaction(
        session_factory,
        ledger_service.cancel_transaction,
        transaction_id,
        operator,
        note=payload.note if payload else None,
    )
