from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.core.identity import Operator
from stockledger.dependencies import get_db, get_operator, get_session_factory, require_writer
from stockledger.schemas.stocktake import StockTakeCreate, StockTakeRead
from stockledger.services import stocktake_service
from stockledger.services.ledger_service import run_in_transaction

router = APIRouter(prefix="/stocktakes", tags=["Stock takes"])


@router.get("", response_model=List[StockTakeRead])
def list_stocktakes(
    store_id: int,
    month: Optional[str] = None,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_operator),
):
    return stocktake_service.list_stocktakes(db, store_id, month=month)


@router.get("/{stocktake_id}", response_model=StockTakeRead)
def get_stocktake(stocktake_id: int, db: Session = Depends(get_db), _operator: Operator = Depends(get_operator)):
    return stocktake_service.get_stocktake(db, stocktake_id)


@router.post("", response_model=StockTakeRead, status_code=201)
def create_stocktake(
    payload: StockTakeCreate,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_writer),
):
    return run_in_transaction(session_factory, stocktake_service.create_stocktake, payload, operator)


@router.post("/{stocktake_id}/complete", response_model=StockTakeRead)
def complete_stocktake(
    stocktake_id: int,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_writer),
):
    return run_in_transaction(session_factory, stocktake_service.complete_stocktake, stocktake_id, operator)
