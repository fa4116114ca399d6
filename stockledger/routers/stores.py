from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.core.identity import Operator
from stockledger.dependencies import get_db, get_operator, get_session_factory, require_admin
from stockledger.schemas.store import StoreCreate, StoreRead, StoreUpdate
from stockledger.services import catalog_service
from stockledger.services.ledger_service import run_in_transaction

router = APIRouter(prefix="/stores", tags=["Stores"])


@router.get("", response_model=List[StoreRead])
def list_stores(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_operator),
):
    return catalog_service.list_stores(db, include_inactive=include_inactive)


@router.get("/{store_id}", response_model=StoreRead)
def get_store(store_id: int, db: Session = Depends(get_db), _operator: Operator = Depends(get_operator)):
    return catalog_service.get_store(db, store_id)


@router.post("", response_model=StoreRead, status_code=201)
def create_store(
    payload: StoreCreate,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, catalog_service.create_store, payload, operator)


@router.patch("/{store_id}", response_model=StoreRead)
def update_store(
    store_id: int,
    payload: StoreUpdate,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, catalog_service.update_store, store_id, payload, operator)


@router.delete("/{store_id}", response_model=StoreRead)
def deactivate_store(
    store_id: int,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, catalog_service.deactivate_store, store_id, operator)
