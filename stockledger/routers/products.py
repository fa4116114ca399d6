from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.core.identity import Operator
from stockledger.dependencies import get_db, get_operator, get_session_factory, require_admin
from stockledger.schemas.product import ProductCreate, ProductRead, ProductUpdate
from stockledger.services import catalog_service
from stockledger.services.ledger_service import run_in_transaction

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=List[ProductRead])
def search_products(
    q: Optional[str] = None,
    include_inactive: bool = False,
    limit: int = 50,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_operator),
):
    return catalog_service.search_products(db, q, include_inactive=include_inactive, limit=limit)


@router.get("/barcode/{barcode}", response_model=ProductRead)
def get_product_by_barcode(barcode: str, db: Session = Depends(get_db), _operator: Operator = Depends(get_operator)):
    return catalog_service.get_product_by_barcode(db, barcode)


@router.get("/sku/{sku}", response_model=ProductRead)
def get_product_by_sku(sku: str, db: Session = Depends(get_db), _operator: Operator = Depends(get_operator)):
    return catalog_service.get_product_by_sku(db, sku)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db), _operator: Operator = Depends(get_operator)):
    return catalog_service.get_product(db, product_id)


@router.post("", response_model=ProductRead, status_code=201)
def create_product(
    payload: ProductCreate,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, catalog_service.create_product, payload, operator)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, catalog_service.update_product, product_id, payload, operator)


@router.delete("/{product_id}", response_model=ProductRead)
def deactivate_product(
    product_id: int,
    session_factory=Depends(get_session_factory),
    operator: Operator = Depends(require_admin),
):
    return run_in_transaction(session_factory, catalog_service.deactivate_product, product_id, operator)
