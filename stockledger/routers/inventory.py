from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.core.errors import NotFound
from stockledger.core.identity import Operator
from stockledger.dependencies import get_db, get_operator
from stockledger.schemas.inventory import BalanceRead, LowStockRead
from stockledger.services import catalog_service
from stockledger.services.ledger_service import get_balance

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.get("/low-stock", response_model=List[LowStockRead])
def low_stock(
    store_id: Optional[int] = None,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_operator),
):
    return [
        LowStockRead(
            store_id=balance.store_id,
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            quantity_case=balance.quantity_case,
            quantity_unit=balance.quantity_unit,
            safety_stock_case=product.safety_stock_case,
            safety_stock_unit=product.safety_stock_unit,
        )
        for balance, product in catalog_service.low_stock(db, store_id)
    ]


@router.get("/{store_id}", response_model=List[BalanceRead])
def store_balances(store_id: int, db: Session = Depends(get_db), _operator: Operator = Depends(get_operator)):
    return catalog_service.balances_by_store(db, store_id)


@router.get("/{store_id}/{product_id}", response_model=BalanceRead)
def product_balance(
    store_id: int,
    product_id: int,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(get_operator),
):
    balance = get_balance(db, store_id, product_id)
    if balance is None:
        raise NotFound("No inventory record for store {} product {}".format(store_id, product_id))
    return balance
