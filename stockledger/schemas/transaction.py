from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TransactionRead(BaseModel):
    id: int
    store_id: int
    product_id: int
    type: str
    quantity_case: int
    quantity_unit: int
    unit_cost_case: Optional[Decimal] = None
    unit_cost_unit: Optional[Decimal] = None
    cost_case: Decimal
    cost_unit: Decimal
    total_cost: Decimal
    business_date: date
    transaction_time: datetime
    source: str
    operator_id: Optional[int] = None
    operator_name: str
    adjustment_id: Optional[int] = None
    stocktake_id: Optional[int] = None
    cancelled_by_id: Optional[int] = None
    cancelled_transaction_id: Optional[int] = None
    is_cancelled: bool
    note: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CancelRequest(BaseModel):
    note: Optional[str] = None
