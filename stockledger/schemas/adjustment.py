from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AdjustmentItemCreate(BaseModel):
    product_id: int
    quantity_case: int = 0
    quantity_unit: int = 0
    unit_cost_case: Optional[Decimal] = None
    unit_cost_unit: Optional[Decimal] = None
    from_case: int = 0
    to_unit: int = 0
    from_unit: int = 0
    to_case: int = 0
    note: Optional[str] = None


class AdjustmentCreate(BaseModel):
    store_id: int
    type: str
    adjustment_date: date
    reason: Optional[str] = ""
    items: List[AdjustmentItemCreate] = Field(default_factory=list)


class AdjustmentItemRead(AdjustmentItemCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class AdjustmentRead(BaseModel):
    id: int
    store_id: int
    type: str
    adjustment_date: date
    status: str
    reason: str
    created_by_id: Optional[int] = None
    created_by_name: str
    approved_by_id: Optional[int] = None
    approved_by_name: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    items: List[AdjustmentItemRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
