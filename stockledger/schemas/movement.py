from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class MovementCreate(BaseModel):
    store_id: int
    product_id: int
    quantity_case: int = 0
    quantity_unit: int = 0
    note: Optional[str] = None


class InboundCreate(MovementCreate):
    # Omitted costs are taken at the dimension's running average.
    unit_cost_case: Optional[Decimal] = None
    unit_cost_unit: Optional[Decimal] = None


class OutboundCreate(MovementCreate):
    pass
