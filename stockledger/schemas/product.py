from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProductBase(BaseModel):
    sku: str
    name: str
    barcode: Optional[str] = None
    category: Optional[str] = ""
    units_per_case: int = 1
    unit_price: Decimal = Decimal("0")
    safety_stock_case: int = 0
    safety_stock_unit: int = 0


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    barcode: Optional[str] = None
    category: Optional[str] = None
    units_per_case: Optional[int] = None
    unit_price: Optional[Decimal] = None
    safety_stock_case: Optional[int] = None
    safety_stock_unit: Optional[int] = None
    is_active: Optional[bool] = None


class ProductRead(ProductBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
