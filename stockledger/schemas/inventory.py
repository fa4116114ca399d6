from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class BalanceRead(BaseModel):
    store_id: int
    product_id: int
    quantity_case: int
    quantity_unit: int
    total_cost_case: Decimal
    total_cost_unit: Decimal
    avg_cost_case: Decimal
    avg_cost_unit: Decimal
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LowStockRead(BaseModel):
    store_id: int
    product_id: int
    sku: str
    name: str
    quantity_case: int
    quantity_unit: int
    safety_stock_case: int
    safety_stock_unit: int
