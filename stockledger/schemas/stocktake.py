from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StockTakeItemCreate(BaseModel):
    product_id: int
    actual_case: int = 0
    actual_unit: int = 0
    note: Optional[str] = None


class StockTakeCreate(BaseModel):
    store_id: int
    stocktake_date: Optional[date] = None
    note: Optional[str] = None
    items: List[StockTakeItemCreate] = Field(default_factory=list)


class StockTakeItemRead(BaseModel):
    id: int
    product_id: int
    system_case: int
    system_unit: int
    actual_case: int
    actual_unit: int
    diff_case: int
    diff_unit: int
    note: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class StockTakeRead(BaseModel):
    id: int
    store_id: int
    stocktake_date: date
    month: str
    status: str
    created_by_id: Optional[int] = None
    created_by_name: str
    completed_by_id: Optional[int] = None
    completed_by_name: Optional[str] = None
    completed_at: Optional[datetime] = None
    note: Optional[str] = None
    items: List[StockTakeItemRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
