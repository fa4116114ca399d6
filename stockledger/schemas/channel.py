from typing import Optional

from pydantic import BaseModel


class ChannelSelect(BaseModel):
    user_id: str
    sku: Optional[str] = None
    barcode: Optional[str] = None


class ChannelMovement(BaseModel):
    user_id: str
    direction: str
    quantity_case: int = 0
    quantity_unit: int = 0


class SelectionRead(BaseModel):
    store_id: int
    product_id: int
    sku: str
    name: str
