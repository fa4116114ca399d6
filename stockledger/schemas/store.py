from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class StoreBase(BaseModel):
    code: str
    name: str
    address: Optional[str] = ""
    phone: Optional[str] = ""
    channel_id: Optional[str] = None


class StoreCreate(StoreBase):
    pass


class StoreUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    channel_id: Optional[str] = None
    is_active: Optional[bool] = None


class StoreRead(StoreBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
