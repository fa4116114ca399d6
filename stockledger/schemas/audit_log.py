from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuditLogRead(BaseModel):
    id: int
    table_name: str
    record_id: int
    action: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    operator_id: Optional[int] = None
    operator_name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
