from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class SnapshotRead(BaseModel):
    snapshot_date: date
    store_id: int
    product_id: int

    opening_case: int
    opening_unit: int
    opening_cost_case: Decimal
    opening_cost_unit: Decimal
    inbound_case: int
    inbound_unit: int
    inbound_cost_case: Decimal
    inbound_cost_unit: Decimal
    outbound_case: int
    outbound_unit: int
    outbound_cost_case: Decimal
    outbound_cost_unit: Decimal
    adjustment_case: int
    adjustment_unit: int
    adjustment_cost_case: Decimal
    adjustment_cost_unit: Decimal
    closing_case: int
    closing_unit: int
    closing_cost_case: Decimal
    closing_cost_unit: Decimal
    avg_cost_case: Decimal
    avg_cost_unit: Decimal

    model_config = ConfigDict(from_attributes=True)


class RecomputeRequest(BaseModel):
    store_id: int
    from_date: date
    product_ids: list[int] | None = None


class RecomputeResult(BaseModel):
    store_id: int
    snapshots_written: int
