from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, UniqueConstraint

from stockledger.core.dates import utc_now
from stockledger.database.base import Base


def _qty():
    return Column(Integer, nullable=False, default=0)


def _money():
    return Column(Numeric(18, 4), nullable=False, default=0)


class DailySnapshot(Base):
    """Per-day rollup of one product in one store. Derived, rebuildable."""

    __tablename__ = "daily_snapshots"

    id = Column(Integer, primary_key=True)
    snapshot_date = Column(Date, nullable=False)

    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    opening_case = _qty()
    opening_unit = _qty()
    opening_cost_case = _money()
    opening_cost_unit = _money()

    inbound_case = _qty()
    inbound_unit = _qty()
    inbound_cost_case = _money()
    inbound_cost_unit = _money()

    outbound_case = _qty()
    outbound_unit = _qty()
    outbound_cost_case = _money()
    outbound_cost_unit = _money()

    adjustment_case = _qty()
    adjustment_unit = _qty()
    adjustment_cost_case = _money()
    adjustment_cost_unit = _money()

    closing_case = _qty()
    closing_unit = _qty()
    closing_cost_case = _money()
    closing_cost_unit = _money()

    avg_cost_case = _money()
    avg_cost_unit = _money()

    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("store_id", "product_id", "snapshot_date", name="uq_snapshot_store_product_date"),
        Index("idx_snapshot_store_date", "store_id", "snapshot_date"),
    )


__all__ = ["DailySnapshot"]
