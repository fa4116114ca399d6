from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from stockledger.core.constants import ADJUSTMENT_PENDING
from stockledger.core.dates import utc_now
from stockledger.database.base import Base


class Adjustment(Base):
    __tablename__ = "adjustments"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False)

    type = Column(String(32), nullable=False)
    adjustment_date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default=ADJUSTMENT_PENDING)
    reason = Column(String, nullable=False, default="")

    created_by_id = Column(Integer)
    created_by_name = Column(String, nullable=False, default="")
    approved_by_id = Column(Integer)
    approved_by_name = Column(String)
    approved_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    items = relationship(
        "AdjustmentItem",
        back_populates="adjustment",
        cascade="all, delete-orphan",
        order_by="AdjustmentItem.id",
    )


class AdjustmentItem(Base):
    __tablename__ = "adjustment_items"

    id = Column(Integer, primary_key=True)
    adjustment_id = Column(Integer, ForeignKey("adjustments.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    # Make-up movements
    quantity_case = Column(Integer, nullable=False, default=0)
    quantity_unit = Column(Integer, nullable=False, default=0)
    unit_cost_case = Column(Numeric(18, 4))
    unit_cost_unit = Column(Numeric(18, 4))

    # Conversion: (a) from_case cases -> to_unit units, (b) from_unit units -> to_case cases
    from_case = Column(Integer, nullable=False, default=0)
    to_unit = Column(Integer, nullable=False, default=0)
    from_unit = Column(Integer, nullable=False, default=0)
    to_case = Column(Integer, nullable=False, default=0)

    note = Column(String)

    adjustment = relationship("Adjustment", back_populates="items")


__all__ = ["Adjustment", "AdjustmentItem"]
