from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from stockledger.core.constants import STOCKTAKE_DRAFT
from stockledger.core.dates import utc_now
from stockledger.database.base import Base


class StockTake(Base):
    __tablename__ = "stock_takes"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False)

    stocktake_date = Column(Date, nullable=False)
    month = Column(String(7), nullable=False)
    status = Column(String(16), nullable=False, default=STOCKTAKE_DRAFT)

    created_by_id = Column(Integer)
    created_by_name = Column(String, nullable=False, default="")
    completed_by_id = Column(Integer)
    completed_by_name = Column(String)
    completed_at = Column(DateTime(timezone=True))
    note = Column(String)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    items = relationship(
        "StockTakeItem",
        back_populates="stocktake",
        cascade="all, delete-orphan",
        order_by="StockTakeItem.id",
    )


class StockTakeItem(Base):
    __tablename__ = "stock_take_items"

    id = Column(Integer, primary_key=True)
    stocktake_id = Column(Integer, ForeignKey("stock_takes.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    system_case = Column(Integer, nullable=False, default=0)
    system_unit = Column(Integer, nullable=False, default=0)
    actual_case = Column(Integer, nullable=False, default=0)
    actual_unit = Column(Integer, nullable=False, default=0)
    diff_case = Column(Integer, nullable=False, default=0)
    diff_unit = Column(Integer, nullable=False, default=0)

    note = Column(String)

    stocktake = relationship("StockTake", back_populates="items")


__all__ = ["StockTake", "StockTakeItem"]
