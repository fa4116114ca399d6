from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
)

from stockledger.core.dates import utc_now
from stockledger.database.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    sku = Column(String(64), nullable=False, unique=True)
    name = Column(String, nullable=False)
    barcode = Column(String)
    category = Column(String, nullable=False, default="")

    # Informational only; the ledger never converts implicitly.
    units_per_case = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(18, 4), nullable=False, default=0)

    safety_stock_case = Column(Integer, nullable=False, default=0)
    safety_stock_unit = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        CheckConstraint("units_per_case >= 1", name="ck_products_units_per_case"),
        CheckConstraint("safety_stock_case >= 0", name="ck_products_safety_case"),
        CheckConstraint("safety_stock_unit >= 0", name="ck_products_safety_unit"),
        Index("idx_products_barcode", "barcode"),
        Index("idx_products_name", "name"),
    )


__all__ = ["Product"]
