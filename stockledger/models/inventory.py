from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    UniqueConstraint,
)

from stockledger.core.dates import utc_now
from stockledger.database.base import Base


class InventoryBalance(Base):
    """Materialized on-hand position of one product in one store.

    Only ``ledger_service.apply_movement`` writes to this table.
    """

    __tablename__ = "inventory_balances"

    id = Column(Integer, primary_key=True)

    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity_case = Column(Integer, nullable=False, default=0)
    quantity_unit = Column(Integer, nullable=False, default=0)

    total_cost_case = Column(Numeric(18, 4), nullable=False, default=0)
    total_cost_unit = Column(Numeric(18, 4), nullable=False, default=0)
    avg_cost_case = Column(Numeric(18, 4), nullable=False, default=0)
    avg_cost_unit = Column(Numeric(18, 4), nullable=False, default=0)

    version = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("store_id", "product_id", name="uq_balance_store_product"),
        CheckConstraint("quantity_case >= 0", name="ck_balance_case_non_negative"),
        CheckConstraint("quantity_unit >= 0", name="ck_balance_unit_non_negative"),
    )

    __mapper_args__ = {"version_id_col": version}


__all__ = ["InventoryBalance"]
