from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    event,
    inspect,
)

from stockledger.core.dates import utc_now
from stockledger.core.errors import ValidationError
from stockledger.database.base import Base


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    id = Column(Integer, primary_key=True)

    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    type = Column(String(32), nullable=False)

    quantity_case = Column(Integer, nullable=False, default=0)
    quantity_unit = Column(Integer, nullable=False, default=0)
    unit_cost_case = Column(Numeric(18, 4))
    unit_cost_unit = Column(Numeric(18, 4))
    cost_case = Column(Numeric(18, 4), nullable=False, default=0)
    cost_unit = Column(Numeric(18, 4), nullable=False, default=0)
    total_cost = Column(Numeric(18, 4), nullable=False, default=0)

    business_date = Column(Date, nullable=False)
    transaction_time = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    source = Column(String(16), nullable=False)
    operator_id = Column(Integer)
    operator_name = Column(String, nullable=False, default="")

    adjustment_id = Column(Integer, ForeignKey("adjustments.id"))
    stocktake_id = Column(Integer, ForeignKey("stock_takes.id"))
    cancelled_by_id = Column(Integer, ForeignKey("ledger_transactions.id"))
    cancelled_transaction_id = Column(Integer, ForeignKey("ledger_transactions.id"))
    is_cancelled = Column(Boolean, nullable=False, default=False)

    note = Column(String)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        Index("idx_tx_store_product_date", "store_id", "product_id", "business_date"),
        Index("idx_tx_store_date", "store_id", "business_date"),
    )


IMMUTABLE_FIELDS = (
    "store_id",
    "product_id",
    "type",
    "quantity_case",
    "quantity_unit",
    "unit_cost_case",
    "unit_cost_unit",
    "cost_case",
    "cost_unit",
    "total_cost",
    "business_date",
    "transaction_time",
)


@event.listens_for(LedgerTransaction, "before_update")
def _reject_amount_changes(_mapper, _connection, target):
    state = inspect(target)
    changed = [name for name in IMMUTABLE_FIELDS if state.attrs[name].history.has_changes()]
    if changed:
        raise ValidationError(
            "Ledger entries are append-only; cannot change {}".format(", ".join(changed))
        )


__all__ = ["IMMUTABLE_FIELDS", "LedgerTransaction"]
