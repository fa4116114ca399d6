from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from stockledger.core.dates import utc_now
from stockledger.database.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    table_name = Column(String(64), nullable=False)
    record_id = Column(Integer, nullable=False)
    action = Column(String(16), nullable=False)

    old_value = Column(Text)
    new_value = Column(Text)

    operator_id = Column(Integer)
    operator_name = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        Index("idx_audit_table_record", "table_name", "record_id"),
    )


__all__ = ["AuditLog"]
