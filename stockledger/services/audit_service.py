import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from stockledger.config import get_settings
from stockledger.core.identity import Operator
from stockledger.models.audit_log import AuditLog


def _json_default(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _dump(values: Optional[dict]) -> Optional[str]:
    if values is None:
        return None
    return json.dumps(values, default=_json_default, sort_keys=True)


def row_values(obj, fields=None) -> dict:
    mapper = inspect(obj).mapper
    names = fields or [column.key for column in mapper.column_attrs]
    return {name: getattr(obj, name) for name in names}


def record_audit(
    db: Session,
    table_name: str,
    record_id: int,
    action: str,
    operator: Operator,
    *,
    old_value: Optional[dict] = None,
    new_value: Optional[dict] = None,
) -> AuditLog:
    entry = AuditLog(
        table_name=table_name,
        record_id=record_id,
        action=action,
        old_value=_dump(old_value),
        new_value=_dump(new_value),
        operator_id=operator.operator_id,
        operator_name=operator.name,
    )
    db.add(entry)
    db.flush()
    return entry


def list_audit_logs(
    db: Session,
    table_name: Optional[str] = None,
    record_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> list[AuditLog]:
    """Newest audit entries first, optionally narrowed to one table or record."""
    settings = get_settings()
    if limit is None:
        limit = settings.AUDIT_LOG_LIST_LIMIT
    limit = max(1, min(int(limit), settings.AUDIT_LOG_LIST_MAX_LIMIT))

    stmt = select(AuditLog)
    if table_name is not None:
        stmt = stmt.where(AuditLog.table_name == table_name)
    if record_id is not None:
        stmt = stmt.where(AuditLog.record_id == record_id)
    return list(db.execute(stmt.order_by(AuditLog.id.desc()).limit(limit)).scalars().all())


__all__ = ["list_audit_logs", "record_audit", "row_values"]
