from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.core.identity import Operator
from stockledger.dependencies import get_db, require_admin
from stockledger.schemas.audit_log import AuditLogRead
from stockledger.services import audit_service

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=List[AuditLogRead])
def list_audit_logs(
    table_name: Optional[str] = None,
    record_id: Optional[int] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    _operator: Operator = Depends(require_admin),
):
    return audit_service.list_audit_logs(db, table_name, record_id, limit)
