from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from schemas.audit_log import AuditLog
from crud.audit_log import get_audit_logs
from utils.tenancy import get_tenant_id

router = APIRouter(prefix="/audit-log", tags=["Audit Log"])

@router.get("/", response_model=List[AuditLog])
def read_audit_log(
    table_name: Optional[str] = None,
    record_id: Optional[int] = None,
    action: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Status changes, deletions and journal postings, e.g. `?table_name=journal_entries&action=post`."""
    return get_audit_logs(db, tenant_id, table_name=table_name, record_id=record_id, action=action, skip=skip, limit=limit)
