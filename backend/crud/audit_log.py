from sqlalchemy.orm import Session
from typing import Optional
from models.audit_log import AuditLog
from schemas.audit_log import AuditLogCreate

def create_audit_log(db: Session, log_entry: AuditLogCreate):
    """Add an audit row to the caller's transaction; the caller commits."""
    db_log_entry = AuditLog(**log_entry.model_dump())
    db.add(db_log_entry)
    db.flush()
    return db_log_entry

def get_audit_logs(
    db: Session,
    tenant_id: str,
    table_name: Optional[str] = None,
    record_id: Optional[int] = None,
    action: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
):
    """Audit rows of a tenant, newest first."""
    query = db.query(AuditLog).filter(AuditLog.tenant_id == tenant_id)
    if table_name:
        query = query.filter(AuditLog.table_name == table_name)
    if record_id is not None:
        query = query.filter(AuditLog.record_id == record_id)
    if action:
        query = query.filter(AuditLog.action == action.upper())
    return query.order_by(AuditLog.id.desc()).offset(skip).limit(limit).all()
