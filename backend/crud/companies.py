from sqlalchemy.orm import Session
from models.companies import Company
from exceptions import NotFound, ValidationFailed

def get_company(db: Session, company_id: int, tenant_id: str = None, lock: bool = False) -> Company:
    """Fetch a company, optionally scoped to a tenant and row-locked. Raises NotFound."""
    query = db.query(Company).filter(Company.id == company_id)
    if tenant_id is not None:
        query = query.filter(Company.tenant_id == tenant_id)
    if lock:
        query = query.with_for_update()
    company = query.first()
    if not company:
        raise NotFound(f"Company {company_id} not found.", resource="company", id=company_id)
    return company

def get_active_company(db: Session, company_id: int, tenant_id: str) -> Company:
    company = get_company(db, company_id, tenant_id)
    if not company.is_active:
        raise ValidationFailed(f"Company {company.name} ({company_id}) is inactive.", company_id=company_id)
    return company
