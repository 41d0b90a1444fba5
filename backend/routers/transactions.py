from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas.intercompany import TransactionGroup
from crud.intercompany_linker import resolve_transaction_group
from utils.tenancy import get_tenant_id

router = APIRouter(prefix="/transactions", tags=["Transactions"])

@router.get("/by-reference/{reference_number}", response_model=TransactionGroup)
def read_transaction_group(reference_number: str, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    """All orders, invoices, bills, receipts, payments and intercompany transactions sharing a reference number."""
    return resolve_transaction_group(db, reference_number, tenant_id)
