from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db, atomic
from models.invoices import InvoiceStatus
from schemas.invoices import Invoice as InvoiceSchema, InvoiceCreate
from crud import invoices as crud_invoices
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(prefix="/invoices", tags=["Invoices"])
logger = logging.getLogger("invoices")

@router.post("/", response_model=InvoiceSchema, status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice: InvoiceCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Invoice selected quantities of a sales order and post it to receivables."""
    with atomic(db):
        db_invoice = crud_invoices.create_invoice(db, invoice, tenant_id, actor_id)
    return db_invoice

@router.get("/", response_model=List[InvoiceSchema])
def list_invoices(
    company_id: Optional[int] = None,
    sales_order_id: Optional[int] = None,
    status: Optional[InvoiceStatus] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return crud_invoices.get_invoices(
        db, tenant_id, company_id=company_id, sales_order_id=sales_order_id, status=status, skip=skip, limit=limit
    )

@router.get("/{invoice_id}", response_model=InvoiceSchema)
def read_invoice(invoice_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_invoices.get_invoice(db, invoice_id, tenant_id)
