from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db, atomic
from schemas.credit_notes import CreditNote as CreditNoteSchema, CreditNoteCreate
from crud import credit_notes as crud_credit_notes
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(prefix="/credit-notes", tags=["Credit Notes"])

@router.post("/", response_model=CreditNoteSchema, status_code=status.HTTP_201_CREATED)
def create_credit_note(
    note: CreditNoteCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Issue a credit note to a customer, optionally against one of its invoices."""
    with atomic(db):
        db_note = crud_credit_notes.create_credit_note(db, note, tenant_id, actor_id)
    return db_note

@router.get("/", response_model=List[CreditNoteSchema])
def list_credit_notes(
    company_id: Optional[int] = None,
    invoice_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return crud_credit_notes.get_credit_notes(db, tenant_id, company_id=company_id, invoice_id=invoice_id, skip=skip, limit=limit)

@router.get("/{note_id}", response_model=CreditNoteSchema)
def read_credit_note(note_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_credit_notes.get_credit_note(db, note_id, tenant_id)
