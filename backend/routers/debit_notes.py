from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db, atomic
from schemas.debit_notes import DebitNote as DebitNoteSchema, DebitNoteCreate
from crud import debit_notes as crud_debit_notes
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(prefix="/debit-notes", tags=["Debit Notes"])

@router.post("/", response_model=DebitNoteSchema, status_code=status.HTTP_201_CREATED)
def create_debit_note(
    note: DebitNoteCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Raise a debit note with a vendor, optionally against one of its bills."""
    with atomic(db):
        db_note = crud_debit_notes.create_debit_note(db, note, tenant_id, actor_id)
    return db_note

@router.get("/", response_model=List[DebitNoteSchema])
def list_debit_notes(
    company_id: Optional[int] = None,
    bill_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return crud_debit_notes.get_debit_notes(db, tenant_id, company_id=company_id, bill_id=bill_id, skip=skip, limit=limit)

@router.get("/{note_id}", response_model=DebitNoteSchema)
def read_debit_note(note_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_debit_notes.get_debit_note(db, note_id, tenant_id)
