from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging
from database import get_db, atomic
from schemas.journal_entry import JournalEntry, JournalEntryCreate
from crud import journal_entry as journal_entry_crud
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(
    prefix="/journal-entries",
    tags=["Journal Entries"],
)
logger = logging.getLogger("journal_entries")

@router.post("/", response_model=JournalEntry, status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    entry: JournalEntryCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """
    Post a manual journal entry.
    Debits must equal credits; an unbalanced entry is rejected with 422 and nothing is written.
    """
    with atomic(db):
        db_entry = journal_entry_crud.create_journal_entry(db=db, entry=entry, tenant_id=tenant_id, actor_id=actor_id)
    return db_entry


@router.get("/", response_model=List[JournalEntry])
def get_journal_entries(
    company_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """
    Retrieve a list of journal entries.
    """
    return journal_entry_crud.get_journal_entries(
        db=db,
        tenant_id=tenant_id,
        company_id=company_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit
    )

@router.get("/{entry_id}", response_model=JournalEntry)
def get_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """
    Retrieve a single journal entry by its ID.
    """
    return journal_entry_crud.get_journal_entry(db=db, entry_id=entry_id, tenant_id=tenant_id)
