from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime
from .journal_item import JournalItemCreate, JournalItem

class JournalEntryBase(BaseModel):
    date: date
    description: Optional[str] = None
    reference_document: Optional[str] = None

class JournalEntryCreate(JournalEntryBase):
    # Balance and line-count rules are enforced when the entry is posted
    company_id: int
    items: List[JournalItemCreate]

class JournalEntry(JournalEntryBase):
    id: int
    tenant_id: str
    company_id: int
    entry_number: str
    source_type: Optional[str] = None
    source_id: Optional[int] = None
    is_posted: bool
    posted_date: Optional[datetime] = None
    created_by: Optional[str] = None
    items: List[JournalItem] = []

    class Config:
        from_attributes = True
