from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from models.debit_notes import DebitNoteStatus
from utils.parsing import Money, OrderId

class DebitNoteCreate(BaseModel):
    company_id: OrderId
    vendor_id: OrderId
    amount: Money
    reason: str = Field(..., min_length=1)
    bill_id: Optional[OrderId] = None
    note_date: Optional[date] = None
    reference_number: Optional[str] = None

class DebitNote(BaseModel):
    id: int
    tenant_id: str
    company_id: int
    debit_note_number: str
    vendor_id: int
    bill_id: Optional[int] = None
    note_date: date
    amount: Decimal
    reason: str
    status: DebitNoteStatus
    reference_number: Optional[str] = None
    journal_entry_id: int
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
