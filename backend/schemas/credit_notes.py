from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from models.credit_notes import CreditNoteStatus
from utils.parsing import Money, OrderId

class CreditNoteCreate(BaseModel):
    company_id: OrderId
    customer_id: OrderId
    amount: Money
    reason: str = Field(..., min_length=1)
    invoice_id: Optional[OrderId] = None
    note_date: Optional[date] = None
    reference_number: Optional[str] = None

class CreditNote(BaseModel):
    id: int
    tenant_id: str
    company_id: int
    credit_note_number: str
    customer_id: int
    invoice_id: Optional[int] = None
    note_date: date
    amount: Decimal
    reason: str
    status: CreditNoteStatus
    reference_number: Optional[str] = None
    journal_entry_id: int
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
