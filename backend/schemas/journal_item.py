from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional

class JournalItemBase(BaseModel):
    account_id: int
    description: Optional[str] = None
    debit: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    credit: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)

class JournalItemCreate(JournalItemBase):
    pass

class JournalItem(JournalItemBase):
    id: int
    journal_entry_id: int

    class Config:
        from_attributes = True
