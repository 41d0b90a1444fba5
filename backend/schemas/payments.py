from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from utils.parsing import Money, OrderId

class PaymentCreate(BaseModel):
    company_id: OrderId
    bill_id: OrderId
    amount: Money
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    reference_number: Optional[str] = None
    # Omitted accounts resolve to the company's accounts payable and cash roles
    debit_account_id: Optional[OrderId] = None
    credit_account_id: Optional[OrderId] = None
    notes: Optional[str] = None

class Payment(BaseModel):
    id: int
    tenant_id: str
    company_id: int
    payment_number: str
    bill_id: int
    purchase_order_id: Optional[int] = None
    vendor_id: int
    payment_date: date
    amount: Decimal
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    reference_number: Optional[str] = None
    is_partial_payment: bool
    debit_account_id: int
    credit_account_id: int
    journal_entry_id: int
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
