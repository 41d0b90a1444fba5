from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from utils.parsing import Money, OrderId

class ReceiptCreate(BaseModel):
    company_id: OrderId
    sales_order_id: OrderId
    customer_id: OrderId
    debit_account_id: OrderId
    credit_account_id: OrderId
    amount: Money
    invoice_id: Optional[OrderId] = None
    receipt_date: Optional[date] = None
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None

class Receipt(BaseModel):
    id: int
    tenant_id: str
    company_id: int
    receipt_number: str
    sales_order_id: int
    invoice_id: Optional[int] = None
    customer_id: int
    receipt_date: date
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
