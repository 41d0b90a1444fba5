from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.bills import BillStatus

class BillItem(BaseModel):
    id: int
    product_id: int
    po_item_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal
    price_per_unit: Decimal
    line_total: Decimal

    class Config:
        from_attributes = True

class Bill(BaseModel):
    id: int
    tenant_id: str
    company_id: int
    bill_number: str
    vendor_id: int
    purchase_order_id: Optional[int] = None
    bill_date: date
    due_date: date
    status: BillStatus
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    amount_paid: Decimal
    amount_credited: Decimal = Decimal("0")
    balance_due: Decimal
    reference_number: Optional[str] = None
    journal_entry_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    items: List[BillItem] = []

    class Config:
        from_attributes = True
