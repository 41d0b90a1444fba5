from pydantic import BaseModel, model_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.invoices import InvoiceStatus
from utils.parsing import OrderId, Quantity

class LineSelection(BaseModel):
    """One order line picked for invoicing, by order-line id or by product."""
    so_item_id: Optional[int] = None
    product_id: Optional[int] = None
    quantity: Quantity

    @model_validator(mode='after')
    def check_line_reference(self):
        if self.so_item_id is None and self.product_id is None:
            raise ValueError("Each selected line needs so_item_id or product_id.")
        return self

class InvoiceCreate(BaseModel):
    sales_order_id: OrderId
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    items: List[LineSelection]

class InvoiceItem(BaseModel):
    id: int
    product_id: int
    so_item_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal
    price_per_unit: Decimal
    line_total: Decimal
    paid_quantity: Decimal
    fully_paid: bool

    class Config:
        from_attributes = True

class Invoice(BaseModel):
    id: int
    tenant_id: str
    company_id: int
    invoice_number: str
    customer_id: int
    sales_order_id: Optional[int] = None
    invoice_date: date
    due_date: date
    status: InvoiceStatus
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
    items: List[InvoiceItem] = []

    class Config:
        from_attributes = True
