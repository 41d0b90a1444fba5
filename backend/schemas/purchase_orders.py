from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.purchase_orders import PurchaseOrderStatus
from schemas.purchase_order_items import PurchaseOrderItemCreateRequest, PurchaseOrderItem

class PurchaseOrderBase(BaseModel):
    vendor_id: int
    order_date: date
    expected_date: Optional[date] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None

class PurchaseOrderCreate(PurchaseOrderBase):
    company_id: int
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    items: List[PurchaseOrderItemCreateRequest]

class PurchaseOrderStatusUpdate(BaseModel):
    status: PurchaseOrderStatus

class PurchaseOrder(PurchaseOrderBase):
    id: int
    tenant_id: str
    company_id: int
    po_number: str
    status: PurchaseOrderStatus
    total_amount: Decimal
    total_amount_paid: Decimal
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[PurchaseOrderItem] = []

    class Config:
        from_attributes = True
