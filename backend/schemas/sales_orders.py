from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.sales_orders import SalesOrderStatus
from schemas.sales_order_items import SalesOrderItemCreateRequest, SalesOrderItem

class SalesOrderBase(BaseModel):
    customer_id: int
    order_date: date
    expected_date: Optional[date] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None

class SalesOrderCreate(SalesOrderBase):
    company_id: int
    status: SalesOrderStatus = SalesOrderStatus.DRAFT
    items: List[SalesOrderItemCreateRequest]

class SalesOrderStatusUpdate(BaseModel):
    status: SalesOrderStatus

class SalesOrder(SalesOrderBase):
    id: int
    tenant_id: str
    company_id: int
    so_number: str
    status: SalesOrderStatus
    total_amount: Decimal
    total_amount_paid: Decimal
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[SalesOrderItem] = []

    class Config:
        from_attributes = True
