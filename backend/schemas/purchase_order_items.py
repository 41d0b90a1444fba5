from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
from utils.parsing import Money, Quantity

class PurchaseOrderItemBase(BaseModel):
    product_id: int
    description: Optional[str] = None

class PurchaseOrderItemCreateRequest(PurchaseOrderItemBase):
    quantity: Quantity
    price_per_unit: Money

class PurchaseOrderItem(PurchaseOrderItemBase):
    id: int
    purchase_order_id: int
    quantity: Decimal
    price_per_unit: Decimal
    line_total: Decimal
    billed_quantity: Decimal
    fully_billed: bool

    class Config:
        from_attributes = True
