from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
from utils.parsing import Money, Quantity

class SalesOrderItemBase(BaseModel):
    product_id: int
    description: Optional[str] = None

class SalesOrderItemCreateRequest(SalesOrderItemBase):
    quantity: Quantity
    price_per_unit: Money

class SalesOrderItem(SalesOrderItemBase):
    id: int
    sales_order_id: int
    quantity: Decimal
    price_per_unit: Decimal
    line_total: Decimal
    invoiced_quantity: Decimal
    fully_invoiced: bool

    class Config:
        from_attributes = True
