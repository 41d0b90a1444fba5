from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal

class RemainingLine(BaseModel):
    so_item_id: Optional[int] = None
    product_id: int
    product_name: Optional[str] = None
    price_per_unit: Decimal
    original_qty: Decimal
    applied_qty: Decimal
    remaining_qty: Decimal
    fully_invoiced: bool

class OrderRemaining(BaseModel):
    sales_order_id: int
    lines: List[RemainingLine]
    invoiceable_lines: List[RemainingLine]
    remaining_amount: Decimal
