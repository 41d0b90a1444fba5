from sqlalchemy import Column, Integer, Numeric, ForeignKey, String
from sqlalchemy.orm import relationship
from database import Base

class BillItem(Base):
    __tablename__ = "bill_items"

    id = Column(Integer, primary_key=True, index=True)
    bill_id = Column(Integer, ForeignKey("bills.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    po_item_id = Column(Integer, ForeignKey("purchase_order_items.id"), nullable=True, index=True)
    description = Column(String, nullable=True)
    quantity = Column(Numeric(15, 2), nullable=False)
    price_per_unit = Column(Numeric(15, 2), nullable=False)
    line_total = Column(Numeric(15, 2), nullable=False)
    tenant_id = Column(String, index=True)

    # Relationships
    bill = relationship("Bill", back_populates="items")
    product = relationship("Product")
