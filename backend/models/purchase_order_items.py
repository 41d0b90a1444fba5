from sqlalchemy import Column, Integer, Numeric, ForeignKey, String, Boolean
from sqlalchemy.orm import relationship
from database import Base

class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    description = Column(String, nullable=True)
    quantity = Column(Numeric(15, 2), nullable=False)
    price_per_unit = Column(Numeric(15, 2), nullable=False)
    line_total = Column(Numeric(15, 2), nullable=False)  # quantity * price_per_unit
    billed_quantity = Column(Numeric(15, 2), default=0, server_default='0', nullable=False)
    fully_billed = Column(Boolean, default=False, server_default='0', nullable=False)
    tenant_id = Column(String, index=True)

    # Relationships
    purchase_order = relationship("PurchaseOrder", back_populates="items")
    product = relationship("Product")
