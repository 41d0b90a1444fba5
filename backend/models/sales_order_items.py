from sqlalchemy import Column, Integer, Numeric, ForeignKey, String, Boolean
from sqlalchemy.orm import relationship
from database import Base

class SalesOrderItem(Base):
    __tablename__ = "sales_order_items"

    id = Column(Integer, primary_key=True, index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    description = Column(String, nullable=True)
    quantity = Column(Numeric(15, 2), nullable=False)
    price_per_unit = Column(Numeric(15, 2), nullable=False)
    line_total = Column(Numeric(15, 2), nullable=False)  # quantity * price_per_unit
    invoiced_quantity = Column(Numeric(15, 2), default=0, server_default='0', nullable=False)
    fully_invoiced = Column(Boolean, default=False, server_default='0', nullable=False)
    tenant_id = Column(String, index=True)

    # Relationships
    sales_order = relationship("SalesOrder", back_populates="items")
    product = relationship("Product")
