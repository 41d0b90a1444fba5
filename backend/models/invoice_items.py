from sqlalchemy import Column, Integer, Numeric, ForeignKey, String, Boolean
from sqlalchemy.orm import relationship
from database import Base

class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    # Back-reference to the order line this quantity was drawn from
    so_item_id = Column(Integer, ForeignKey("sales_order_items.id"), nullable=True, index=True)
    description = Column(String, nullable=True)
    quantity = Column(Numeric(15, 2), nullable=False)
    price_per_unit = Column(Numeric(15, 2), nullable=False)
    line_total = Column(Numeric(15, 2), nullable=False)
    paid_quantity = Column(Numeric(15, 2), default=0, server_default='0', nullable=False)
    fully_paid = Column(Boolean, default=False, server_default='0', nullable=False)
    tenant_id = Column(String, index=True)

    # Relationships
    invoice = relationship("Invoice", back_populates="items")
    product = relationship("Product")
