from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class SalesOrderStatus(enum.Enum):
    DRAFT = "draft"
    OPEN = "open"
    DELIVERED = "delivered"
    INVOICED = "invoiced"
    PARTIAL = "partial"
    PAID = "paid"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    RETURNED = "returned"

# Statuses the payment roll-up must never overwrite
TERMINAL_SALES_ORDER_STATUSES = (
    SalesOrderStatus.CANCELLED,
    SalesOrderStatus.CLOSED,
    SalesOrderStatus.RETURNED,
)

class SalesOrder(Base, TimestampMixin):
    __tablename__ = "sales_orders"
    __table_args__ = (
        UniqueConstraint('company_id', 'sequence', name='_company_so_sequence_uc'),
        UniqueConstraint('company_id', 'so_number', name='_company_so_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    so_number = Column(String(20), nullable=False)  # SO00001, company scoped
    sequence = Column(Integer, nullable=False)
    customer_id = Column(Integer, ForeignKey("business_partners.id"), nullable=False)
    order_date = Column(Date, nullable=False)
    expected_date = Column(Date, nullable=True)
    total_amount = Column(Numeric(15, 2), default=0, nullable=False)
    total_amount_paid = Column(Numeric(15, 2), default=0, server_default='0', nullable=False)
    status = Column(Enum(SalesOrderStatus), default=SalesOrderStatus.DRAFT, nullable=False)
    reference_number = Column(String(100), nullable=True, index=True)
    notes = Column(Text, nullable=True)

    # Relationships
    customer = relationship("BusinessPartner", back_populates="sales_orders", foreign_keys=[customer_id])
    items = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.id",
    )
    invoices = relationship("Invoice", back_populates="sales_order")
    receipts = relationship("Receipt", back_populates="sales_order")
