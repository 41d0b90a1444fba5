from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class PurchaseOrderStatus(enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    PROCESSING = "processing"
    RECEIVED = "received"
    CANCELLED = "cancelled"

class PurchaseOrder(Base, TimestampMixin):
    __tablename__ = "purchase_orders"
    __table_args__ = (
        UniqueConstraint('company_id', 'sequence', name='_company_po_sequence_uc'),
        UniqueConstraint('company_id', 'po_number', name='_company_po_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    po_number = Column(String(20), nullable=False)  # PO00001, company scoped
    sequence = Column(Integer, nullable=False)
    vendor_id = Column(Integer, ForeignKey("business_partners.id"), nullable=False)
    order_date = Column(Date, nullable=False)
    expected_date = Column(Date, nullable=True)
    total_amount = Column(Numeric(15, 2), default=0, nullable=False)
    total_amount_paid = Column(Numeric(15, 2), default=0, server_default='0', nullable=False)
    status = Column(Enum(PurchaseOrderStatus), default=PurchaseOrderStatus.DRAFT, nullable=False)
    reference_number = Column(String(100), nullable=True, index=True)
    notes = Column(Text, nullable=True)

    # Relationships
    vendor = relationship("BusinessPartner", back_populates="purchase_orders", foreign_keys=[vendor_id])
    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )
    bills = relationship("Bill", back_populates="purchase_order")
