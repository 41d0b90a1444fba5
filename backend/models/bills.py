from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class BillStatus(enum.Enum):
    DRAFT = "draft"
    OPEN = "open"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    VOID = "void"

class Bill(Base, TimestampMixin):
    __tablename__ = "bills"
    __table_args__ = (
        UniqueConstraint('company_id', 'sequence', name='_company_bill_sequence_uc'),
        UniqueConstraint('company_id', 'bill_number', name='_company_bill_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    bill_number = Column(String(20), nullable=False)  # BILL00001, company scoped
    sequence = Column(Integer, nullable=False)
    vendor_id = Column(Integer, ForeignKey("business_partners.id"), nullable=False)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=True, index=True)
    bill_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(Enum(BillStatus), default=BillStatus.OPEN, nullable=False)
    subtotal = Column(Numeric(15, 2), default=0, nullable=False)
    tax_amount = Column(Numeric(15, 2), default=0, nullable=False)
    total = Column(Numeric(15, 2), default=0, nullable=False)
    amount_paid = Column(Numeric(15, 2), default=0, server_default='0', nullable=False)
    amount_credited = Column(Numeric(15, 2), default=0, server_default='0', nullable=False)  # credit or debit notes
    balance_due = Column(Numeric(15, 2), default=0, nullable=False)  # total - amount_paid - amount_credited
    reference_number = Column(String(100), nullable=True, index=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    vendor = relationship("BusinessPartner", foreign_keys=[vendor_id])
    purchase_order = relationship("PurchaseOrder", back_populates="bills")
    items = relationship(
        "BillItem",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillItem.id",
    )
    payments = relationship("Payment", back_populates="bill")
    debit_notes = relationship("DebitNote", back_populates="bill")
