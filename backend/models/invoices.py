from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class InvoiceStatus(enum.Enum):
    DRAFT = "draft"
    OPEN = "open"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    VOID = "void"

class Invoice(Base, TimestampMixin):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint('company_id', 'sequence', name='_company_invoice_sequence_uc'),
        UniqueConstraint('company_id', 'invoice_number', name='_company_invoice_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    invoice_number = Column(String(20), nullable=False)  # INV00001, company scoped
    sequence = Column(Integer, nullable=False)
    customer_id = Column(Integer, ForeignKey("business_partners.id"), nullable=False)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id"), nullable=True, index=True)
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(Enum(InvoiceStatus), default=InvoiceStatus.OPEN, nullable=False)
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
    customer = relationship("BusinessPartner", foreign_keys=[customer_id])
    sales_order = relationship("SalesOrder", back_populates="invoices")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )
    receipts = relationship("Receipt", back_populates="invoice")
    credit_notes = relationship("CreditNote", back_populates="invoice")
