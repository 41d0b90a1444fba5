from sqlalchemy import Column, Integer, Numeric, Date, String, ForeignKey, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Receipt(Base, TimestampMixin):
    __tablename__ = "receipts"
    __table_args__ = (
        UniqueConstraint('company_id', 'sequence', name='_company_receipt_sequence_uc'),
        UniqueConstraint('company_id', 'receipt_number', name='_company_receipt_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    receipt_number = Column(String(20), nullable=False)  # RC00001, company scoped
    sequence = Column(Integer, nullable=False)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id"), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("business_partners.id"), nullable=False)
    receipt_date = Column(Date, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_method = Column(String, nullable=True)  # e.g., "Cash", "Bank Transfer", "Cheque"
    reference = Column(String, nullable=True)  # Cheque number, transaction ID etc.
    reference_number = Column(String(100), nullable=True, index=True)
    is_partial_payment = Column(Boolean, default=False, nullable=False)
    debit_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=False)
    credit_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=False)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    sales_order = relationship("SalesOrder", back_populates="receipts")
    invoice = relationship("Invoice", back_populates="receipts")
    journal_entry = relationship("JournalEntry")
