from sqlalchemy import Column, Integer, Numeric, Date, String, ForeignKey, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Payment(Base, TimestampMixin):
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint('company_id', 'sequence', name='_company_payment_sequence_uc'),
        UniqueConstraint('company_id', 'payment_number', name='_company_payment_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    payment_number = Column(String(20), nullable=False)  # PAY00001, company scoped
    sequence = Column(Integer, nullable=False)
    bill_id = Column(Integer, ForeignKey("bills.id"), nullable=False, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=True, index=True)
    vendor_id = Column(Integer, ForeignKey("business_partners.id"), nullable=False)
    payment_date = Column(Date, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_method = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    reference_number = Column(String(100), nullable=True, index=True)
    is_partial_payment = Column(Boolean, default=False, nullable=False)
    debit_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=False)
    credit_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=False)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    bill = relationship("Bill", back_populates="payments")
    journal_entry = relationship("JournalEntry")
