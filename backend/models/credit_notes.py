from sqlalchemy import Column, Integer, Numeric, Date, String, ForeignKey, Text, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class CreditNoteStatus(enum.Enum):
    ISSUED = "issued"    # Posted, not tied to an invoice
    APPLIED = "applied"  # Posted and deducted from an invoice

class CreditNote(Base, TimestampMixin):
    __tablename__ = "credit_notes"
    __table_args__ = (
        UniqueConstraint('company_id', 'sequence', name='_company_credit_note_sequence_uc'),
        UniqueConstraint('company_id', 'credit_note_number', name='_company_credit_note_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    credit_note_number = Column(String(20), nullable=False)  # CN00001, company scoped
    sequence = Column(Integer, nullable=False)
    customer_id = Column(Integer, ForeignKey("business_partners.id"), nullable=False)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True, index=True)
    note_date = Column(Date, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(Enum(CreditNoteStatus), default=CreditNoteStatus.ISSUED, nullable=False)
    reference_number = Column(String(100), nullable=True, index=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="credit_notes")
    journal_entry = relationship("JournalEntry")
