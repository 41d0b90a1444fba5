from sqlalchemy import Column, Integer, Numeric, Date, String, ForeignKey, Text, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class DebitNoteStatus(enum.Enum):
    ISSUED = "issued"
    APPLIED = "applied"

class DebitNote(Base, TimestampMixin):
    """A claim on a vendor (returns, price corrections) that lowers what the company owes."""
    __tablename__ = "debit_notes"
    __table_args__ = (
        UniqueConstraint('company_id', 'sequence', name='_company_debit_note_sequence_uc'),
        UniqueConstraint('company_id', 'debit_note_number', name='_company_debit_note_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    debit_note_number = Column(String(20), nullable=False)  # DN00001, company scoped
    sequence = Column(Integer, nullable=False)
    vendor_id = Column(Integer, ForeignKey("business_partners.id"), nullable=False)
    bill_id = Column(Integer, ForeignKey("bills.id"), nullable=True, index=True)
    note_date = Column(Date, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(Enum(DebitNoteStatus), default=DebitNoteStatus.ISSUED, nullable=False)
    reference_number = Column(String(100), nullable=True, index=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)

    # Relationships
    bill = relationship("Bill", back_populates="debit_notes")
    journal_entry = relationship("JournalEntry")
