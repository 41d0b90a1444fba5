from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class JournalEntry(Base, TimestampMixin):
    __tablename__ = "journal_entries"
    __table_args__ = (
        UniqueConstraint('company_id', 'sequence', name='_company_je_sequence_uc'),
        UniqueConstraint('company_id', 'entry_number', name='_company_je_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    entry_number = Column(String(20), nullable=False)  # JE00001, company scoped
    sequence = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=True)
    reference_document = Column(String, nullable=True)
    source_type = Column(String(50), nullable=True)  # e.g. receipt, payment, intercompany_invoice
    source_id = Column(Integer, nullable=True)
    is_posted = Column(Boolean, default=True, nullable=False)
    posted_date = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    items = relationship(
        "JournalItem",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        order_by="JournalItem.id",
    )
