from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, Boolean, Index, text
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class IntercompanyStatus(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class IntercompanyPaymentStatus(enum.Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"

class IntercompanyTransaction(Base, TimestampMixin):
    __tablename__ = "intercompany_transactions"
    __table_args__ = (
        # One base row per reference; later partial invoices add child rows
        Index(
            "_intercompany_base_reference_uq",
            "tenant_id",
            "reference_number",
            unique=True,
            postgresql_where=text("parent_transaction_id IS NULL"),
            sqlite_where=text("parent_transaction_id IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    source_company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    target_company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(15, 2), nullable=False)
    transaction_date = Column(Date, nullable=False)
    reference_number = Column(String(100), nullable=True, index=True)
    parent_transaction_id = Column(Integer, ForeignKey("intercompany_transactions.id"), nullable=True, index=True)

    # Legacy rows may hold free-text order identifiers, hence String
    source_order_id = Column(String(50), nullable=True, index=True)
    target_order_id = Column(String(50), nullable=True, index=True)
    source_invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True)
    target_bill_id = Column(Integer, ForeignKey("bills.id"), nullable=True)
    source_receipt_id = Column(Integer, ForeignKey("receipts.id"), nullable=True)
    target_payment_id = Column(Integer, ForeignKey("payments.id"), nullable=True)
    source_journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    target_journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)

    is_partial_invoice = Column(Boolean, default=False, nullable=False)
    status = Column(Enum(IntercompanyStatus), default=IntercompanyStatus.PENDING, nullable=False)
    payment_status = Column(Enum(IntercompanyPaymentStatus), default=IntercompanyPaymentStatus.PENDING, nullable=False)
    amount_paid = Column(Numeric(15, 2), default=0, server_default='0', nullable=False)
