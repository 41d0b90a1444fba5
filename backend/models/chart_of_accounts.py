from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class AccountType(enum.Enum):
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"

DEBIT_NORMAL_TYPES = (AccountType.ASSET, AccountType.EXPENSE)

class ChartOfAccounts(Base, TimestampMixin):
    __tablename__ = "chart_of_accounts"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    account_code = Column(String(20), nullable=False, index=True)
    account_name = Column(String(100), nullable=False)
    account_type = Column(Enum(AccountType), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    level = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    # Running balance in the account's normal direction; written only by journal posting
    balance = Column(Numeric(15, 2), default=0, server_default='0', nullable=False)

    # Relationships
    company = relationship("Company", back_populates="accounts")
    parent = relationship("ChartOfAccounts", remote_side=[id])

    __table_args__ = (
        UniqueConstraint('company_id', 'account_code', name='_company_account_code_uc'),
    )

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in DEBIT_NORMAL_TYPES
