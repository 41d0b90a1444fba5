from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class FinancialSettings(Base, TimestampMixin):
    """Per-company account role overrides. A NULL role falls back to the default account code."""
    __tablename__ = "financial_settings"

    company_id = Column(Integer, ForeignKey("companies.id"), primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)

    # Account roles
    cash_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    accounts_receivable_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    accounts_payable_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    intercompany_receivable_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    intercompany_payable_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    revenue_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    expense_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)

    # Relationships
    cash_account = relationship("ChartOfAccounts", foreign_keys=[cash_account_id])
    accounts_receivable_account = relationship("ChartOfAccounts", foreign_keys=[accounts_receivable_account_id])
    accounts_payable_account = relationship("ChartOfAccounts", foreign_keys=[accounts_payable_account_id])
    intercompany_receivable_account = relationship("ChartOfAccounts", foreign_keys=[intercompany_receivable_account_id])
    intercompany_payable_account = relationship("ChartOfAccounts", foreign_keys=[intercompany_payable_account_id])
    revenue_account = relationship("ChartOfAccounts", foreign_keys=[revenue_account_id])
    expense_account = relationship("ChartOfAccounts", foreign_keys=[expense_account_id])
