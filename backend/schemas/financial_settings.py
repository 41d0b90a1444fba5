from pydantic import BaseModel
from typing import Optional

class FinancialSettingsBase(BaseModel):
    cash_account_id: Optional[int] = None
    accounts_receivable_account_id: Optional[int] = None
    accounts_payable_account_id: Optional[int] = None
    intercompany_receivable_account_id: Optional[int] = None
    intercompany_payable_account_id: Optional[int] = None
    revenue_account_id: Optional[int] = None
    expense_account_id: Optional[int] = None

class FinancialSettingsUpdate(FinancialSettingsBase):
    pass

class FinancialSettings(FinancialSettingsBase):
    company_id: int
    tenant_id: str

    class Config:
        from_attributes = True
