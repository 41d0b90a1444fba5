from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from decimal import Decimal
from models.chart_of_accounts import AccountType

class ChartOfAccountsBase(BaseModel):
    account_code: str
    account_name: str
    account_type: AccountType
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool = True

class ChartOfAccountsCreate(ChartOfAccountsBase):
    company_id: int

class ChartOfAccountsUpdate(BaseModel):
    account_name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

class ChartOfAccounts(ChartOfAccountsBase):
    id: int
    tenant_id: str
    company_id: int
    level: int
    balance: Decimal
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
