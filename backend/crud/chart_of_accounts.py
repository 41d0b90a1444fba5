from sqlalchemy.orm import Session
from models.chart_of_accounts import ChartOfAccounts, AccountType
from models.companies import Company
from schemas.chart_of_accounts import ChartOfAccountsCreate, ChartOfAccountsUpdate
from crud.companies import get_company
from exceptions import NotFound, ValidationFailed
import logging

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNTS = [
    {"account_code": "1000", "account_name": "Cash", "account_type": AccountType.ASSET},
    {"account_code": "1100", "account_name": "Accounts Receivable", "account_type": AccountType.ASSET},
    {"account_code": "1150", "account_name": "Intercompany Receivable", "account_type": AccountType.ASSET},
    {"account_code": "1200", "account_name": "Inventory", "account_type": AccountType.ASSET},
    {"account_code": "2000", "account_name": "Accounts Payable", "account_type": AccountType.LIABILITY},
    {"account_code": "2150", "account_name": "Intercompany Payable", "account_type": AccountType.LIABILITY},
    {"account_code": "3000", "account_name": "Owner's Equity", "account_type": AccountType.EQUITY},
    {"account_code": "4000", "account_name": "Revenue", "account_type": AccountType.REVENUE},
    {"account_code": "5000", "account_name": "Expense", "account_type": AccountType.EXPENSE},
    {"account_code": "6000", "account_name": "Operating Expenses", "account_type": AccountType.EXPENSE},
]

def get_account_by_code(db: Session, company_id: int, account_code: str, active_only: bool = True):
    query = db.query(ChartOfAccounts).filter(
        ChartOfAccounts.account_code == account_code,
        ChartOfAccounts.company_id == company_id
    )
    if active_only:
        query = query.filter(ChartOfAccounts.is_active == True)
    return query.first()

def get_account(db: Session, account_id: int, tenant_id: str):
    account = db.query(ChartOfAccounts).filter(
        ChartOfAccounts.id == account_id,
        ChartOfAccounts.tenant_id == tenant_id
    ).first()
    if not account:
        raise NotFound(f"Account with id {account_id} not found", resource="account", id=account_id)
    return account

def get_accounts(db: Session, tenant_id: str, company_id: int = None, account_type: AccountType = None, skip: int = 0, limit: int = 100):
    query = db.query(ChartOfAccounts).filter(
        ChartOfAccounts.tenant_id == tenant_id,
        ChartOfAccounts.is_active == True
    )
    if company_id:
        query = query.filter(ChartOfAccounts.company_id == company_id)
    if account_type:
        query = query.filter(ChartOfAccounts.account_type == account_type)

    return query.order_by(ChartOfAccounts.company_id, ChartOfAccounts.account_code).offset(skip).limit(limit).all()

def create_account(db: Session, account: ChartOfAccountsCreate, tenant_id: str, actor_id: str = None):
    company = get_company(db, account.company_id, tenant_id)
    if get_account_by_code(db, company.id, account.account_code, active_only=False):
        raise ValidationFailed(f"Account with code {account.account_code} already exists in company {company.id}")

    level = 1
    if account.parent_id is not None:
        parent = db.query(ChartOfAccounts).filter(
            ChartOfAccounts.id == account.parent_id,
            ChartOfAccounts.company_id == company.id
        ).first()
        if not parent:
            raise NotFound(f"Parent account {account.parent_id} not found in company {company.id}")
        level = parent.level + 1

    db_account = ChartOfAccounts(**account.model_dump(), tenant_id=tenant_id, level=level, created_by=actor_id)
    db.add(db_account)
    db.flush()
    return db_account

def update_account(db: Session, account_id: int, account_update: ChartOfAccountsUpdate, tenant_id: str, actor_id: str = None):
    db_account = get_account(db, account_id, tenant_id)
    update_data = account_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_account, key, value)
    db_account.updated_by = actor_id
    db.flush()
    return db_account

def initialize_default_accounts(db: Session, company: Company):
    """Seed the default chart of accounts for a company. Existing codes are left alone."""
    for account_data in DEFAULT_ACCOUNTS:
        existing = get_account_by_code(db, company.id, account_data["account_code"], active_only=False)
        if not existing:
            db.add(ChartOfAccounts(**account_data, company_id=company.id, tenant_id=company.tenant_id))
    db.flush()
    logger.info(f"Default chart of accounts ready for company {company.id} (tenant {company.tenant_id})")
    return True
