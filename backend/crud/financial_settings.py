"""
Per-company account roles.

Posting code never hard-wires an account id. It asks for a role (cash,
accounts receivable, intercompany payable, ...) and gets either the account
configured in `financial_settings` for that company or, when the role is not
configured, the account carrying the role's conventional code.
"""
from typing import NamedTuple
from sqlalchemy.orm import Session
from models.financial_settings import FinancialSettings
from models.chart_of_accounts import ChartOfAccounts, AccountType
from schemas.financial_settings import FinancialSettingsUpdate
from crud.chart_of_accounts import get_account_by_code
from crud.companies import get_company
from exceptions import MissingRequiredAccount, ValidationFailed
import logging

logger = logging.getLogger(__name__)


class AccountRole(NamedTuple):
    field: str
    code: str
    purpose: str
    account_type: AccountType


CASH = AccountRole("cash_account_id", "1000", "Cash", AccountType.ASSET)
ACCOUNTS_RECEIVABLE = AccountRole("accounts_receivable_account_id", "1100", "Accounts Receivable", AccountType.ASSET)
ACCOUNTS_PAYABLE = AccountRole("accounts_payable_account_id", "2000", "Accounts Payable", AccountType.LIABILITY)
INTERCOMPANY_RECEIVABLE = AccountRole("intercompany_receivable_account_id", "1150", "Intercompany Receivable", AccountType.ASSET)
INTERCOMPANY_PAYABLE = AccountRole("intercompany_payable_account_id", "2150", "Intercompany Payable", AccountType.LIABILITY)
REVENUE = AccountRole("revenue_account_id", "4000", "Revenue", AccountType.REVENUE)
EXPENSE = AccountRole("expense_account_id", "5000", "Expense", AccountType.EXPENSE)

ACCOUNT_ROLES = [CASH, ACCOUNTS_RECEIVABLE, ACCOUNTS_PAYABLE, INTERCOMPANY_RECEIVABLE, INTERCOMPANY_PAYABLE, REVENUE, EXPENSE]


def get_financial_settings(db: Session, company_id: int, tenant_id: str) -> FinancialSettings:
    company = get_company(db, company_id, tenant_id)
    settings = db.query(FinancialSettings).filter(FinancialSettings.company_id == company.id).first()

    if not settings:
        logger.info(f"No financial settings found for company {company.id}. Creating an empty role map.")
        settings = FinancialSettings(company_id=company.id, tenant_id=company.tenant_id)
        db.add(settings)
        db.flush()

    return settings


def resolve_account(db: Session, company_id: int, role: AccountRole) -> ChartOfAccounts:
    """Return the active account filling `role` for the company or raise MissingRequiredAccount."""
    settings = db.query(FinancialSettings).filter(FinancialSettings.company_id == company_id).first()
    configured_id = getattr(settings, role.field) if settings else None

    if configured_id:
        account = db.query(ChartOfAccounts).filter(
            ChartOfAccounts.id == configured_id,
            ChartOfAccounts.company_id == company_id
        ).first()
        if not account or not account.is_active:
            code = account.account_code if account else str(configured_id)
            raise MissingRequiredAccount(code, role.purpose, company_id)
        return account

    account = get_account_by_code(db, company_id, role.code)
    if not account:
        raise MissingRequiredAccount(role.code, role.purpose, company_id)
    return account


def update_financial_settings(db: Session, company_id: int, settings_update: FinancialSettingsUpdate, tenant_id: str, actor_id: str) -> FinancialSettings:
    settings = get_financial_settings(db, company_id, tenant_id)
    update_data = settings_update.model_dump(exclude_unset=True)
    expected_types = {role.field: role.account_type for role in ACCOUNT_ROLES}

    # Validate that accounts belong to the company and have the role's account type
    for field, account_id in update_data.items():
        if account_id is not None:
            account = db.query(ChartOfAccounts).filter(
                ChartOfAccounts.id == account_id,
                ChartOfAccounts.company_id == company_id
            ).first()
            if not account:
                raise ValidationFailed(f"Account ID {account_id} not found for company {company_id}.")

            expected_type = expected_types[field]
            if account.account_type != expected_type:
                raise ValidationFailed(
                    f"Account for '{field}' must be of type '{expected_type.value}', but got '{account.account_type.value}'."
                )

    for key, value in update_data.items():
        setattr(settings, key, value)

    settings.updated_by = actor_id
    db.flush()
    logger.info(f"Financial settings for company {company_id} updated by {actor_id}: {sorted(update_data)}")
    return settings
