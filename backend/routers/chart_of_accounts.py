from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from database import get_db, atomic
from schemas.chart_of_accounts import ChartOfAccounts, ChartOfAccountsCreate, ChartOfAccountsUpdate
from models.chart_of_accounts import AccountType
from crud import chart_of_accounts as crud_accounts
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(
    prefix="/chart-of-accounts",
    tags=["Chart of Accounts"],
)
logger = logging.getLogger("chart_of_accounts")

@router.post("/", response_model=ChartOfAccounts, status_code=status.HTTP_201_CREATED)
def create_account(
    account: ChartOfAccountsCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    with atomic(db):
        db_account = crud_accounts.create_account(db, account, tenant_id, actor_id)
    logger.info(f"Account {db_account.account_code} created in company {db_account.company_id} for tenant {tenant_id}")
    return db_account

@router.get("/", response_model=List[ChartOfAccounts])
def read_accounts(
    company_id: Optional[int] = None,
    account_type: Optional[AccountType] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return crud_accounts.get_accounts(db, tenant_id, company_id=company_id, account_type=account_type, skip=skip, limit=limit)

@router.get("/{account_id}", response_model=ChartOfAccounts)
def read_account(
    account_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return crud_accounts.get_account(db, account_id, tenant_id)

@router.patch("/{account_id}", response_model=ChartOfAccounts)
def update_account(
    account_id: int,
    account: ChartOfAccountsUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    with atomic(db):
        db_account = crud_accounts.update_account(db, account_id, account, tenant_id, actor_id)
    return db_account
