from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db, atomic
from models.intercompany_transactions import IntercompanyStatus
from schemas.intercompany import (
    IntercompanyTransaction,
    IntercompanySalesOrderCreate,
    IntercompanySalesOrderResult,
    IntercompanyInvoiceCreate,
    IntercompanyInvoiceResult,
    IntercompanyReceiptPaymentCreate,
    IntercompanyReceiptPaymentResult,
    IntercompanyAdjustmentCreate,
    IntercompanyAdjustmentResult,
    IntercompanyBalances,
    ReceiptEligibleTransaction,
)
from crud import intercompany_linker, intercompany_transactions, intercompany_workflow
from utils.deadline import Deadline
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(prefix="/intercompany", tags=["Intercompany"])
logger = logging.getLogger("intercompany")

@router.post("/sales-orders", response_model=IntercompanySalesOrderResult, status_code=status.HTTP_201_CREATED)
def create_intercompany_sales_order(
    request: IntercompanySalesOrderCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """
    Create a sales order in the selling company and the matching purchase order in the buying company.
    Both orders share one reference number and are linked by a pending intercompany transaction.
    """
    deadline = Deadline("create_intercompany_sales_order")
    with atomic(db):
        result = intercompany_linker.create_intercompany_sales_order(db, request, tenant_id, actor_id, deadline)
    return result

@router.post("/invoices", response_model=IntercompanyInvoiceResult, status_code=status.HTTP_201_CREATED)
def create_intercompany_invoice(
    request: IntercompanyInvoiceCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """
    Invoice an intercompany sales order (fully, by amount, or by selected lines) and create the mirrored bill.
    Journal entries are posted in both companies; any failure leaves nothing behind.
    """
    deadline = Deadline("create_intercompany_invoice")
    with atomic(db):
        result = intercompany_workflow.create_intercompany_invoice(db, request, tenant_id, actor_id, deadline)
    return result

@router.post("/receipt-payments", response_model=IntercompanyReceiptPaymentResult, status_code=status.HTTP_201_CREATED)
def create_intercompany_receipt_payment(
    request: IntercompanyReceiptPaymentCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Settle an intercompany invoice: payment in the buying company, receipt in the selling company."""
    deadline = Deadline("create_intercompany_receipt_payment")
    with atomic(db):
        result = intercompany_workflow.create_intercompany_receipt_payment(db, request, tenant_id, actor_id, deadline)
    return result

@router.post("/adjustments", response_model=IntercompanyAdjustmentResult, status_code=status.HTTP_201_CREATED)
def create_intercompany_adjustment(
    request: IntercompanyAdjustmentCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Credit an intercompany invoice and debit-note its mirrored bill by the same amount."""
    deadline = Deadline("create_intercompany_adjustment")
    with atomic(db):
        result = intercompany_workflow.create_intercompany_adjustment(db, request, tenant_id, actor_id, deadline)
    return result

@router.get("/balances", response_model=IntercompanyBalances)
def read_intercompany_balances(company_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    """Open intercompany receivables and payables of a company, per sibling company."""
    return intercompany_transactions.get_intercompany_balances(db, tenant_id, company_id)

@router.get("/receipt-eligible", response_model=List[ReceiptEligibleTransaction])
def list_receipt_eligible_transactions(company_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return intercompany_transactions.get_receipt_eligible_transactions(db, tenant_id, company_id)

@router.get("/transactions", response_model=List[IntercompanyTransaction])
def list_intercompany_transactions(
    company_id: Optional[int] = None,
    status: Optional[IntercompanyStatus] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return intercompany_linker.get_intercompany_transactions(db, tenant_id, company_id=company_id, status=status, skip=skip, limit=limit)

@router.get("/transactions/by-order/{order_id}", response_model=IntercompanyTransaction)
def find_transaction_for_order(
    order_id: str,
    reference_number: Optional[str] = None,
    company_id: Optional[int] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Locate the intercompany transaction behind an order id, e.g. `42` or `IC-42`."""
    return intercompany_linker.find_transaction_for_order(
        db, tenant_id, order_id, reference_number=reference_number, company_id=company_id
    )

@router.get("/transactions/{transaction_id}", response_model=IntercompanyTransaction)
def read_intercompany_transaction(transaction_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return intercompany_linker.get_intercompany_transaction(db, transaction_id, tenant_id)
