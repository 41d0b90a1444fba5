from sqlalchemy import func
from sqlalchemy.orm import Session
from decimal import Decimal
import logging

from models.intercompany_transactions import IntercompanyTransaction, IntercompanyStatus
from models.invoices import Invoice, InvoiceStatus
from models.bills import Bill, BillStatus
from models.companies import Company
from schemas.audit_log import AuditLogCreate
from crud.audit_log import create_audit_log
from crud.companies import get_company
from crud.financial_settings import resolve_account, INTERCOMPANY_RECEIVABLE, INTERCOMPANY_PAYABLE
from exceptions import MissingRequiredAccount
from utils import sqlalchemy_to_dict
from utils.parsing import CENTS

logger = logging.getLogger("intercompany")


def cancel_pending_transactions(db: Session, tenant_id: str, reference_number: str, order_column: str, order_id: int, actor_id: str = None):
    """
    Cancel the pending intercompany transactions of a cancelled order.

    `order_column` is `source_order_id` for a sales order and `target_order_id`
    for a purchase order. Completed transactions already carry posted journal
    entries and are left alone.
    """
    if not reference_number:
        return []

    transactions = db.query(IntercompanyTransaction).filter(
        IntercompanyTransaction.tenant_id == tenant_id,
        IntercompanyTransaction.reference_number == reference_number,
        getattr(IntercompanyTransaction, order_column) == str(order_id),
        IntercompanyTransaction.status == IntercompanyStatus.PENDING
    ).with_for_update().all()

    for transaction in transactions:
        old_values = sqlalchemy_to_dict(transaction)
        transaction.status = IntercompanyStatus.CANCELLED
        transaction.updated_by = actor_id
        db.flush()
        create_audit_log(db, AuditLogCreate(
            tenant_id=tenant_id,
            table_name="intercompany_transactions",
            record_id=transaction.id,
            changed_by=actor_id or "system",
            action="CANCEL",
            old_values=old_values,
            new_values=sqlalchemy_to_dict(transaction),
        ))
        logger.info(f"Intercompany transaction {transaction.id} ({reference_number}) cancelled with its {order_column} {order_id} by {actor_id}")
    return transactions


def get_intercompany_balances(db: Session, tenant_id: str, company_id: int) -> dict:
    """
    What the company is owed by and owes to each sibling company.

    Receivable is the open balance of invoices the company issued on intercompany
    transactions; payable is the open balance of the mirrored bills it received.
    The ledger balances of the intercompany receivable and payable accounts are
    reported alongside when those accounts exist.
    """
    company = get_company(db, company_id, tenant_id)

    receivable_rows = db.query(
        IntercompanyTransaction.target_company_id, func.coalesce(func.sum(Invoice.balance_due), 0)
    ).join(Invoice, Invoice.id == IntercompanyTransaction.source_invoice_id).filter(
        IntercompanyTransaction.tenant_id == tenant_id,
        IntercompanyTransaction.source_company_id == company.id,
        IntercompanyTransaction.status == IntercompanyStatus.COMPLETED,
        Invoice.status != InvoiceStatus.VOID
    ).group_by(IntercompanyTransaction.target_company_id).all()
    payable_rows = db.query(
        IntercompanyTransaction.source_company_id, func.coalesce(func.sum(Bill.balance_due), 0)
    ).join(Bill, Bill.id == IntercompanyTransaction.target_bill_id).filter(
        IntercompanyTransaction.tenant_id == tenant_id,
        IntercompanyTransaction.target_company_id == company.id,
        IntercompanyTransaction.status == IntercompanyStatus.COMPLETED,
        Bill.status != BillStatus.VOID
    ).group_by(IntercompanyTransaction.source_company_id).all()

    receivable = {counterparty: Decimal(str(amount)).quantize(CENTS) for counterparty, amount in receivable_rows}
    payable = {counterparty: Decimal(str(amount)).quantize(CENTS) for counterparty, amount in payable_rows}
    counterparty_ids = sorted(set(receivable) | set(payable))
    names = dict(db.query(Company.id, Company.name).filter(Company.id.in_(counterparty_ids)).all()) if counterparty_ids else {}

    counterparties = []
    for counterparty_id in counterparty_ids:
        owed_to_us = receivable.get(counterparty_id, Decimal("0"))
        owed_by_us = payable.get(counterparty_id, Decimal("0"))
        counterparties.append({
            "company_id": counterparty_id,
            "company_name": names.get(counterparty_id, ""),
            "receivable": owed_to_us,
            "payable": owed_by_us,
            "net": owed_to_us - owed_by_us,
        })

    total_receivable = sum((row["receivable"] for row in counterparties), Decimal("0"))
    total_payable = sum((row["payable"] for row in counterparties), Decimal("0"))
    return {
        "company_id": company.id,
        "counterparties": counterparties,
        "total_receivable": total_receivable,
        "total_payable": total_payable,
        "net": total_receivable - total_payable,
        "receivable_ledger_balance": _ledger_balance(db, company.id, INTERCOMPANY_RECEIVABLE),
        "payable_ledger_balance": _ledger_balance(db, company.id, INTERCOMPANY_PAYABLE),
    }


def _ledger_balance(db: Session, company_id: int, role):
    try:
        return resolve_account(db, company_id, role).balance
    except MissingRequiredAccount:
        logger.info(f"Company {company_id} has no {role.purpose} account; ledger balance not reported")
        return None


def get_receipt_eligible_transactions(db: Session, tenant_id: str, company_id: int):
    """Completed intercompany transactions where the company is the seller and the invoice still has money due."""
    company = get_company(db, company_id, tenant_id)
    rows = db.query(IntercompanyTransaction, Invoice).join(
        Invoice, Invoice.id == IntercompanyTransaction.source_invoice_id
    ).filter(
        IntercompanyTransaction.tenant_id == tenant_id,
        IntercompanyTransaction.source_company_id == company.id,
        IntercompanyTransaction.status == IntercompanyStatus.COMPLETED,
        Invoice.balance_due > 0,
        Invoice.status.notin_([InvoiceStatus.PAID, InvoiceStatus.VOID, InvoiceStatus.DRAFT])
    ).order_by(Invoice.due_date, IntercompanyTransaction.id).all()

    return [
        {
            "transaction": transaction,
            "invoice": invoice,
            "counterparty_company_id": transaction.target_company_id,
            "balance_due": invoice.balance_due,
        }
        for transaction, invoice in rows
    ]
