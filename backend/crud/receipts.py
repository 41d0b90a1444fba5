from sqlalchemy.orm import Session
from decimal import Decimal
from datetime import date
from typing import Optional
import logging

from models.receipts import Receipt
from models.sales_orders import SalesOrderStatus
from schemas.receipts import ReceiptCreate
from crud.companies import get_active_company
from crud.sales_orders import get_sales_order, update_sales_order_payment_status
from crud.invoices import get_invoice, apply_invoice_payment
from crud.journal_entry import post_journal_entry
from crud.sequences import next_document_number, RECEIPT_PREFIX
from exceptions import DocumentLocked, ValidationFailed

logger = logging.getLogger("receipts")


def record_receipt(
    db: Session,
    tenant_id: str,
    company_id: int,
    sequence: int,
    receipt_number: str,
    sales_order_id: int,
    customer_id: int,
    receipt_date: date,
    amount: Decimal,
    debit_account_id: int,
    credit_account_id: int,
    journal_entry_id: int,
    invoice_id: Optional[int] = None,
    payment_method: Optional[str] = None,
    reference: Optional[str] = None,
    reference_number: Optional[str] = None,
    is_partial_payment: bool = False,
    notes: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> Receipt:
    """Persist a receipt row for a journal entry that has already been posted."""
    db_receipt = Receipt(
        tenant_id=tenant_id,
        company_id=company_id,
        receipt_number=receipt_number,
        sequence=sequence,
        sales_order_id=sales_order_id,
        invoice_id=invoice_id,
        customer_id=customer_id,
        receipt_date=receipt_date,
        amount=amount,
        payment_method=payment_method,
        reference=reference,
        reference_number=reference_number,
        is_partial_payment=is_partial_payment,
        debit_account_id=debit_account_id,
        credit_account_id=credit_account_id,
        journal_entry_id=journal_entry_id,
        notes=notes,
        created_by=actor_id,
    )
    db.add(db_receipt)
    db.flush()
    return db_receipt


def create_receipt(db: Session, receipt_in: ReceiptCreate, tenant_id: str, actor_id: str = None) -> Receipt:
    """
    Record money received against a sales order.

    Posts debit cash/bank, credit accounts receivable, writes the receipt that
    references the entry, applies the amount to the invoice when one is named,
    then rolls the payment status up onto the sales order.
    """
    company = get_active_company(db, receipt_in.company_id, tenant_id)
    sales_order = get_sales_order(db, receipt_in.sales_order_id, tenant_id, lock=True)
    if sales_order.company_id != company.id:
        raise ValidationFailed(f"Sales order {sales_order.id} does not belong to company {company.id}.")
    if sales_order.customer_id != receipt_in.customer_id:
        raise ValidationFailed(f"Customer {receipt_in.customer_id} is not the customer on sales order {sales_order.so_number}.")
    if sales_order.status in (SalesOrderStatus.DRAFT, SalesOrderStatus.CANCELLED):
        raise DocumentLocked(f"Sales order {sales_order.so_number} is {sales_order.status.value} and cannot take receipts.")

    invoice = None
    if receipt_in.invoice_id is not None:
        invoice = get_invoice(db, receipt_in.invoice_id, tenant_id, lock=True)
        if invoice.sales_order_id != sales_order.id:
            raise ValidationFailed(f"Invoice {invoice.invoice_number} was not issued for sales order {sales_order.so_number}.")

    outstanding = sales_order.total_amount - (sales_order.total_amount_paid or Decimal("0"))
    receipt_date = receipt_in.receipt_date or date.today()
    sequence, receipt_number = next_document_number(db, Receipt, company.id, RECEIPT_PREFIX)

    entry = post_journal_entry(
        db,
        company_id=company.id,
        description=f"Receipt {receipt_number} for Sales Order {sales_order.so_number}",
        entry_date=receipt_date,
        line_items=[
            {"account_id": receipt_in.debit_account_id, "debit": receipt_in.amount, "credit": 0},
            {"account_id": receipt_in.credit_account_id, "debit": 0, "credit": receipt_in.amount},
        ],
        source_type="receipt",
        actor_id=actor_id,
        reference=receipt_number,
    )
    db_receipt = record_receipt(
        db,
        tenant_id=tenant_id,
        company_id=company.id,
        sequence=sequence,
        receipt_number=receipt_number,
        sales_order_id=sales_order.id,
        customer_id=receipt_in.customer_id,
        receipt_date=receipt_date,
        amount=receipt_in.amount,
        debit_account_id=receipt_in.debit_account_id,
        credit_account_id=receipt_in.credit_account_id,
        journal_entry_id=entry.id,
        invoice_id=invoice.id if invoice else None,
        payment_method=receipt_in.payment_method,
        reference=receipt_in.reference,
        reference_number=receipt_in.reference_number or sales_order.reference_number,
        is_partial_payment=receipt_in.amount < outstanding,
        notes=receipt_in.notes,
        actor_id=actor_id,
    )
    entry.source_id = db_receipt.id
    db.flush()

    if invoice is not None:
        apply_invoice_payment(db, invoice, receipt_in.amount)
    update_sales_order_payment_status(db, sales_order.id)

    logger.info(f"Receipt {receipt_number} (ID: {db_receipt.id}) of {receipt_in.amount} recorded for Sales Order {sales_order.so_number} by {actor_id} for tenant {tenant_id}")
    return db_receipt


def get_receipts_for_order(db: Session, sales_order_id: int, tenant_id: str):
    get_sales_order(db, sales_order_id, tenant_id)
    return db.query(Receipt).filter(
        Receipt.sales_order_id == sales_order_id,
        Receipt.tenant_id == tenant_id
    ).order_by(Receipt.receipt_date, Receipt.id).all()
