from sqlalchemy.orm import Session, selectinload
from decimal import Decimal
from datetime import date, timedelta
from typing import Optional
import logging

from models.invoices import Invoice, InvoiceStatus
from models.invoice_items import InvoiceItem
from models.sales_orders import SalesOrder, SalesOrderStatus
from schemas.invoices import InvoiceCreate
from crud.sequences import next_document_number, INVOICE_PREFIX
from crud.sales_orders import get_sales_order
from crud.fulfillment import apply_partial_document
from crud.financial_settings import resolve_account, ACCOUNTS_RECEIVABLE, REVENUE
from crud.journal_entry import post_journal_entry
from crud.settlement import open_balance, settle
from exceptions import CreditExceedsBalance, DocumentLocked, NotFound, PaymentExceedsBalance
from utils.parsing import CENTS

logger = logging.getLogger("invoices")

DEFAULT_PAYMENT_TERMS_DAYS = 30

NON_INVOICEABLE_ORDER_STATUSES = (
    SalesOrderStatus.DRAFT,
    SalesOrderStatus.CANCELLED,
    SalesOrderStatus.CLOSED,
    SalesOrderStatus.RETURNED,
)


def check_order_invoiceable(sales_order: SalesOrder):
    if sales_order.status in NON_INVOICEABLE_ORDER_STATUSES:
        raise DocumentLocked(
            f"Sales order {sales_order.so_number} is {sales_order.status.value} and cannot be invoiced.",
            sales_order_id=sales_order.id,
        )


def create_invoice_document(
    db: Session,
    sales_order: SalesOrder,
    lines,
    invoice_date: date,
    due_date: Optional[date] = None,
    reference_number: Optional[str] = None,
    notes: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> Invoice:
    """Write an open invoice header and its lines for lines already validated by the fulfillment engine."""
    subtotal = sum((line["line_total"] for line in lines), Decimal("0"))
    sequence, invoice_number = next_document_number(db, Invoice, sales_order.company_id, INVOICE_PREFIX)

    db_invoice = Invoice(
        tenant_id=sales_order.tenant_id,
        company_id=sales_order.company_id,
        invoice_number=invoice_number,
        sequence=sequence,
        customer_id=sales_order.customer_id,
        sales_order_id=sales_order.id,
        invoice_date=invoice_date,
        due_date=due_date or invoice_date + timedelta(days=DEFAULT_PAYMENT_TERMS_DAYS),
        status=InvoiceStatus.OPEN,
        subtotal=subtotal,
        tax_amount=Decimal("0"),
        total=subtotal,
        amount_paid=Decimal("0"),
        amount_credited=Decimal("0"),
        balance_due=subtotal,
        reference_number=reference_number or sales_order.reference_number,
        notes=notes,
        created_by=actor_id,
    )
    db_invoice.items = [
        InvoiceItem(
            product_id=line["product_id"],
            so_item_id=line["so_item_id"],
            description=line["description"],
            quantity=line["quantity"],
            price_per_unit=line["price_per_unit"],
            line_total=line["line_total"],
            tenant_id=sales_order.tenant_id,
        )
        for line in lines
    ]
    db.add(db_invoice)
    db.flush()

    if sales_order.status in (SalesOrderStatus.OPEN, SalesOrderStatus.DELIVERED) and all(item.fully_invoiced for item in sales_order.items):
        sales_order.status = SalesOrderStatus.INVOICED
        db.flush()

    logger.info(f"Invoice {invoice_number} (ID: {db_invoice.id}) for {subtotal} created from Sales Order {sales_order.so_number} in company {sales_order.company_id}")
    return db_invoice


def create_invoice(db: Session, invoice_in: InvoiceCreate, tenant_id: str, actor_id: str = None) -> Invoice:
    """Invoice selected quantities of a sales order and post it: debit accounts receivable, credit revenue."""
    sales_order = get_sales_order(db, invoice_in.sales_order_id, tenant_id, lock=True)
    check_order_invoiceable(sales_order)

    lines = apply_partial_document(db, sales_order, invoice_in.items)
    invoice_date = invoice_in.invoice_date or date.today()
    db_invoice = create_invoice_document(
        db, sales_order, lines, invoice_date,
        due_date=invoice_in.due_date, notes=invoice_in.notes, actor_id=actor_id,
    )

    receivable = resolve_account(db, sales_order.company_id, ACCOUNTS_RECEIVABLE)
    revenue = resolve_account(db, sales_order.company_id, REVENUE)
    entry = post_journal_entry(
        db,
        company_id=sales_order.company_id,
        description=f"Invoice {db_invoice.invoice_number} for Sales Order {sales_order.so_number}",
        entry_date=invoice_date,
        line_items=[
            {"account_id": receivable.id, "debit": db_invoice.total, "credit": 0},
            {"account_id": revenue.id, "debit": 0, "credit": db_invoice.total},
        ],
        source_type="invoice",
        source_id=db_invoice.id,
        actor_id=actor_id,
        reference=db_invoice.invoice_number,
    )
    db_invoice.journal_entry_id = entry.id
    db.flush()
    return db_invoice


def apply_invoice_payment(db: Session, invoice: Invoice, amount: Decimal) -> Invoice:
    """
    Apply money received to an invoice.

    amount_paid grows by `amount`, balance_due is recomputed as
    total - amount_paid - amount_credited, and the status becomes paid once
    nothing is due, partial otherwise.
    """
    if invoice.status in (InvoiceStatus.VOID, InvoiceStatus.DRAFT):
        raise DocumentLocked(f"Invoice {invoice.invoice_number} is {invoice.status.value} and cannot take payments.")
    balance_due = open_balance(invoice)
    if amount > balance_due:
        raise PaymentExceedsBalance(
            f"Payment {amount} exceeds the balance due {balance_due} on invoice {invoice.invoice_number}.",
            balance_due=str(balance_due),
        )

    invoice.amount_paid = (invoice.amount_paid or Decimal("0")) + amount
    settle(invoice, InvoiceStatus)

    # Paid quantities follow the paid share of the invoice
    for item in invoice.items:
        if invoice.status == InvoiceStatus.PAID or invoice.total <= 0:
            item.paid_quantity = item.quantity
        else:
            item.paid_quantity = min(item.quantity, (item.quantity * invoice.amount_paid / invoice.total).quantize(CENTS))
        item.fully_paid = item.paid_quantity >= item.quantity

    db.flush()
    logger.info(f"Invoice {invoice.invoice_number} received {amount}; paid {invoice.amount_paid} of {invoice.total}, status {invoice.status.value}")
    return invoice


def apply_invoice_credit(db: Session, invoice: Invoice, amount: Decimal) -> Invoice:
    """Deduct a credit note from an invoice. Credits never exceed what is still due."""
    if invoice.status in (InvoiceStatus.VOID, InvoiceStatus.DRAFT):
        raise DocumentLocked(f"Invoice {invoice.invoice_number} is {invoice.status.value} and cannot be credited.")
    balance_due = open_balance(invoice)
    if amount > balance_due:
        raise CreditExceedsBalance(
            f"Credit {amount} exceeds the balance due {balance_due} on invoice {invoice.invoice_number}.",
            balance_due=str(balance_due),
        )

    invoice.amount_credited = (invoice.amount_credited or Decimal("0")) + amount
    settle(invoice, InvoiceStatus)
    db.flush()
    logger.info(f"Invoice {invoice.invoice_number} credited {amount}; balance due {invoice.balance_due}, status {invoice.status.value}")
    return invoice


def get_invoice(db: Session, invoice_id: int, tenant_id: str, lock: bool = False) -> Invoice:
    query = db.query(Invoice).options(selectinload(Invoice.items)).filter(
        Invoice.id == invoice_id,
        Invoice.tenant_id == tenant_id
    )
    if lock:
        query = query.with_for_update()
    db_invoice = query.first()
    if not db_invoice:
        raise NotFound("Invoice not found", resource="invoice", id=invoice_id)
    return db_invoice


def get_invoices(
    db: Session,
    tenant_id: str,
    company_id: Optional[int] = None,
    sales_order_id: Optional[int] = None,
    status: Optional[InvoiceStatus] = None,
    skip: int = 0,
    limit: int = 100
):
    query = db.query(Invoice).options(selectinload(Invoice.items)).filter(Invoice.tenant_id == tenant_id)
    if company_id:
        query = query.filter(Invoice.company_id == company_id)
    if sales_order_id:
        query = query.filter(Invoice.sales_order_id == sales_order_id)
    if status:
        query = query.filter(Invoice.status == status)
    return query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc()).offset(skip).limit(limit).all()
