"""
Intercompany invoice, settlement and adjustment workflows.

Each function runs one business operation across both companies inside the
caller's transaction and checks its Deadline between steps.
"""
from sqlalchemy.orm import Session
from datetime import date
import logging

from models.intercompany_transactions import IntercompanyTransaction, IntercompanyStatus, IntercompanyPaymentStatus
from models.invoices import InvoiceStatus
from models.receipts import Receipt
from models.payments import Payment
from schemas.intercompany import IntercompanyAdjustmentCreate, IntercompanyInvoiceCreate, IntercompanyReceiptPaymentCreate
from crud.sales_orders import get_sales_order, update_sales_order_payment_status
from crud.purchase_orders import get_purchase_order, update_purchase_order_paid_amount
from crud.invoices import check_order_invoiceable, create_invoice_document, get_invoice
from crud.bills import check_order_billable, create_bill_document, get_bill
from crud.receipts import record_receipt
from crud.payments import record_payment
from crud.credit_notes import issue_credit_note
from crud.debit_notes import issue_debit_note
from crud.fulfillment import (
    apply_partial_document,
    apply_to_purchase_order,
    get_order_remaining,
    selections_for_amount,
    selections_for_full_remaining,
)
from crud.intercompany_linker import find_transaction_for_order
from crud.intercompany_journal import post_intercompany_invoice, post_intercompany_payment
from crud.sequences import next_document_number, RECEIPT_PREFIX, PAYMENT_PREFIX
from exceptions import DocumentLocked, NotFound, ValidationFailed
from utils.deadline import Deadline
from utils.parsing import parse_order_id

logger = logging.getLogger("intercompany")


def _transaction_for_invoice(db: Session, base: IntercompanyTransaction, actor_id: str) -> IntercompanyTransaction:
    """The order's transaction row on first invoice; a sibling row with the same linkage afterwards."""
    if base.source_invoice_id is None:
        return base
    sibling = IntercompanyTransaction(
        tenant_id=base.tenant_id,
        source_company_id=base.source_company_id,
        target_company_id=base.target_company_id,
        description=base.description,
        amount=base.amount,
        transaction_date=date.today(),
        reference_number=base.reference_number,
        parent_transaction_id=base.parent_transaction_id or base.id,
        source_order_id=base.source_order_id,
        target_order_id=base.target_order_id,
        status=IntercompanyStatus.PENDING,
        payment_status=IntercompanyPaymentStatus.PENDING,
        created_by=actor_id,
    )
    db.add(sibling)
    db.flush()
    return sibling


def _owns_sales_order(transaction: IntercompanyTransaction, sales_order) -> bool:
    """Whether `transaction` was created for `sales_order`, not merely matched by a loose order-id rule."""
    if sales_order.reference_number and sales_order.reference_number == transaction.reference_number:
        return True
    try:
        return parse_order_id(transaction.source_order_id, field="source_order_id") == sales_order.id
    except ValidationFailed:
        return False


def create_intercompany_invoice(
    db: Session,
    request: IntercompanyInvoiceCreate,
    tenant_id: str,
    actor_id: str = None,
    deadline: Deadline = None,
) -> dict:
    """
    Invoice an intercompany sales order and bill its mirrored purchase order.

    The selection is `items` when given, the proportional split of
    `partial_amount` when given, and otherwise every remaining quantity. The
    invoice and bill are booked in both ledgers and the transaction completed.
    """
    deadline = deadline or Deadline("create_intercompany_invoice")
    sales_order = get_sales_order(db, request.sales_order_id, tenant_id, lock=True)
    if sales_order.company_id != request.company_id:
        raise ValidationFailed(
            f"Sales order {sales_order.so_number} does not belong to company {request.company_id}.",
            sales_order_id=sales_order.id,
        )
    check_order_invoiceable(sales_order)

    deadline.check("locate intercompany transaction")
    base = find_transaction_for_order(
        db, tenant_id, sales_order.id,
        reference_number=sales_order.reference_number,
        company_id=sales_order.company_id,
    )
    if not _owns_sales_order(base, sales_order):
        raise NotFound(
            f"Sales order {sales_order.so_number} is not part of an intercompany transaction.",
            resource="intercompany_transaction",
            order_id=str(sales_order.id),
        )
    if base.source_company_id != sales_order.company_id:
        raise ValidationFailed(f"Company {sales_order.company_id} is the purchasing side of transaction {base.id}.")
    if base.status == IntercompanyStatus.CANCELLED:
        raise DocumentLocked(
            f"Intercompany transaction {base.reference_number} is cancelled.",
            transaction_id=base.id,
        )
    try:
        purchase_order_id = parse_order_id(base.target_order_id, field="target_order_id")
    except ValidationFailed:
        raise NotFound(
            f"Intercompany transaction {base.id} has no usable purchase order link ('{base.target_order_id}').",
            resource="purchase_order",
        )
    purchase_order = get_purchase_order(db, purchase_order_id, tenant_id, lock=True)
    if purchase_order.company_id != base.target_company_id:
        raise NotFound(
            f"Purchase order {purchase_order.po_number} is not the mirrored order of transaction {base.id}.",
            resource="purchase_order",
        )
    check_order_billable(purchase_order)

    deadline.check("select quantities")
    remaining = get_order_remaining(db, sales_order)["lines"]
    if request.items is not None:
        selections = request.items
    elif request.partial_amount is not None:
        selections = selections_for_amount(remaining, request.partial_amount)
    else:
        selections = selections_for_full_remaining(remaining)

    processed = apply_partial_document(db, sales_order, selections)
    billed = apply_to_purchase_order(db, purchase_order, processed)

    deadline.check("create invoice and bill")
    document_date = request.invoice_date or date.today()
    invoice = create_invoice_document(
        db, sales_order, processed, document_date,
        due_date=request.due_date, reference_number=base.reference_number, actor_id=actor_id,
    )
    bill = create_bill_document(
        db, purchase_order, billed, document_date,
        due_date=request.due_date, reference_number=base.reference_number, actor_id=actor_id,
    )

    transaction = _transaction_for_invoice(db, base, actor_id)
    transaction.amount = invoice.total
    transaction.source_invoice_id = invoice.id
    transaction.target_bill_id = bill.id
    transaction.is_partial_invoice = invoice.total < sales_order.total_amount
    transaction.transaction_date = document_date
    db.flush()

    deadline.check("post journal entries")
    postings = post_intercompany_invoice(db, transaction, invoice.total, document_date, actor_id)
    invoice.journal_entry_id = postings.source_entry.id
    bill.journal_entry_id = postings.target_entry.id
    db.flush()

    deadline.check("finish")
    logger.info(
        f"Intercompany invoice {invoice.invoice_number} / bill {bill.bill_number} for {invoice.total} "
        f"on {transaction.reference_number} (partial: {transaction.is_partial_invoice}) by {actor_id}"
    )
    return {
        "is_partial": transaction.is_partial_invoice,
        "invoice": invoice,
        "bill": bill,
        "transaction": transaction,
        "source_journal_entry_id": postings.source_entry.id,
        "target_journal_entry_id": postings.target_entry.id,
    }


def create_intercompany_receipt_payment(
    db: Session,
    request: IntercompanyReceiptPaymentCreate,
    tenant_id: str,
    actor_id: str = None,
    deadline: Deadline = None,
) -> dict:
    """
    Settle an intercompany invoice: a payment in the target company and the matching receipt in the source company.
    """
    deadline = deadline or Deadline("create_intercompany_receipt_payment")
    invoice = get_invoice(db, request.invoice_id, tenant_id, lock=True)
    if invoice.company_id != request.company_id:
        raise ValidationFailed(f"Invoice {invoice.invoice_number} does not belong to company {request.company_id}.")
    if invoice.status == InvoiceStatus.PAID:
        raise ValidationFailed(f"Invoice {invoice.invoice_number} is already paid.")

    transaction = db.query(IntercompanyTransaction).filter(
        IntercompanyTransaction.tenant_id == tenant_id,
        IntercompanyTransaction.source_invoice_id == invoice.id
    ).with_for_update().first()
    if transaction is None or transaction.target_bill_id is None:
        raise NotFound(f"Invoice {invoice.invoice_number} is not linked to an intercompany bill.", resource="intercompany_transaction")
    bill = get_bill(db, transaction.target_bill_id, tenant_id, lock=True)

    deadline.check("post journal entries")
    payment_date = request.payment_date or date.today()
    postings = post_intercompany_payment(db, transaction, invoice, bill, request.amount, payment_date, actor_id)

    deadline.check("record receipt and payment")
    receipt_sequence, receipt_number = next_document_number(db, Receipt, transaction.source_company_id, RECEIPT_PREFIX)
    receipt = record_receipt(
        db,
        tenant_id=tenant_id,
        company_id=transaction.source_company_id,
        sequence=receipt_sequence,
        receipt_number=receipt_number,
        sales_order_id=invoice.sales_order_id,
        customer_id=invoice.customer_id,
        receipt_date=payment_date,
        amount=request.amount,
        debit_account_id=postings.receiving_debit.id,
        credit_account_id=postings.receiving_credit.id,
        journal_entry_id=postings.receiving_entry.id,
        invoice_id=invoice.id,
        payment_method=request.payment_method,
        reference=request.reference,
        reference_number=transaction.reference_number,
        is_partial_payment=invoice.status != InvoiceStatus.PAID,
        actor_id=actor_id,
    )
    payment_sequence, payment_number = next_document_number(db, Payment, transaction.target_company_id, PAYMENT_PREFIX)
    payment = record_payment(
        db,
        tenant_id=tenant_id,
        company_id=transaction.target_company_id,
        sequence=payment_sequence,
        payment_number=payment_number,
        bill_id=bill.id,
        vendor_id=bill.vendor_id,
        payment_date=payment_date,
        amount=request.amount,
        debit_account_id=postings.paying_debit.id,
        credit_account_id=postings.paying_credit.id,
        journal_entry_id=postings.paying_entry.id,
        purchase_order_id=bill.purchase_order_id,
        payment_method=request.payment_method,
        reference=request.reference,
        reference_number=transaction.reference_number,
        is_partial_payment=invoice.status != InvoiceStatus.PAID,
        actor_id=actor_id,
    )
    transaction.source_receipt_id = receipt.id
    transaction.target_payment_id = payment.id

    if invoice.sales_order_id:
        update_sales_order_payment_status(db, invoice.sales_order_id)
    if bill.purchase_order_id:
        update_purchase_order_paid_amount(db, bill.purchase_order_id)
    db.flush()

    deadline.check("finish")
    logger.info(
        f"Intercompany settlement of {request.amount} on {transaction.reference_number}: "
        f"receipt {receipt_number} (company {transaction.source_company_id}), payment {payment_number} (company {transaction.target_company_id})"
    )
    return {
        "receipt": receipt,
        "payment": payment,
        "invoice": invoice,
        "bill": bill,
        "transaction": transaction,
    }


def create_intercompany_adjustment(
    db: Session,
    request: IntercompanyAdjustmentCreate,
    tenant_id: str,
    actor_id: str = None,
    deadline: Deadline = None,
) -> dict:
    """
    Reduce an intercompany invoice and its mirrored bill by the same amount.

    The selling company issues a credit note against the invoice and the buying
    company raises a debit note against the bill, both under the transaction's
    reference number.
    """
    deadline = deadline or Deadline("create_intercompany_adjustment")
    invoice = get_invoice(db, request.invoice_id, tenant_id, lock=True)
    if invoice.company_id != request.company_id:
        raise ValidationFailed(f"Invoice {invoice.invoice_number} does not belong to company {request.company_id}.")

    transaction = db.query(IntercompanyTransaction).filter(
        IntercompanyTransaction.tenant_id == tenant_id,
        IntercompanyTransaction.source_invoice_id == invoice.id
    ).with_for_update().first()
    if transaction is None or transaction.target_bill_id is None:
        raise NotFound(f"Invoice {invoice.invoice_number} is not linked to an intercompany bill.", resource="intercompany_transaction")
    bill = get_bill(db, transaction.target_bill_id, tenant_id, lock=True)

    deadline.check("issue credit note")
    note_date = request.adjustment_date or date.today()
    credit_note = issue_credit_note(
        db,
        company_id=transaction.source_company_id,
        customer_id=invoice.customer_id,
        amount=request.amount,
        reason=request.reason,
        note_date=note_date,
        invoice=invoice,
        reference_number=transaction.reference_number,
        actor_id=actor_id,
    )

    deadline.check("raise debit note")
    debit_note = issue_debit_note(
        db,
        company_id=transaction.target_company_id,
        vendor_id=bill.vendor_id,
        amount=request.amount,
        reason=request.reason,
        note_date=note_date,
        bill=bill,
        reference_number=transaction.reference_number,
        actor_id=actor_id,
    )

    if invoice.status == InvoiceStatus.PAID:
        transaction.payment_status = IntercompanyPaymentStatus.PAID
    transaction.updated_by = actor_id
    db.flush()

    deadline.check("finish")
    logger.info(
        f"Intercompany adjustment of {request.amount} on {transaction.reference_number}: "
        f"credit note {credit_note.credit_note_number} / debit note {debit_note.debit_note_number} by {actor_id}"
    )
    return {
        "credit_note": credit_note,
        "debit_note": debit_note,
        "invoice": invoice,
        "bill": bill,
        "transaction": transaction,
    }
