"""
Paired journal postings for intercompany documents.

Every intercompany money event is booked twice, once in each company, with the
same amount. Both entries go into the caller's transaction so they persist or
fail together.
"""
from decimal import Decimal
from datetime import date
from typing import NamedTuple
from sqlalchemy.orm import Session
import logging

from models.intercompany_transactions import IntercompanyTransaction, IntercompanyStatus, IntercompanyPaymentStatus
from models.journal_entry import JournalEntry
from models.chart_of_accounts import ChartOfAccounts
from models.invoices import Invoice, InvoiceStatus
from models.bills import Bill
from crud.financial_settings import (
    resolve_account,
    CASH,
    INTERCOMPANY_RECEIVABLE,
    INTERCOMPANY_PAYABLE,
    REVENUE,
    EXPENSE,
)
from crud.journal_entry import post_journal_entry
from crud.invoices import apply_invoice_payment
from crud.bills import apply_bill_payment
from exceptions import InvalidAmount

logger = logging.getLogger("intercompany")


class InvoicePostings(NamedTuple):
    source_entry: JournalEntry
    target_entry: JournalEntry


class PaymentPostings(NamedTuple):
    paying_entry: JournalEntry
    receiving_entry: JournalEntry
    paying_debit: ChartOfAccounts
    paying_credit: ChartOfAccounts
    receiving_debit: ChartOfAccounts
    receiving_credit: ChartOfAccounts


def _two_line_entry(debit_account: ChartOfAccounts, credit_account: ChartOfAccounts, amount: Decimal, description: str):
    return [
        {"account_id": debit_account.id, "debit": amount, "credit": 0, "description": description},
        {"account_id": credit_account.id, "debit": 0, "credit": amount, "description": description},
    ]


def post_intercompany_invoice(
    db: Session,
    transaction: IntercompanyTransaction,
    amount: Decimal,
    entry_date: date,
    actor_id: str = None,
) -> InvoicePostings:
    """
    Book an intercompany invoice in both companies.

    Source company: debit Intercompany Receivable, credit Revenue.
    Target company: debit Expense, credit Intercompany Payable.

    All four accounts are resolved before anything is posted, so a missing
    account (MissingRequiredAccount) leaves both ledgers untouched. On success
    the transaction is completed and linked to both entries.
    """
    if amount is None or amount <= 0:
        raise InvalidAmount(f"Intercompany invoice amount must be greater than zero, got {amount}.")

    receivable = resolve_account(db, transaction.source_company_id, INTERCOMPANY_RECEIVABLE)
    revenue = resolve_account(db, transaction.source_company_id, REVENUE)
    expense = resolve_account(db, transaction.target_company_id, EXPENSE)
    payable = resolve_account(db, transaction.target_company_id, INTERCOMPANY_PAYABLE)

    reference = transaction.reference_number
    source_entry = post_journal_entry(
        db,
        company_id=transaction.source_company_id,
        description=f"Intercompany sale to company {transaction.target_company_id} ({reference})",
        entry_date=entry_date,
        line_items=_two_line_entry(receivable, revenue, amount, "Intercompany invoice"),
        source_type="intercompany_invoice",
        source_id=transaction.id,
        actor_id=actor_id,
        reference=reference,
    )
    target_entry = post_journal_entry(
        db,
        company_id=transaction.target_company_id,
        description=f"Intercompany purchase from company {transaction.source_company_id} ({reference})",
        entry_date=entry_date,
        line_items=_two_line_entry(expense, payable, amount, "Intercompany bill"),
        source_type="intercompany_bill",
        source_id=transaction.id,
        actor_id=actor_id,
        reference=reference,
    )

    transaction.source_journal_entry_id = source_entry.id
    transaction.target_journal_entry_id = target_entry.id
    transaction.status = IntercompanyStatus.COMPLETED
    transaction.updated_by = actor_id
    db.flush()

    logger.info(f"Intercompany transaction {transaction.id} posted {amount}: {source_entry.entry_number} / {target_entry.entry_number}")
    return InvoicePostings(source_entry, target_entry)


def post_intercompany_payment(
    db: Session,
    transaction: IntercompanyTransaction,
    invoice: Invoice,
    bill: Bill,
    amount: Decimal,
    entry_date: date,
    actor_id: str = None,
) -> PaymentPostings:
    """
    Book an intercompany settlement in both companies and apply it to the invoice and bill.

    Paying (target) company: debit Intercompany Payable, credit Cash.
    Receiving (source) company: debit Cash, credit Intercompany Receivable.

    The transaction's amount_paid and payment_status move; its status does not.
    """
    if amount is None or amount <= 0:
        raise InvalidAmount(f"Intercompany payment amount must be greater than zero, got {amount}.")

    payer_payable = resolve_account(db, transaction.target_company_id, INTERCOMPANY_PAYABLE)
    payer_cash = resolve_account(db, transaction.target_company_id, CASH)
    receiver_cash = resolve_account(db, transaction.source_company_id, CASH)
    receiver_receivable = resolve_account(db, transaction.source_company_id, INTERCOMPANY_RECEIVABLE)

    # Balance checks first so an overpayment never reaches the ledger
    apply_invoice_payment(db, invoice, amount)
    apply_bill_payment(db, bill, amount)

    reference = transaction.reference_number
    paying_entry = post_journal_entry(
        db,
        company_id=transaction.target_company_id,
        description=f"Intercompany payment for bill {bill.bill_number} ({reference})",
        entry_date=entry_date,
        line_items=_two_line_entry(payer_payable, payer_cash, amount, "Intercompany payment"),
        source_type="intercompany_payment",
        source_id=transaction.id,
        actor_id=actor_id,
        reference=reference,
    )
    receiving_entry = post_journal_entry(
        db,
        company_id=transaction.source_company_id,
        description=f"Intercompany receipt for invoice {invoice.invoice_number} ({reference})",
        entry_date=entry_date,
        line_items=_two_line_entry(receiver_cash, receiver_receivable, amount, "Intercompany receipt"),
        source_type="intercompany_receipt",
        source_id=transaction.id,
        actor_id=actor_id,
        reference=reference,
    )

    transaction.amount_paid = (transaction.amount_paid or Decimal("0")) + amount
    if invoice.status == InvoiceStatus.PAID:
        transaction.payment_status = IntercompanyPaymentStatus.PAID
    else:
        transaction.payment_status = IntercompanyPaymentStatus.PARTIAL
    transaction.updated_by = actor_id
    db.flush()

    logger.info(
        f"Intercompany transaction {transaction.id} settled {amount} "
        f"({paying_entry.entry_number} / {receiving_entry.entry_number}); payment status {transaction.payment_status.value}"
    )
    return PaymentPostings(paying_entry, receiving_entry, payer_payable, payer_cash, receiver_cash, receiver_receivable)
