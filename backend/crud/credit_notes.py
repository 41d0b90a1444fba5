"""
Credit notes: reversing documents issued to a customer.

A credit note against an invoice reverses its share of the invoice's journal
entry (debit revenue, credit receivable) and lowers the invoice's balance due.
A credit note without an invoice posts the same pair through the company's
configured receivable and revenue accounts.
"""
from sqlalchemy.orm import Session
from decimal import Decimal
from datetime import date
from typing import Optional
import logging

from models.credit_notes import CreditNote, CreditNoteStatus
from models.invoices import Invoice
from schemas.credit_notes import CreditNoteCreate
from crud.companies import get_active_company
from crud.sales_orders import get_customer
from crud.invoices import get_invoice, apply_invoice_credit
from crud.financial_settings import resolve_account, ACCOUNTS_RECEIVABLE, REVENUE
from crud.journal_entry import post_journal_entry, get_journal_entry, reversing_lines
from crud.sequences import next_document_number, CREDIT_NOTE_PREFIX
from exceptions import InvalidAmount, NotFound, ValidationFailed

logger = logging.getLogger("credit_notes")


def issue_credit_note(
    db: Session,
    company_id: int,
    customer_id: int,
    amount: Decimal,
    reason: str,
    note_date: date,
    invoice: Optional[Invoice] = None,
    reference_number: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> CreditNote:
    """Post a credit note and write its row. The invoice, when given, must already be locked."""
    if amount is None or amount <= 0:
        raise InvalidAmount(f"Credit note amount must be greater than zero, got {amount}.", field="amount")

    if invoice is not None:
        apply_invoice_credit(db, invoice, amount)

    sequence, note_number = next_document_number(db, CreditNote, company_id, CREDIT_NOTE_PREFIX)
    if invoice is not None and invoice.journal_entry_id is not None:
        original = get_journal_entry(db, invoice.journal_entry_id, invoice.tenant_id)
        line_items = reversing_lines(original, amount, f"Credit note {note_number}")
        description = f"Credit note {note_number} against invoice {invoice.invoice_number}"
    else:
        receivable = resolve_account(db, company_id, ACCOUNTS_RECEIVABLE)
        revenue = resolve_account(db, company_id, REVENUE)
        line_items = [
            {"account_id": revenue.id, "debit": amount, "credit": 0, "description": f"Credit note {note_number}"},
            {"account_id": receivable.id, "debit": 0, "credit": amount, "description": f"Credit note {note_number}"},
        ]
        description = f"Credit note {note_number}"

    entry = post_journal_entry(
        db,
        company_id=company_id,
        description=f"{description}: {reason}",
        entry_date=note_date,
        line_items=line_items,
        source_type="credit_note",
        actor_id=actor_id,
        reference=note_number,
    )
    db_note = CreditNote(
        tenant_id=entry.tenant_id,
        company_id=company_id,
        credit_note_number=note_number,
        sequence=sequence,
        customer_id=customer_id,
        invoice_id=invoice.id if invoice is not None else None,
        note_date=note_date,
        amount=amount,
        reason=reason,
        status=CreditNoteStatus.APPLIED if invoice is not None else CreditNoteStatus.ISSUED,
        reference_number=reference_number or (invoice.reference_number if invoice is not None else None),
        journal_entry_id=entry.id,
        created_by=actor_id,
    )
    db.add(db_note)
    db.flush()
    entry.source_id = db_note.id
    db.flush()

    logger.info(f"Credit note {note_number} (ID: {db_note.id}) of {amount} issued in company {company_id} by {actor_id}")
    return db_note


def create_credit_note(db: Session, note_in: CreditNoteCreate, tenant_id: str, actor_id: str = None) -> CreditNote:
    company = get_active_company(db, note_in.company_id, tenant_id)
    get_customer(db, note_in.customer_id, company.id)

    invoice = None
    if note_in.invoice_id is not None:
        invoice = get_invoice(db, note_in.invoice_id, tenant_id, lock=True)
        if invoice.company_id != company.id:
            raise ValidationFailed(f"Invoice {invoice.invoice_number} does not belong to company {company.id}.")
        if invoice.customer_id != note_in.customer_id:
            raise ValidationFailed(f"Customer {note_in.customer_id} is not the customer on invoice {invoice.invoice_number}.")

    return issue_credit_note(
        db,
        company_id=company.id,
        customer_id=note_in.customer_id,
        amount=note_in.amount,
        reason=note_in.reason,
        note_date=note_in.note_date or date.today(),
        invoice=invoice,
        reference_number=note_in.reference_number,
        actor_id=actor_id,
    )


def get_credit_note(db: Session, note_id: int, tenant_id: str) -> CreditNote:
    db_note = db.query(CreditNote).filter(
        CreditNote.id == note_id,
        CreditNote.tenant_id == tenant_id
    ).first()
    if not db_note:
        raise NotFound("Credit note not found", resource="credit_note", id=note_id)
    return db_note


def get_credit_notes(
    db: Session,
    tenant_id: str,
    company_id: Optional[int] = None,
    invoice_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100
):
    query = db.query(CreditNote).filter(CreditNote.tenant_id == tenant_id)
    if company_id:
        query = query.filter(CreditNote.company_id == company_id)
    if invoice_id:
        query = query.filter(CreditNote.invoice_id == invoice_id)
    return query.order_by(CreditNote.note_date.desc(), CreditNote.id.desc()).offset(skip).limit(limit).all()
