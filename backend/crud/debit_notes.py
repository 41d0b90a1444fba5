"""
Debit notes: reversing documents raised against a vendor.

Mirror of credit notes on the purchasing side. Against a bill the note
reverses its share of the bill's entry (debit payable, credit expense) and
lowers the bill's balance due.
"""
from sqlalchemy.orm import Session
from decimal import Decimal
from datetime import date
from typing import Optional
import logging

from models.debit_notes import DebitNote, DebitNoteStatus
from models.bills import Bill
from schemas.debit_notes import DebitNoteCreate
from crud.companies import get_active_company
from crud.purchase_orders import get_vendor
from crud.bills import get_bill, apply_bill_credit
from crud.financial_settings import resolve_account, ACCOUNTS_PAYABLE, EXPENSE
from crud.journal_entry import post_journal_entry, get_journal_entry, reversing_lines
from crud.sequences import next_document_number, DEBIT_NOTE_PREFIX
from exceptions import InvalidAmount, NotFound, ValidationFailed

logger = logging.getLogger("debit_notes")


def issue_debit_note(
    db: Session,
    company_id: int,
    vendor_id: int,
    amount: Decimal,
    reason: str,
    note_date: date,
    bill: Optional[Bill] = None,
    reference_number: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> DebitNote:
    if amount is None or amount <= 0:
        raise InvalidAmount(f"Debit note amount must be greater than zero, got {amount}.", field="amount")

    if bill is not None:
        apply_bill_credit(db, bill, amount)

    sequence, note_number = next_document_number(db, DebitNote, company_id, DEBIT_NOTE_PREFIX)
    if bill is not None and bill.journal_entry_id is not None:
        original = get_journal_entry(db, bill.journal_entry_id, bill.tenant_id)
        line_items = reversing_lines(original, amount, f"Debit note {note_number}")
        description = f"Debit note {note_number} against bill {bill.bill_number}"
    else:
        payable = resolve_account(db, company_id, ACCOUNTS_PAYABLE)
        expense = resolve_account(db, company_id, EXPENSE)
        line_items = [
            {"account_id": payable.id, "debit": amount, "credit": 0, "description": f"Debit note {note_number}"},
            {"account_id": expense.id, "debit": 0, "credit": amount, "description": f"Debit note {note_number}"},
        ]
        description = f"Debit note {note_number}"

    entry = post_journal_entry(
        db,
        company_id=company_id,
        description=f"{description}: {reason}",
        entry_date=note_date,
        line_items=line_items,
        source_type="debit_note",
        actor_id=actor_id,
        reference=note_number,
    )
    db_note = DebitNote(
        tenant_id=entry.tenant_id,
        company_id=company_id,
        debit_note_number=note_number,
        sequence=sequence,
        vendor_id=vendor_id,
        bill_id=bill.id if bill is not None else None,
        note_date=note_date,
        amount=amount,
        reason=reason,
        status=DebitNoteStatus.APPLIED if bill is not None else DebitNoteStatus.ISSUED,
        reference_number=reference_number or (bill.reference_number if bill is not None else None),
        journal_entry_id=entry.id,
        created_by=actor_id,
    )
    db.add(db_note)
    db.flush()
    entry.source_id = db_note.id
    db.flush()

    logger.info(f"Debit note {note_number} (ID: {db_note.id}) of {amount} raised in company {company_id} by {actor_id}")
    return db_note


def create_debit_note(db: Session, note_in: DebitNoteCreate, tenant_id: str, actor_id: str = None) -> DebitNote:
    company = get_active_company(db, note_in.company_id, tenant_id)
    get_vendor(db, note_in.vendor_id, company.id)

    bill = None
    if note_in.bill_id is not None:
        bill = get_bill(db, note_in.bill_id, tenant_id, lock=True)
        if bill.company_id != company.id:
            raise ValidationFailed(f"Bill {bill.bill_number} does not belong to company {company.id}.")
        if bill.vendor_id != note_in.vendor_id:
            raise ValidationFailed(f"Vendor {note_in.vendor_id} is not the vendor on bill {bill.bill_number}.")

    return issue_debit_note(
        db,
        company_id=company.id,
        vendor_id=note_in.vendor_id,
        amount=note_in.amount,
        reason=note_in.reason,
        note_date=note_in.note_date or date.today(),
        bill=bill,
        reference_number=note_in.reference_number,
        actor_id=actor_id,
    )


def get_debit_note(db: Session, note_id: int, tenant_id: str) -> DebitNote:
    db_note = db.query(DebitNote).filter(
        DebitNote.id == note_id,
        DebitNote.tenant_id == tenant_id
    ).first()
    if not db_note:
        raise NotFound("Debit note not found", resource="debit_note", id=note_id)
    return db_note


def get_debit_notes(
    db: Session,
    tenant_id: str,
    company_id: Optional[int] = None,
    bill_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100
):
    query = db.query(DebitNote).filter(DebitNote.tenant_id == tenant_id)
    if company_id:
        query = query.filter(DebitNote.company_id == company_id)
    if bill_id:
        query = query.filter(DebitNote.bill_id == bill_id)
    return query.order_by(DebitNote.note_date.desc(), DebitNote.id.desc()).offset(skip).limit(limit).all()
