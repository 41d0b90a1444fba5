"""
Company-scoped document numbering.

Numbers are `max(sequence) + 1` per company and document type, read while the
company row is locked so concurrent writers in the same company serialize.
The (company_id, sequence) unique constraints turn any race that slips through
into a DocumentNumberConflict when the transaction is flushed.
"""
from sqlalchemy import func
from sqlalchemy.orm import Session
from crud.companies import get_company

JOURNAL_ENTRY_PREFIX = "JE"
SALES_ORDER_PREFIX = "SO"
PURCHASE_ORDER_PREFIX = "PO"
INVOICE_PREFIX = "INV"
BILL_PREFIX = "BILL"
RECEIPT_PREFIX = "RC"
PAYMENT_PREFIX = "PAY"
CREDIT_NOTE_PREFIX = "CN"
DEBIT_NOTE_PREFIX = "DN"


def format_document_number(prefix: str, sequence: int) -> str:
    return f"{prefix}{sequence:05d}"


def next_document_number(db: Session, model, company_id: int, prefix: str):
    """Return (sequence, number) for the next document of `model` in the company.

    The caller must flush the new row before asking for another number of the
    same type within one transaction.
    """
    get_company(db, company_id, lock=True)
    last_sequence = db.query(func.max(model.sequence)).filter(model.company_id == company_id).scalar() or 0
    sequence = last_sequence + 1
    return sequence, format_document_number(prefix, sequence)
