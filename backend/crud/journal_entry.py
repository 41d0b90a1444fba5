"""
The ledger primitive.

`post_journal_entry` is the only code path that writes journal entries or
changes an account balance. It adds rows to the caller's session and flushes;
committing (or rolling back) the surrounding unit of work is the caller's job,
which is what lets a workflow post several entries atomically.
"""
from sqlalchemy.orm import Session, selectinload
from decimal import Decimal, InvalidOperation
from typing import Optional
from datetime import date
import logging

from models.journal_entry import JournalEntry
from models.journal_item import JournalItem
from models.chart_of_accounts import ChartOfAccounts
from models.audit_mixin import now_local
from schemas.journal_entry import JournalEntryCreate
from schemas.audit_log import AuditLogCreate
from crud.audit_log import create_audit_log
from crud.sequences import next_document_number, JOURNAL_ENTRY_PREFIX
from crud.companies import get_company
from exceptions import AccountNotFound, NotFound, UnbalancedEntryError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _line_value(line, key, default=None):
    if isinstance(line, dict):
        return line.get(key, default)
    return getattr(line, key, default)


def _line_amount(value, label: str) -> Decimal:
    try:
        amount = Decimal(str(value)) if value is not None else Decimal("0")
    except InvalidOperation:
        raise UnbalancedEntryError(f"{label} '{value}' is not a valid amount.")
    if not amount.is_finite() or amount < 0:
        raise UnbalancedEntryError(f"{label} must be a finite, non-negative amount, got {amount}.")
    if amount != amount.quantize(CENTS):
        raise UnbalancedEntryError(f"{label} allows at most 2 decimal places, got {amount}.")
    return amount.quantize(CENTS)


def _normalize_lines(line_items):
    if not line_items or len(line_items) < 2:
        raise UnbalancedEntryError("A journal entry needs at least two lines.")

    lines = []
    total_debit = Decimal("0.00")
    total_credit = Decimal("0.00")
    for index, line in enumerate(line_items, start=1):
        debit = _line_amount(_line_value(line, "debit"), f"Line {index} debit")
        credit = _line_amount(_line_value(line, "credit"), f"Line {index} credit")
        if (debit > 0) == (credit > 0):
            raise UnbalancedEntryError(f"Line {index} must have exactly one of debit or credit greater than zero.")
        lines.append({
            "account_id": _line_value(line, "account_id"),
            "description": _line_value(line, "description"),
            "debit": debit,
            "credit": credit,
        })
        total_debit += debit
        total_credit += credit

    if total_debit != total_credit:
        raise UnbalancedEntryError(
            f"Debits ({total_debit}) do not equal credits ({total_credit}).",
            total_debit=str(total_debit),
            total_credit=str(total_credit),
        )
    return lines


def _lock_accounts(db: Session, company_id: int, account_ids):
    """Lock every referenced account in id order. Raises AccountNotFound."""
    accounts = {}
    for account_id in sorted(set(account_ids), key=lambda v: (v is None, v)):
        account = None
        if account_id is not None:
            account = db.query(ChartOfAccounts).filter(
                ChartOfAccounts.id == account_id,
                ChartOfAccounts.company_id == company_id,
                ChartOfAccounts.is_active == True
            ).with_for_update().first()
        if not account:
            raise AccountNotFound(
                f"Account {account_id} does not exist or is inactive in company {company_id}.",
                account_id=account_id,
                company_id=company_id,
            )
        accounts[account_id] = account
    return accounts


def post_journal_entry(
    db: Session,
    company_id: int,
    description: str,
    entry_date: date,
    line_items,
    source_type: Optional[str] = None,
    source_id: Optional[int] = None,
    actor_id: Optional[str] = None,
    reference: Optional[str] = None,
) -> JournalEntry:
    """
    Post a balanced journal entry and apply it to the account balances.

    Args:
        line_items: dicts or objects with account_id, debit, credit and an optional description.

    Raises:
        UnbalancedEntryError: fewer than two lines, a line with both or neither side set,
            or total debits different from total credits.
        AccountNotFound: an account is missing, inactive or belongs to another company.
    """
    lines = _normalize_lines(line_items)
    company = get_company(db, company_id)
    accounts = _lock_accounts(db, company.id, [line["account_id"] for line in lines])

    sequence, entry_number = next_document_number(db, JournalEntry, company.id, JOURNAL_ENTRY_PREFIX)
    db_entry = JournalEntry(
        tenant_id=company.tenant_id,
        company_id=company.id,
        entry_number=entry_number,
        sequence=sequence,
        date=entry_date,
        description=description,
        reference_document=reference,
        source_type=source_type,
        source_id=source_id,
        is_posted=True,
        posted_date=now_local(),
        created_by=actor_id,
    )
    db.add(db_entry)
    db.flush()  # Flush to get the ID for the parent entry before creating children

    for line in lines:
        db.add(JournalItem(**line, journal_entry_id=db_entry.id, tenant_id=company.tenant_id))
        account = accounts[line["account_id"]]
        if account.is_debit_normal:
            delta = line["debit"] - line["credit"]
        else:
            delta = line["credit"] - line["debit"]
        account.balance = (account.balance or Decimal("0")) + delta

    db.flush()

    total = sum(line["debit"] for line in lines)
    create_audit_log(db, AuditLogCreate(
        tenant_id=company.tenant_id,
        table_name="journal_entries",
        record_id=db_entry.id,
        changed_by=actor_id or "system",
        action="POST",
        new_values={"entry_number": entry_number, "total": str(total), "source_type": source_type, "source_id": source_id},
    ))
    logger.info(f"Journal entry {entry_number} (ID: {db_entry.id}) posted for company {company.id}: {total} across {len(lines)} lines")
    return db_entry


def _scaled_side(items, side: str, amount: Decimal, entry_total: Decimal):
    lines = []
    for item in items:
        value = getattr(item, side) or Decimal("0")
        if value > 0:
            lines.append({"account_id": item.account_id, "value": (value * amount / entry_total).quantize(CENTS)})
    lines = [line for line in lines if line["value"] > 0]
    if lines:
        # Rounding residue lands on the last line so the side sums to `amount`
        lines[-1]["value"] += amount - sum(line["value"] for line in lines)
    return lines


def reversing_lines(entry: JournalEntry, amount: Decimal, description: str):
    """
    Lines that reverse `amount` of a posted entry.

    Every original debit becomes a credit and every credit a debit, each scaled
    by amount / entry total. Reversing the full total mirrors the entry exactly.
    """
    entry_total = sum((item.debit or Decimal("0") for item in entry.items), Decimal("0"))
    if entry_total <= 0:
        raise UnbalancedEntryError(f"Journal entry {entry.entry_number} has nothing to reverse.")
    if amount > entry_total:
        raise UnbalancedEntryError(
            f"Cannot reverse {amount} of journal entry {entry.entry_number}, which totals {entry_total}.",
            entry_total=str(entry_total),
        )
    debits = _scaled_side(entry.items, "credit", amount, entry_total)
    credits = _scaled_side(entry.items, "debit", amount, entry_total)
    return (
        [{"account_id": line["account_id"], "debit": line["value"], "credit": 0, "description": description} for line in debits]
        + [{"account_id": line["account_id"], "debit": 0, "credit": line["value"], "description": description} for line in credits]
    )


def create_journal_entry(db: Session, entry: JournalEntryCreate, tenant_id: str, actor_id: str = None) -> JournalEntry:
    """Manual journal entry posted through the API."""
    company = get_company(db, entry.company_id, tenant_id)
    return post_journal_entry(
        db,
        company_id=company.id,
        description=entry.description,
        entry_date=entry.date,
        line_items=entry.items,
        source_type="manual",
        actor_id=actor_id,
        reference=entry.reference_document,
    )


def get_journal_entry(db: Session, entry_id: int, tenant_id: str) -> JournalEntry:
    """
    Retrieves a single journal entry by its ID.
    """
    entry = db.query(JournalEntry).options(selectinload(JournalEntry.items)).filter(
        JournalEntry.id == entry_id,
        JournalEntry.tenant_id == tenant_id
    ).first()
    if not entry:
        raise NotFound("Journal entry not found", resource="journal_entry", id=entry_id)
    return entry


def get_journal_entries(
    db: Session,
    tenant_id: str,
    company_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100
):
    """
    Retrieves a list of journal entries with optional company and date filtering.
    """
    query = db.query(JournalEntry).options(selectinload(JournalEntry.items)).filter(
        JournalEntry.tenant_id == tenant_id
    )

    if company_id:
        query = query.filter(JournalEntry.company_id == company_id)
    if start_date:
        query = query.filter(JournalEntry.date >= start_date)
    if end_date:
        query = query.filter(JournalEntry.date <= end_date)

    return query.order_by(JournalEntry.date.desc(), JournalEntry.id.desc()).offset(skip).limit(limit).all()
