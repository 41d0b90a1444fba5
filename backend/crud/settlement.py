"""
Balance rule shared by invoices and bills.

A document is settled by money (amount_paid) and by credit or debit notes
(amount_credited). balance_due is always total - amount_paid - amount_credited.
"""
from decimal import Decimal


def open_balance(document) -> Decimal:
    return document.total - (document.amount_paid or Decimal("0")) - (document.amount_credited or Decimal("0"))


def settle(document, status_enum):
    """Recompute balance_due and move the status to paid or partial."""
    document.balance_due = open_balance(document)
    settled = (document.amount_paid or Decimal("0")) + (document.amount_credited or Decimal("0"))
    if settled >= document.total:
        document.status = status_enum.PAID
    elif settled > 0:
        document.status = status_enum.PARTIAL
    return document
