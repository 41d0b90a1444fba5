from sqlalchemy.orm import Session
from decimal import Decimal
from datetime import date
from typing import Optional
import logging

from models.payments import Payment
from schemas.payments import PaymentCreate
from crud.companies import get_active_company
from crud.bills import get_bill, apply_bill_payment
from crud.purchase_orders import update_purchase_order_paid_amount
from crud.financial_settings import resolve_account, ACCOUNTS_PAYABLE, CASH
from crud.journal_entry import post_journal_entry
from crud.sequences import next_document_number, PAYMENT_PREFIX
from exceptions import ValidationFailed

logger = logging.getLogger("payments")


def record_payment(
    db: Session,
    tenant_id: str,
    company_id: int,
    sequence: int,
    payment_number: str,
    bill_id: int,
    vendor_id: int,
    payment_date: date,
    amount: Decimal,
    debit_account_id: int,
    credit_account_id: int,
    journal_entry_id: int,
    purchase_order_id: Optional[int] = None,
    payment_method: Optional[str] = None,
    reference: Optional[str] = None,
    reference_number: Optional[str] = None,
    is_partial_payment: bool = False,
    notes: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> Payment:
    """Persist a payment row for a journal entry that has already been posted."""
    db_payment = Payment(
        tenant_id=tenant_id,
        company_id=company_id,
        payment_number=payment_number,
        sequence=sequence,
        bill_id=bill_id,
        purchase_order_id=purchase_order_id,
        vendor_id=vendor_id,
        payment_date=payment_date,
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
    db.add(db_payment)
    db.flush()
    return db_payment


def create_payment(db: Session, payment_in: PaymentCreate, tenant_id: str, actor_id: str = None) -> Payment:
    """Pay a bill: debit accounts payable, credit cash/bank, then apply the amount to the bill."""
    company = get_active_company(db, payment_in.company_id, tenant_id)
    bill = get_bill(db, payment_in.bill_id, tenant_id, lock=True)
    if bill.company_id != company.id:
        raise ValidationFailed(f"Bill {bill.bill_number} does not belong to company {company.id}.")

    debit_account_id = payment_in.debit_account_id or resolve_account(db, company.id, ACCOUNTS_PAYABLE).id
    credit_account_id = payment_in.credit_account_id or resolve_account(db, company.id, CASH).id
    payment_date = payment_in.payment_date or date.today()
    is_partial = payment_in.amount < bill.balance_due
    sequence, payment_number = next_document_number(db, Payment, company.id, PAYMENT_PREFIX)

    entry = post_journal_entry(
        db,
        company_id=company.id,
        description=f"Payment {payment_number} for Bill {bill.bill_number}",
        entry_date=payment_date,
        line_items=[
            {"account_id": debit_account_id, "debit": payment_in.amount, "credit": 0},
            {"account_id": credit_account_id, "debit": 0, "credit": payment_in.amount},
        ],
        source_type="payment",
        actor_id=actor_id,
        reference=payment_number,
    )
    # Rejects overpayment before the payment row exists; the entry above rolls back with it
    apply_bill_payment(db, bill, payment_in.amount)
    db_payment = record_payment(
        db,
        tenant_id=tenant_id,
        company_id=company.id,
        sequence=sequence,
        payment_number=payment_number,
        bill_id=bill.id,
        purchase_order_id=bill.purchase_order_id,
        vendor_id=bill.vendor_id,
        payment_date=payment_date,
        amount=payment_in.amount,
        debit_account_id=debit_account_id,
        credit_account_id=credit_account_id,
        journal_entry_id=entry.id,
        payment_method=payment_in.payment_method,
        reference=payment_in.reference,
        reference_number=payment_in.reference_number or bill.reference_number,
        is_partial_payment=is_partial,
        notes=payment_in.notes,
        actor_id=actor_id,
    )
    entry.source_id = db_payment.id
    db.flush()
    if bill.purchase_order_id:
        update_purchase_order_paid_amount(db, bill.purchase_order_id)

    logger.info(f"Payment {payment_number} (ID: {db_payment.id}) of {payment_in.amount} recorded for Bill {bill.bill_number} by {actor_id} for tenant {tenant_id}")
    return db_payment


def get_payments_for_bill(db: Session, bill_id: int, tenant_id: str):
    get_bill(db, bill_id, tenant_id)
    return db.query(Payment).filter(
        Payment.bill_id == bill_id,
        Payment.tenant_id == tenant_id
    ).order_by(Payment.payment_date, Payment.id).all()
