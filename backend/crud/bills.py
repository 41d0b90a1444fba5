from sqlalchemy.orm import Session, selectinload
from decimal import Decimal
from datetime import date, timedelta
from typing import Optional
import logging

from models.bills import Bill, BillStatus
from models.bill_items import BillItem
from models.purchase_orders import PurchaseOrder, PurchaseOrderStatus
from crud.sequences import next_document_number, BILL_PREFIX
from crud.settlement import open_balance, settle
from exceptions import CreditExceedsBalance, DocumentLocked, NotFound, PaymentExceedsBalance

logger = logging.getLogger("bills")

DEFAULT_PAYMENT_TERMS_DAYS = 30

NON_BILLABLE_ORDER_STATUSES = (
    PurchaseOrderStatus.CANCELLED,
    PurchaseOrderStatus.RECEIVED,
)


def check_order_billable(purchase_order: PurchaseOrder):
    if purchase_order.status in NON_BILLABLE_ORDER_STATUSES:
        raise DocumentLocked(
            f"Purchase order {purchase_order.po_number} is {purchase_order.status.value} and cannot be billed.",
            purchase_order_id=purchase_order.id,
        )


def create_bill_document(
    db: Session,
    purchase_order: PurchaseOrder,
    lines,
    bill_date: date,
    due_date: Optional[date] = None,
    reference_number: Optional[str] = None,
    notes: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> Bill:
    """Write an open bill header and its lines against a purchase order."""
    subtotal = sum((line["line_total"] for line in lines), Decimal("0"))
    sequence, bill_number = next_document_number(db, Bill, purchase_order.company_id, BILL_PREFIX)

    db_bill = Bill(
        tenant_id=purchase_order.tenant_id,
        company_id=purchase_order.company_id,
        bill_number=bill_number,
        sequence=sequence,
        vendor_id=purchase_order.vendor_id,
        purchase_order_id=purchase_order.id,
        bill_date=bill_date,
        due_date=due_date or bill_date + timedelta(days=DEFAULT_PAYMENT_TERMS_DAYS),
        status=BillStatus.OPEN,
        subtotal=subtotal,
        tax_amount=Decimal("0"),
        total=subtotal,
        amount_paid=Decimal("0"),
        amount_credited=Decimal("0"),
        balance_due=subtotal,
        reference_number=reference_number or purchase_order.reference_number,
        notes=notes,
        created_by=actor_id,
    )
    db_bill.items = [
        BillItem(
            product_id=line["product_id"],
            po_item_id=line.get("po_item_id"),
            description=line["description"],
            quantity=line["quantity"],
            price_per_unit=line["price_per_unit"],
            line_total=line["line_total"],
            tenant_id=purchase_order.tenant_id,
        )
        for line in lines
    ]
    db.add(db_bill)
    db.flush()

    logger.info(f"Bill {bill_number} (ID: {db_bill.id}) for {subtotal} created from Purchase Order {purchase_order.po_number} in company {purchase_order.company_id}")
    return db_bill


def apply_bill_payment(db: Session, bill: Bill, amount: Decimal) -> Bill:
    """Apply money paid to a bill; same rule as invoices."""
    if bill.status in (BillStatus.VOID, BillStatus.DRAFT):
        raise DocumentLocked(f"Bill {bill.bill_number} is {bill.status.value} and cannot take payments.")
    balance_due = open_balance(bill)
    if amount > balance_due:
        raise PaymentExceedsBalance(
            f"Payment {amount} exceeds the balance due {balance_due} on bill {bill.bill_number}.",
            balance_due=str(balance_due),
        )

    bill.amount_paid = (bill.amount_paid or Decimal("0")) + amount
    settle(bill, BillStatus)

    db.flush()
    logger.info(f"Bill {bill.bill_number} paid {amount}; paid {bill.amount_paid} of {bill.total}, status {bill.status.value}")
    return bill


def apply_bill_credit(db: Session, bill: Bill, amount: Decimal) -> Bill:
    if bill.status in (BillStatus.VOID, BillStatus.DRAFT):
        raise DocumentLocked(f"Bill {bill.bill_number} is {bill.status.value} and cannot take a debit note.")
    balance_due = open_balance(bill)
    if amount > balance_due:
        raise CreditExceedsBalance(
            f"Debit note {amount} exceeds the balance due {balance_due} on bill {bill.bill_number}.",
            balance_due=str(balance_due),
        )

    bill.amount_credited = (bill.amount_credited or Decimal("0")) + amount
    settle(bill, BillStatus)
    db.flush()
    logger.info(f"Bill {bill.bill_number} reduced by debit note {amount}; balance due {bill.balance_due}, status {bill.status.value}")
    return bill


def get_bill(db: Session, bill_id: int, tenant_id: str, lock: bool = False) -> Bill:
    query = db.query(Bill).options(selectinload(Bill.items)).filter(
        Bill.id == bill_id,
        Bill.tenant_id == tenant_id
    )
    if lock:
        query = query.with_for_update()
    db_bill = query.first()
    if not db_bill:
        raise NotFound("Bill not found", resource="bill", id=bill_id)
    return db_bill


def get_bills(
    db: Session,
    tenant_id: str,
    company_id: Optional[int] = None,
    purchase_order_id: Optional[int] = None,
    status: Optional[BillStatus] = None,
    skip: int = 0,
    limit: int = 100
):
    query = db.query(Bill).options(selectinload(Bill.items)).filter(Bill.tenant_id == tenant_id)
    if company_id:
        query = query.filter(Bill.company_id == company_id)
    if purchase_order_id:
        query = query.filter(Bill.purchase_order_id == purchase_order_id)
    if status:
        query = query.filter(Bill.status == status)
    return query.order_by(Bill.bill_date.desc(), Bill.id.desc()).offset(skip).limit(limit).all()
