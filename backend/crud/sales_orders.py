from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from decimal import Decimal
from typing import Optional
from datetime import date
import logging

from models.sales_orders import SalesOrder, SalesOrderStatus, TERMINAL_SALES_ORDER_STATUSES
from models.sales_order_items import SalesOrderItem
from models.business_partners import BusinessPartner, PartnerStatus
from models.products import Product
from models.receipts import Receipt
from schemas.sales_orders import SalesOrderCreate
from schemas.audit_log import AuditLogCreate
from crud.audit_log import create_audit_log
from crud.companies import get_active_company
from crud.intercompany_transactions import cancel_pending_transactions
from crud.sequences import next_document_number, SALES_ORDER_PREFIX
from exceptions import DocumentLocked, InvalidStatusTransition, NotFound, ValidationFailed
from utils import sqlalchemy_to_dict
from utils.parsing import round_money

logger = logging.getLogger("sales_orders")

# Manual transitions. PARTIAL and PAID are set only by the payment roll-up.
SALES_ORDER_TRANSITIONS = {
    SalesOrderStatus.DRAFT: {SalesOrderStatus.OPEN, SalesOrderStatus.CANCELLED},
    SalesOrderStatus.OPEN: {SalesOrderStatus.DELIVERED, SalesOrderStatus.INVOICED, SalesOrderStatus.CLOSED, SalesOrderStatus.CANCELLED},
    SalesOrderStatus.DELIVERED: {SalesOrderStatus.INVOICED, SalesOrderStatus.CLOSED, SalesOrderStatus.RETURNED},
    SalesOrderStatus.INVOICED: {SalesOrderStatus.CLOSED, SalesOrderStatus.RETURNED},
    SalesOrderStatus.PARTIAL: {SalesOrderStatus.CLOSED},
    SalesOrderStatus.PAID: {SalesOrderStatus.CLOSED, SalesOrderStatus.RETURNED},
    SalesOrderStatus.CLOSED: set(),
    SalesOrderStatus.CANCELLED: set(),
    SalesOrderStatus.RETURNED: set(),
}

CREATION_STATUSES = (SalesOrderStatus.DRAFT, SalesOrderStatus.OPEN)


def get_customer(db: Session, customer_id: int, company_id: int) -> BusinessPartner:
    customer = db.query(BusinessPartner).filter(
        BusinessPartner.id == customer_id,
        BusinessPartner.company_id == company_id,
        BusinessPartner.status == PartnerStatus.ACTIVE,
        BusinessPartner.is_customer == True
    ).first()
    if not customer:
        raise ValidationFailed(
            f"Business partner {customer_id} not found in company {company_id}, inactive, or not a customer.",
            customer_id=customer_id,
        )
    return customer


def get_product(db: Session, product_id: int, tenant_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.tenant_id == tenant_id).first()
    if not product:
        raise ValidationFailed(f"Product with ID {product_id} not found.", product_id=product_id)
    return product


def create_sales_order(db: Session, so: SalesOrderCreate, tenant_id: str, actor_id: str = None) -> SalesOrder:
    """Create a sales order with its items. Line totals are quantity x unit price; the header total is their sum."""
    company = get_active_company(db, so.company_id, tenant_id)
    get_customer(db, so.customer_id, company.id)

    if not so.items:
        raise ValidationFailed("Sales order must contain at least one item.")
    if so.status not in CREATION_STATUSES:
        raise ValidationFailed(f"A new sales order must start as draft or open, not '{so.status.value}'.")

    total_amount = Decimal("0")
    db_so_items = []
    for item_data in so.items:
        product = get_product(db, item_data.product_id, tenant_id)
        line_total = round_money(item_data.quantity * item_data.price_per_unit)
        total_amount += line_total
        db_so_items.append(
            SalesOrderItem(
                product_id=product.id,
                description=item_data.description or product.description or product.name,
                quantity=item_data.quantity,
                price_per_unit=item_data.price_per_unit,
                line_total=line_total,
                tenant_id=tenant_id
            )
        )

    sequence, so_number = next_document_number(db, SalesOrder, company.id, SALES_ORDER_PREFIX)
    db_so = SalesOrder(
        so_number=so_number,
        sequence=sequence,
        company_id=company.id,
        customer_id=so.customer_id,
        order_date=so.order_date,
        expected_date=so.expected_date,
        status=so.status,
        reference_number=so.reference_number,
        notes=so.notes,
        total_amount=total_amount,
        created_by=actor_id,
        tenant_id=tenant_id
    )
    db_so.items = db_so_items
    db.add(db_so)
    db.flush()

    logger.info(f"Sales Order {so_number} (ID: {db_so.id}) created for Customer ID {db_so.customer_id} in company {company.id} by {actor_id} for tenant {tenant_id}")
    return db_so


def get_sales_order(db: Session, order_id: int, tenant_id: str, lock: bool = False) -> SalesOrder:
    query = db.query(SalesOrder).options(selectinload(SalesOrder.items)).filter(
        SalesOrder.id == order_id,
        SalesOrder.tenant_id == tenant_id
    )
    if lock:
        query = query.with_for_update()
    db_so = query.first()
    if not db_so:
        raise NotFound("Sales Order not found", resource="sales_order", id=order_id)
    return db_so


def get_sales_orders(
    db: Session,
    tenant_id: str,
    company_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    status: Optional[SalesOrderStatus] = None,
    reference_number: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100
):
    query = db.query(SalesOrder).filter(SalesOrder.tenant_id == tenant_id)

    if company_id:
        query = query.filter(SalesOrder.company_id == company_id)
    if customer_id:
        query = query.filter(SalesOrder.customer_id == customer_id)
    if status:
        query = query.filter(SalesOrder.status == status)
    if reference_number:
        query = query.filter(SalesOrder.reference_number == reference_number)
    if start_date:
        query = query.filter(SalesOrder.order_date >= start_date)
    if end_date:
        query = query.filter(SalesOrder.order_date <= end_date)

    return query.order_by(SalesOrder.order_date.desc(), SalesOrder.id.desc()).options(
        selectinload(SalesOrder.items)
    ).offset(skip).limit(limit).all()


def update_sales_order_status(db: Session, order_id: int, new_status: SalesOrderStatus, tenant_id: str, actor_id: str) -> SalesOrder:
    db_so = get_sales_order(db, order_id, tenant_id, lock=True)
    if new_status not in SALES_ORDER_TRANSITIONS[db_so.status]:
        raise InvalidStatusTransition(f"Sales order {db_so.so_number}", db_so.status.value, new_status.value)

    old_values = sqlalchemy_to_dict(db_so)
    db_so.status = new_status
    db_so.updated_by = actor_id
    db.flush()

    create_audit_log(db, AuditLogCreate(
        tenant_id=tenant_id,
        table_name="sales_orders",
        record_id=db_so.id,
        changed_by=actor_id,
        action="UPDATE",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_so),
    ))
    if new_status == SalesOrderStatus.CANCELLED:
        cancel_pending_transactions(db, tenant_id, db_so.reference_number, "source_order_id", db_so.id, actor_id)
    logger.info(f"Sales Order {db_so.so_number} (ID: {db_so.id}) moved from {old_values['status']} to {new_status.value} by {actor_id}")
    return db_so


def delete_sales_order(db: Session, order_id: int, tenant_id: str, actor_id: str):
    db_so = get_sales_order(db, order_id, tenant_id, lock=True)
    if db_so.status != SalesOrderStatus.DRAFT:
        raise DocumentLocked(f"Sales order {db_so.so_number} is {db_so.status.value}; only draft orders can be deleted.")

    create_audit_log(db, AuditLogCreate(
        tenant_id=tenant_id,
        table_name="sales_orders",
        record_id=db_so.id,
        changed_by=actor_id,
        action="DELETE",
        old_values=sqlalchemy_to_dict(db_so),
    ))
    db.delete(db_so)
    db.flush()
    logger.info(f"Sales Order {db_so.so_number} (ID: {order_id}) deleted by {actor_id} for tenant {tenant_id}")


def update_sales_order_payment_status(db: Session, sales_order_id: int) -> SalesOrder:
    """
    Recompute the amount paid on a sales order from its receipts.

    Sets PAID when receipts cover the total and PARTIAL when something has been
    received. Cancelled, closed and returned orders keep their status.
    """
    db_so = db.query(SalesOrder).filter(SalesOrder.id == sales_order_id).with_for_update().first()
    if not db_so:
        raise NotFound("Sales Order not found", resource="sales_order", id=sales_order_id)

    total_paid = db.query(func.coalesce(func.sum(Receipt.amount), 0)).filter(
        Receipt.sales_order_id == sales_order_id
    ).scalar()
    total_paid = Decimal(str(total_paid)).quantize(Decimal("0.01"))
    db_so.total_amount_paid = total_paid

    if db_so.status not in TERMINAL_SALES_ORDER_STATUSES:
        if total_paid >= db_so.total_amount:
            db_so.status = SalesOrderStatus.PAID
        elif total_paid > 0:
            db_so.status = SalesOrderStatus.PARTIAL

    db.flush()
    logger.info(f"Sales Order {db_so.so_number} (ID: {db_so.id}) paid {total_paid} of {db_so.total_amount}; status {db_so.status.value}")
    return db_so
