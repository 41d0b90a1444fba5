from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from decimal import Decimal
from typing import Optional
from datetime import date
import logging

from models.purchase_orders import PurchaseOrder, PurchaseOrderStatus
from models.purchase_order_items import PurchaseOrderItem
from models.business_partners import BusinessPartner, PartnerStatus
from models.payments import Payment
from schemas.purchase_orders import PurchaseOrderCreate
from schemas.audit_log import AuditLogCreate
from crud.audit_log import create_audit_log
from crud.companies import get_active_company
from crud.intercompany_transactions import cancel_pending_transactions
from crud.sales_orders import get_product
from crud.sequences import next_document_number, PURCHASE_ORDER_PREFIX
from exceptions import DocumentLocked, InvalidStatusTransition, NotFound, ValidationFailed
from utils import sqlalchemy_to_dict
from utils.parsing import round_money

logger = logging.getLogger("purchase_orders")

PURCHASE_ORDER_TRANSITIONS = {
    PurchaseOrderStatus.DRAFT: {PurchaseOrderStatus.SENT, PurchaseOrderStatus.CANCELLED},
    PurchaseOrderStatus.SENT: {PurchaseOrderStatus.APPROVED, PurchaseOrderStatus.CANCELLED},
    PurchaseOrderStatus.APPROVED: {PurchaseOrderStatus.PROCESSING, PurchaseOrderStatus.CANCELLED},
    PurchaseOrderStatus.PROCESSING: {PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED},
    PurchaseOrderStatus.RECEIVED: set(),
    PurchaseOrderStatus.CANCELLED: set(),
}


def get_vendor(db: Session, vendor_id: int, company_id: int) -> BusinessPartner:
    vendor = db.query(BusinessPartner).filter(
        BusinessPartner.id == vendor_id,
        BusinessPartner.company_id == company_id,
        BusinessPartner.status == PartnerStatus.ACTIVE,
        BusinessPartner.is_vendor == True
    ).first()
    if not vendor:
        raise ValidationFailed(
            f"Business partner {vendor_id} not found in company {company_id}, inactive, or not a vendor.",
            vendor_id=vendor_id,
        )
    return vendor


def create_purchase_order(db: Session, po: PurchaseOrderCreate, tenant_id: str, actor_id: str = None) -> PurchaseOrder:
    """Create a purchase order with its items. Line totals are quantity x unit price; the header total is their sum."""
    company = get_active_company(db, po.company_id, tenant_id)
    get_vendor(db, po.vendor_id, company.id)

    if not po.items:
        raise ValidationFailed("Purchase order must contain at least one item.")

    total_amount = Decimal("0")
    db_po_items = []
    for item_data in po.items:
        product = get_product(db, item_data.product_id, tenant_id)
        line_total = round_money(item_data.quantity * item_data.price_per_unit)
        total_amount += line_total
        db_po_items.append(
            PurchaseOrderItem(
                product_id=product.id,
                description=item_data.description or product.description or product.name,
                quantity=item_data.quantity,
                price_per_unit=item_data.price_per_unit,
                line_total=line_total,
                tenant_id=tenant_id
            )
        )

    sequence, po_number = next_document_number(db, PurchaseOrder, company.id, PURCHASE_ORDER_PREFIX)
    db_po = PurchaseOrder(
        po_number=po_number,
        sequence=sequence,
        company_id=company.id,
        vendor_id=po.vendor_id,
        order_date=po.order_date,
        expected_date=po.expected_date,
        status=po.status,
        reference_number=po.reference_number,
        notes=po.notes,
        total_amount=total_amount,
        created_by=actor_id,
        tenant_id=tenant_id
    )
    db_po.items = db_po_items
    db.add(db_po)
    db.flush()

    logger.info(f"Purchase Order {po_number} (ID: {db_po.id}) created for Vendor ID {db_po.vendor_id} in company {company.id} by {actor_id} for tenant {tenant_id}")
    return db_po


def get_purchase_order(db: Session, order_id: int, tenant_id: str, lock: bool = False) -> PurchaseOrder:
    query = db.query(PurchaseOrder).options(selectinload(PurchaseOrder.items)).filter(
        PurchaseOrder.id == order_id,
        PurchaseOrder.tenant_id == tenant_id
    )
    if lock:
        query = query.with_for_update()
    db_po = query.first()
    if not db_po:
        raise NotFound("Purchase Order not found", resource="purchase_order", id=order_id)
    return db_po


def get_purchase_orders(
    db: Session,
    tenant_id: str,
    company_id: Optional[int] = None,
    vendor_id: Optional[int] = None,
    status: Optional[PurchaseOrderStatus] = None,
    reference_number: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100
):
    query = db.query(PurchaseOrder).filter(PurchaseOrder.tenant_id == tenant_id)

    if company_id:
        query = query.filter(PurchaseOrder.company_id == company_id)
    if vendor_id:
        query = query.filter(PurchaseOrder.vendor_id == vendor_id)
    if status:
        query = query.filter(PurchaseOrder.status == status)
    if reference_number:
        query = query.filter(PurchaseOrder.reference_number == reference_number)
    if start_date:
        query = query.filter(PurchaseOrder.order_date >= start_date)
    if end_date:
        query = query.filter(PurchaseOrder.order_date <= end_date)

    return query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc()).options(
        selectinload(PurchaseOrder.items)
    ).offset(skip).limit(limit).all()


def update_purchase_order_status(db: Session, order_id: int, new_status: PurchaseOrderStatus, tenant_id: str, actor_id: str) -> PurchaseOrder:
    db_po = get_purchase_order(db, order_id, tenant_id, lock=True)
    if new_status not in PURCHASE_ORDER_TRANSITIONS[db_po.status]:
        raise InvalidStatusTransition(f"Purchase order {db_po.po_number}", db_po.status.value, new_status.value)

    old_values = sqlalchemy_to_dict(db_po)
    db_po.status = new_status
    db_po.updated_by = actor_id
    db.flush()

    create_audit_log(db, AuditLogCreate(
        tenant_id=tenant_id,
        table_name="purchase_orders",
        record_id=db_po.id,
        changed_by=actor_id,
        action="UPDATE",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_po),
    ))
    if new_status == PurchaseOrderStatus.CANCELLED:
        cancel_pending_transactions(db, tenant_id, db_po.reference_number, "target_order_id", db_po.id, actor_id)
    logger.info(f"Purchase Order {db_po.po_number} (ID: {db_po.id}) moved from {old_values['status']} to {new_status.value} by {actor_id}")
    return db_po


def delete_purchase_order(db: Session, order_id: int, tenant_id: str, actor_id: str):
    db_po = get_purchase_order(db, order_id, tenant_id, lock=True)
    if db_po.status != PurchaseOrderStatus.DRAFT:
        raise DocumentLocked(f"Purchase order {db_po.po_number} is {db_po.status.value}; only draft orders can be deleted.")

    create_audit_log(db, AuditLogCreate(
        tenant_id=tenant_id,
        table_name="purchase_orders",
        record_id=db_po.id,
        changed_by=actor_id,
        action="DELETE",
        old_values=sqlalchemy_to_dict(db_po),
    ))
    db.delete(db_po)
    db.flush()
    logger.info(f"Purchase Order {db_po.po_number} (ID: {order_id}) deleted by {actor_id} for tenant {tenant_id}")


def update_purchase_order_paid_amount(db: Session, purchase_order_id: int) -> PurchaseOrder:
    """Recompute the amount paid on a purchase order from the payments made against its bills."""
    db_po = db.query(PurchaseOrder).filter(PurchaseOrder.id == purchase_order_id).with_for_update().first()
    if not db_po:
        raise NotFound("Purchase Order not found", resource="purchase_order", id=purchase_order_id)

    total_paid = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
        Payment.purchase_order_id == purchase_order_id
    ).scalar()
    db_po.total_amount_paid = Decimal(str(total_paid)).quantize(Decimal("0.01"))
    db.flush()
    return db_po
