"""
Intercompany transaction linker.

Creates mirrored sales/purchase orders across two companies of a tenant under
one shared reference number, finds the intercompany transaction that belongs
to an order, and gathers every document carrying a reference number.
"""
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload
from datetime import date
import logging
import uuid

from models.business_partners import BusinessPartner, PartnerStatus
from models.companies import Company
from models.intercompany_transactions import IntercompanyTransaction, IntercompanyStatus, IntercompanyPaymentStatus
from models.sales_orders import SalesOrder, SalesOrderStatus
from models.purchase_orders import PurchaseOrder, PurchaseOrderStatus
from models.invoices import Invoice
from models.bills import Bill
from models.receipts import Receipt
from models.payments import Payment
from models.credit_notes import CreditNote
from models.debit_notes import DebitNote
from schemas.intercompany import IntercompanySalesOrderCreate
from schemas.sales_orders import SalesOrderCreate
from schemas.sales_order_items import SalesOrderItemCreateRequest
from schemas.purchase_orders import PurchaseOrderCreate
from schemas.purchase_order_items import PurchaseOrderItemCreateRequest
from schemas.audit_log import AuditLogCreate
from crud.audit_log import create_audit_log
from crud.companies import get_active_company
from crud.sales_orders import create_sales_order
from crud.purchase_orders import create_purchase_order
from exceptions import NotFound, ValidationFailed
from utils import sqlalchemy_to_dict
from utils.deadline import Deadline
from utils.order_matching import match_transaction
from utils.parsing import round_money

logger = logging.getLogger("intercompany")


def generate_reference_number(source_company_id: int, target_company_id: int) -> str:
    return f"IC-REF-{source_company_id}-{target_company_id}-{uuid.uuid4().hex[:10].upper()}"


def find_or_create_partner(db: Session, owner: Company, counterparty: Company, as_customer: bool, actor_id: str = None) -> BusinessPartner:
    """The business partner in `owner` that stands for `counterparty`, created on first use."""
    partner = db.query(BusinessPartner).filter(
        BusinessPartner.company_id == owner.id,
        BusinessPartner.linked_company_id == counterparty.id
    ).order_by(BusinessPartner.id).first()

    if partner is None:
        partner = BusinessPartner(
            tenant_id=owner.tenant_id,
            company_id=owner.id,
            linked_company_id=counterparty.id,
            name=counterparty.name,
            status=PartnerStatus.ACTIVE,
            is_customer=True,
            is_vendor=True,
            created_by=actor_id,
        )
        db.add(partner)
        db.flush()
        logger.info(f"Created intercompany partner {partner.id} in company {owner.id} for company {counterparty.id}")
        return partner

    if partner.status != PartnerStatus.ACTIVE:
        raise ValidationFailed(
            f"Business partner {partner.id} for company {counterparty.id} is {partner.status.value} in company {owner.id}."
        )
    if as_customer and not partner.is_customer:
        partner.is_customer = True
    if not as_customer and not partner.is_vendor:
        partner.is_vendor = True
    db.flush()
    return partner


def create_intercompany_sales_order(
    db: Session,
    request: IntercompanySalesOrderCreate,
    tenant_id: str,
    actor_id: str = None,
    deadline: Deadline = None,
) -> dict:
    """
    Create a sales order in the source company and its mirrored purchase order in the target company.

    Both orders, and the pending intercompany transaction linking them, carry the
    same reference number.
    """
    deadline = deadline or Deadline("create_intercompany_sales_order")
    if request.source_company_id == request.target_company_id:
        raise ValidationFailed("Source and target company must be different.")
    source = get_active_company(db, request.source_company_id, tenant_id)
    target = get_active_company(db, request.target_company_id, tenant_id)

    if not request.products:
        raise ValidationFailed("An intercompany sales order needs at least one product line.")
    computed_total = sum(round_money(line.quantity * line.price_per_unit) for line in request.products)
    if request.total is not None and request.total != computed_total:
        raise ValidationFailed(
            f"Order total {request.total} does not match the sum of the lines ({computed_total}).",
            total=str(request.total),
            computed_total=str(computed_total),
        )

    reference_number = request.reference_number or generate_reference_number(source.id, target.id)
    in_use = db.query(IntercompanyTransaction.id).filter(
        IntercompanyTransaction.tenant_id == tenant_id,
        IntercompanyTransaction.reference_number == reference_number
    ).first()
    if in_use:
        raise ValidationFailed(f"Reference number {reference_number} is already in use.", reference_number=reference_number)

    customer = find_or_create_partner(db, owner=source, counterparty=target, as_customer=True, actor_id=actor_id)
    vendor = find_or_create_partner(db, owner=target, counterparty=source, as_customer=False, actor_id=actor_id)
    order_date = request.order_date or date.today()

    deadline.check("create sales order")
    sales_order = create_sales_order(db, SalesOrderCreate(
        company_id=source.id,
        customer_id=customer.id,
        order_date=order_date,
        expected_date=request.expected_date,
        reference_number=reference_number,
        notes=request.description,
        status=SalesOrderStatus.OPEN,
        items=[
            SalesOrderItemCreateRequest(
                product_id=line.product_id,
                description=line.description,
                quantity=line.quantity,
                price_per_unit=line.price_per_unit,
            )
            for line in request.products
        ],
    ), tenant_id, actor_id)

    deadline.check("create purchase order")
    purchase_order = create_purchase_order(db, PurchaseOrderCreate(
        company_id=target.id,
        vendor_id=vendor.id,
        order_date=order_date,
        expected_date=request.expected_date,
        reference_number=reference_number,
        notes=request.description,
        status=PurchaseOrderStatus.APPROVED,
        items=[
            PurchaseOrderItemCreateRequest(
                product_id=line.product_id,
                description=line.description,
                quantity=line.quantity,
                price_per_unit=line.price_per_unit,
            )
            for line in request.products
        ],
    ), tenant_id, actor_id)

    deadline.check("link orders")
    transaction = IntercompanyTransaction(
        tenant_id=tenant_id,
        source_company_id=source.id,
        target_company_id=target.id,
        description=request.description or f"Intercompany sale {sales_order.so_number} / {purchase_order.po_number}",
        amount=sales_order.total_amount,
        transaction_date=order_date,
        reference_number=reference_number,
        source_order_id=str(sales_order.id),
        target_order_id=str(purchase_order.id),
        status=IntercompanyStatus.PENDING,
        payment_status=IntercompanyPaymentStatus.PENDING,
        created_by=actor_id,
    )
    db.add(transaction)
    db.flush()

    create_audit_log(db, AuditLogCreate(
        tenant_id=tenant_id,
        table_name="intercompany_transactions",
        record_id=transaction.id,
        changed_by=actor_id or "system",
        action="INSERT",
        new_values=sqlalchemy_to_dict(transaction),
    ))
    logger.info(
        f"Intercompany order {reference_number}: SO {sales_order.so_number} in company {source.id} "
        f"mirrored as PO {purchase_order.po_number} in company {target.id} (transaction {transaction.id})"
    )
    return {
        "reference_number": reference_number,
        "sales_order": sales_order,
        "purchase_order": purchase_order,
        "transaction": transaction,
    }


def find_transaction_for_order(
    db: Session,
    tenant_id: str,
    order_id,
    reference_number: str = None,
    company_id: int = None,
    candidates=None,
) -> IntercompanyTransaction:
    """
    Find the intercompany transaction for an order.

    Caller-supplied candidates (a client's cached list) are tried first; when
    none of them matches, every transaction of the tenant (optionally narrowed
    to a company) is loaded and the same matching chain runs again.

    Raises:
        NotFound: no strategy matched.
    """
    if candidates:
        result = match_transaction(candidates, order_id, reference_number)
        if result is not None:
            candidate_id = result.transaction["id"] if isinstance(result.transaction, dict) else result.transaction.id
            transaction = db.query(IntercompanyTransaction).filter(
                IntercompanyTransaction.id == candidate_id,
                IntercompanyTransaction.tenant_id == tenant_id
            ).first()
            if transaction is not None:
                logger.info(f"Order {order_id} matched transaction {transaction.id} from cached candidates by {result.strategy}")
                return transaction
            logger.warning(f"Cached candidate {candidate_id} for order {order_id} no longer exists; querying the database")

    query = db.query(IntercompanyTransaction).filter(IntercompanyTransaction.tenant_id == tenant_id)
    if company_id:
        query = query.filter(or_(
            IntercompanyTransaction.source_company_id == company_id,
            IntercompanyTransaction.target_company_id == company_id
        ))
    result = match_transaction(query.order_by(IntercompanyTransaction.id).all(), order_id, reference_number)
    if result is None:
        raise NotFound(f"No intercompany transaction found for order {order_id}.", resource="intercompany_transaction", order_id=str(order_id))

    logger.info(f"Order {order_id} matched transaction {result.transaction.id} by {result.strategy}")
    return result.transaction


def get_intercompany_transaction(db: Session, transaction_id: int, tenant_id: str, lock: bool = False) -> IntercompanyTransaction:
    query = db.query(IntercompanyTransaction).filter(
        IntercompanyTransaction.id == transaction_id,
        IntercompanyTransaction.tenant_id == tenant_id
    )
    if lock:
        query = query.with_for_update()
    transaction = query.first()
    if not transaction:
        raise NotFound("Intercompany transaction not found", resource="intercompany_transaction", id=transaction_id)
    return transaction


def get_intercompany_transactions(db: Session, tenant_id: str, company_id: int = None, status: IntercompanyStatus = None, skip: int = 0, limit: int = 100):
    query = db.query(IntercompanyTransaction).filter(IntercompanyTransaction.tenant_id == tenant_id)
    if company_id:
        query = query.filter(or_(
            IntercompanyTransaction.source_company_id == company_id,
            IntercompanyTransaction.target_company_id == company_id
        ))
    if status:
        query = query.filter(IntercompanyTransaction.status == status)
    return query.order_by(IntercompanyTransaction.transaction_date.desc(), IntercompanyTransaction.id.desc()).offset(skip).limit(limit).all()


def resolve_transaction_group(db: Session, reference_number: str, tenant_id: str) -> dict:
    """
    Every document of the tenant that belongs to a reference number.

    Orders and transactions match on the reference directly. Invoices, bills,
    receipts, payments and credit or debit notes match directly or through
    their parent document.
    """
    sales_orders = db.query(SalesOrder).options(selectinload(SalesOrder.items)).filter(
        SalesOrder.tenant_id == tenant_id,
        SalesOrder.reference_number == reference_number
    ).order_by(SalesOrder.id).all()
    purchase_orders = db.query(PurchaseOrder).options(selectinload(PurchaseOrder.items)).filter(
        PurchaseOrder.tenant_id == tenant_id,
        PurchaseOrder.reference_number == reference_number
    ).order_by(PurchaseOrder.id).all()
    so_ids = [so.id for so in sales_orders]
    po_ids = [po.id for po in purchase_orders]

    invoices = db.query(Invoice).options(selectinload(Invoice.items)).filter(
        Invoice.tenant_id == tenant_id,
        or_(Invoice.reference_number == reference_number, Invoice.sales_order_id.in_(so_ids))
    ).order_by(Invoice.id).all()
    bills = db.query(Bill).options(selectinload(Bill.items)).filter(
        Bill.tenant_id == tenant_id,
        or_(Bill.reference_number == reference_number, Bill.purchase_order_id.in_(po_ids))
    ).order_by(Bill.id).all()
    invoice_ids = [invoice.id for invoice in invoices]
    bill_ids = [bill.id for bill in bills]

    receipts = db.query(Receipt).filter(
        Receipt.tenant_id == tenant_id,
        or_(
            Receipt.reference_number == reference_number,
            Receipt.invoice_id.in_(invoice_ids),
            Receipt.sales_order_id.in_(so_ids)
        )
    ).order_by(Receipt.id).all()
    payments = db.query(Payment).filter(
        Payment.tenant_id == tenant_id,
        or_(Payment.reference_number == reference_number, Payment.bill_id.in_(bill_ids))
    ).order_by(Payment.id).all()
    credit_notes = db.query(CreditNote).filter(
        CreditNote.tenant_id == tenant_id,
        or_(CreditNote.reference_number == reference_number, CreditNote.invoice_id.in_(invoice_ids))
    ).order_by(CreditNote.id).all()
    debit_notes = db.query(DebitNote).filter(
        DebitNote.tenant_id == tenant_id,
        or_(DebitNote.reference_number == reference_number, DebitNote.bill_id.in_(bill_ids))
    ).order_by(DebitNote.id).all()
    transactions = db.query(IntercompanyTransaction).filter(
        IntercompanyTransaction.tenant_id == tenant_id,
        IntercompanyTransaction.reference_number == reference_number
    ).order_by(IntercompanyTransaction.id).all()

    return {
        "reference_number": reference_number,
        "sales_orders": sales_orders,
        "purchase_orders": purchase_orders,
        "invoices": invoices,
        "bills": bills,
        "receipts": receipts,
        "payments": payments,
        "credit_notes": credit_notes,
        "debit_notes": debit_notes,
        "intercompany_transactions": transactions,
    }
