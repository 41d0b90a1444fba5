from sqlalchemy.orm import Session
from typing import Optional
import logging

from models.business_partners import BusinessPartner, PartnerStatus
from models.purchase_orders import PurchaseOrder
from models.sales_orders import SalesOrder
from schemas.business_partners import BusinessPartnerCreate, BusinessPartnerUpdate
from schemas.audit_log import AuditLogCreate
from crud.audit_log import create_audit_log
from crud.companies import get_active_company
from exceptions import NotFound, ValidationFailed
from utils import sqlalchemy_to_dict

logger = logging.getLogger("business_partners")


def _check_unique_name(db: Session, company_id: int, name: str, exclude_id: int = None):
    query = db.query(BusinessPartner.id).filter(
        BusinessPartner.company_id == company_id,
        BusinessPartner.name == name
    )
    if exclude_id is not None:
        query = query.filter(BusinessPartner.id != exclude_id)
    if query.first():
        raise ValidationFailed(f"Business partner '{name}' already exists in company {company_id}.", name=name)


def create_business_partner(db: Session, partner: BusinessPartnerCreate, tenant_id: str, actor_id: str = None) -> BusinessPartner:
    company = get_active_company(db, partner.company_id, tenant_id)
    _check_unique_name(db, company.id, partner.name)

    db_partner = BusinessPartner(**partner.model_dump(), tenant_id=tenant_id, created_by=actor_id)
    db.add(db_partner)
    db.flush()
    logger.info(f"Business partner '{db_partner.name}' (ID: {db_partner.id}) created in company {company.id} by {actor_id} for tenant {tenant_id}")
    return db_partner


def get_business_partner(db: Session, partner_id: int, tenant_id: str) -> BusinessPartner:
    db_partner = db.query(BusinessPartner).filter(
        BusinessPartner.id == partner_id,
        BusinessPartner.tenant_id == tenant_id
    ).first()
    if db_partner is None:
        raise NotFound("Business partner not found", resource="business_partner", id=partner_id)
    return db_partner


def get_business_partners(
    db: Session,
    tenant_id: str,
    company_id: Optional[int] = None,
    status: Optional[PartnerStatus] = None,
    is_vendor: Optional[bool] = None,
    is_customer: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100
):
    query = db.query(BusinessPartner).filter(BusinessPartner.tenant_id == tenant_id)
    if company_id:
        query = query.filter(BusinessPartner.company_id == company_id)
    if status:
        query = query.filter(BusinessPartner.status == status)
    if is_vendor is not None:
        query = query.filter(BusinessPartner.is_vendor == is_vendor)
    if is_customer is not None:
        query = query.filter(BusinessPartner.is_customer == is_customer)
    return query.order_by(BusinessPartner.name).offset(skip).limit(limit).all()


def update_business_partner(db: Session, partner_id: int, partner: BusinessPartnerUpdate, tenant_id: str, actor_id: str) -> BusinessPartner:
    db_partner = get_business_partner(db, partner_id, tenant_id)
    old_values = sqlalchemy_to_dict(db_partner)

    if partner.name is not None and partner.name != db_partner.name:
        _check_unique_name(db, db_partner.company_id, partner.name, exclude_id=db_partner.id)

    for key, value in partner.model_dump(exclude_unset=True).items():
        setattr(db_partner, key, value)
    db_partner.updated_by = actor_id
    db.flush()

    create_audit_log(db, AuditLogCreate(
        tenant_id=tenant_id,
        table_name="business_partners",
        record_id=db_partner.id,
        changed_by=actor_id,
        action="UPDATE",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_partner),
    ))
    logger.info(f"Business partner '{db_partner.name}' (ID: {partner_id}) updated by {actor_id} for tenant {tenant_id}")
    return db_partner


def deactivate_business_partner(db: Session, partner_id: int, tenant_id: str, actor_id: str) -> BusinessPartner:
    """Partners are never deleted; orders keep pointing at them."""
    db_partner = get_business_partner(db, partner_id, tenant_id)
    old_values = sqlalchemy_to_dict(db_partner)

    has_orders = (
        db.query(PurchaseOrder.id).filter(PurchaseOrder.vendor_id == partner_id).first()
        or db.query(SalesOrder.id).filter(SalesOrder.customer_id == partner_id).first()
    )
    db_partner.status = PartnerStatus.INACTIVE
    db_partner.updated_by = actor_id
    db.flush()

    create_audit_log(db, AuditLogCreate(
        tenant_id=tenant_id,
        table_name="business_partners",
        record_id=db_partner.id,
        changed_by=actor_id,
        action="DEACTIVATE",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_partner),
    ))
    if has_orders:
        logger.warning(f"Business partner '{db_partner.name}' (ID: {partner_id}) has orders; set to INACTIVE by {actor_id} for tenant {tenant_id}")
    else:
        logger.info(f"Business partner '{db_partner.name}' (ID: {partner_id}) set to INACTIVE by {actor_id} for tenant {tenant_id}")
    return db_partner
