from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db, atomic
from models.purchase_orders import PurchaseOrderStatus
from schemas.purchase_orders import PurchaseOrder as PurchaseOrderSchema, PurchaseOrderCreate, PurchaseOrderStatusUpdate
from crud import purchase_orders as crud_purchase_orders
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])
logger = logging.getLogger("purchase_orders")

@router.post("/", response_model=PurchaseOrderSchema, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    po: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Create a new purchase order with associated items."""
    with atomic(db):
        db_po = crud_purchase_orders.create_purchase_order(db, po, tenant_id, actor_id)
    logger.info(f"Purchase Order {db_po.po_number} (ID: {db_po.id}) created for Vendor ID {db_po.vendor_id} by {actor_id} for tenant {tenant_id}")
    return db_po

@router.get("/", response_model=List[PurchaseOrderSchema])
def list_purchase_orders(
    company_id: Optional[int] = None,
    vendor_id: Optional[int] = None,
    status: Optional[PurchaseOrderStatus] = None,
    reference_number: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return crud_purchase_orders.get_purchase_orders(
        db, tenant_id,
        company_id=company_id,
        vendor_id=vendor_id,
        status=status,
        reference_number=reference_number,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )

@router.get("/{po_id}", response_model=PurchaseOrderSchema)
def read_purchase_order(po_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_purchase_orders.get_purchase_order(db, po_id, tenant_id)

@router.patch("/{po_id}/status", response_model=PurchaseOrderSchema)
def update_purchase_order_status(
    po_id: int,
    status_update: PurchaseOrderStatusUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    with atomic(db):
        db_po = crud_purchase_orders.update_purchase_order_status(db, po_id, status_update.status, tenant_id, actor_id)
    return db_po

@router.delete("/{po_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_order(
    po_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Delete a draft purchase order."""
    with atomic(db):
        crud_purchase_orders.delete_purchase_order(db, po_id, tenant_id, actor_id)
    return None
