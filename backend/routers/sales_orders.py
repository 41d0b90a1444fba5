from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db, atomic
from models.sales_orders import SalesOrderStatus
from schemas.sales_orders import SalesOrder as SalesOrderSchema, SalesOrderCreate, SalesOrderStatusUpdate
from schemas.fulfillment import OrderRemaining
from crud import sales_orders as crud_sales_orders
from crud.fulfillment import get_order_remaining
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(prefix="/sales-orders", tags=["Sales Orders"])
logger = logging.getLogger("sales_orders")

@router.post("/", response_model=SalesOrderSchema, status_code=status.HTTP_201_CREATED)
def create_sales_order(
    so: SalesOrderCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Create a new sales order with associated items."""
    with atomic(db):
        db_so = crud_sales_orders.create_sales_order(db, so, tenant_id, actor_id)
    logger.info(f"Sales Order {db_so.so_number} (ID: {db_so.id}) created for Customer ID {db_so.customer_id} by {actor_id} for tenant {tenant_id}")
    return db_so

@router.get("/", response_model=List[SalesOrderSchema])
def list_sales_orders(
    company_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    status: Optional[SalesOrderStatus] = None,
    reference_number: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    """Retrieve a list of sales orders with various filters."""
    return crud_sales_orders.get_sales_orders(
        db, tenant_id,
        company_id=company_id,
        customer_id=customer_id,
        status=status,
        reference_number=reference_number,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )

@router.get("/{so_id}", response_model=SalesOrderSchema)
def read_sales_order(so_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    """Retrieve a single sales order by ID, including its items."""
    return crud_sales_orders.get_sales_order(db, so_id, tenant_id)

@router.get("/{so_id}/remaining", response_model=OrderRemaining)
def read_remaining_quantities(so_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    """Quantities per line that have not yet been carried onto an invoice."""
    db_so = crud_sales_orders.get_sales_order(db, so_id, tenant_id)
    return get_order_remaining(db, db_so)

@router.patch("/{so_id}/status", response_model=SalesOrderSchema)
def update_sales_order_status(
    so_id: int,
    status_update: SalesOrderStatusUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    with atomic(db):
        db_so = crud_sales_orders.update_sales_order_status(db, so_id, status_update.status, tenant_id, actor_id)
    return db_so

@router.delete("/{so_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sales_order(
    so_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Delete a draft sales order."""
    with atomic(db):
        crud_sales_orders.delete_sales_order(db, so_id, tenant_id, actor_id)
    return None
