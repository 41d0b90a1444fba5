from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db, atomic
from schemas.receipts import Receipt as ReceiptSchema, ReceiptCreate
from crud import receipts as crud_receipts
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(prefix="/receipts", tags=["Receipts"])

@router.post("/", response_model=ReceiptSchema, status_code=status.HTTP_201_CREATED)
def create_receipt(
    receipt: ReceiptCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Record money received against a sales order. The journal entry and receipt are written together."""
    with atomic(db):
        db_receipt = crud_receipts.create_receipt(db, receipt, tenant_id, actor_id)
    return db_receipt

@router.get("/by-so/{so_id}", response_model=List[ReceiptSchema])
def read_receipts_for_sales_order(so_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_receipts.get_receipts_for_order(db, so_id, tenant_id)
