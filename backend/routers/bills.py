from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from models.bills import BillStatus
from schemas.bills import Bill as BillSchema
from crud import bills as crud_bills
from utils.tenancy import get_tenant_id

router = APIRouter(prefix="/bills", tags=["Bills"])

@router.get("/", response_model=List[BillSchema])
def list_bills(
    company_id: Optional[int] = None,
    purchase_order_id: Optional[int] = None,
    status: Optional[BillStatus] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return crud_bills.get_bills(
        db, tenant_id, company_id=company_id, purchase_order_id=purchase_order_id, status=status, skip=skip, limit=limit
    )

@router.get("/{bill_id}", response_model=BillSchema)
def read_bill(bill_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_bills.get_bill(db, bill_id, tenant_id)
