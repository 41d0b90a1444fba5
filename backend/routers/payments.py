from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db, atomic
from schemas.payments import Payment as PaymentSchema, PaymentCreate
from crud import payments as crud_payments
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(prefix="/payments", tags=["Payments"])

@router.post("/", response_model=PaymentSchema, status_code=status.HTTP_201_CREATED)
def create_payment(
    payment: PaymentCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Pay a bill. Defaults to debit accounts payable, credit cash."""
    with atomic(db):
        db_payment = crud_payments.create_payment(db, payment, tenant_id, actor_id)
    return db_payment

@router.get("/by-bill/{bill_id}", response_model=List[PaymentSchema])
def read_payments_for_bill(bill_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_payments.get_payments_for_bill(db, bill_id, tenant_id)
