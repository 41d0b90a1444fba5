from pydantic import BaseModel, model_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.intercompany_transactions import IntercompanyStatus, IntercompanyPaymentStatus
from utils.parsing import Money, OrderId, Quantity
from schemas.sales_orders import SalesOrder
from schemas.purchase_orders import PurchaseOrder
from schemas.invoices import Invoice, LineSelection
from schemas.bills import Bill
from schemas.receipts import Receipt
from schemas.payments import Payment
from schemas.credit_notes import CreditNote
from schemas.debit_notes import DebitNote

class IntercompanyTransaction(BaseModel):
    id: int
    tenant_id: str
    source_company_id: int
    target_company_id: int
    description: Optional[str] = None
    amount: Decimal
    transaction_date: date
    reference_number: Optional[str] = None
    parent_transaction_id: Optional[int] = None
    source_order_id: Optional[str] = None
    target_order_id: Optional[str] = None
    source_invoice_id: Optional[int] = None
    target_bill_id: Optional[int] = None
    source_receipt_id: Optional[int] = None
    target_payment_id: Optional[int] = None
    source_journal_entry_id: Optional[int] = None
    target_journal_entry_id: Optional[int] = None
    is_partial_invoice: bool
    status: IntercompanyStatus
    payment_status: IntercompanyPaymentStatus
    amount_paid: Decimal
    created_at: datetime

    class Config:
        from_attributes = True

class IntercompanyProductLine(BaseModel):
    product_id: int
    quantity: Quantity
    price_per_unit: Money
    description: Optional[str] = None

class IntercompanySalesOrderCreate(BaseModel):
    source_company_id: OrderId
    target_company_id: OrderId
    products: List[IntercompanyProductLine]
    total: Optional[Money] = None
    reference_number: Optional[str] = None
    order_date: Optional[date] = None
    expected_date: Optional[date] = None
    description: Optional[str] = None

class IntercompanySalesOrderResult(BaseModel):
    reference_number: str
    sales_order: SalesOrder
    purchase_order: PurchaseOrder
    transaction: IntercompanyTransaction

class IntercompanyInvoiceCreate(BaseModel):
    sales_order_id: OrderId
    company_id: OrderId
    partial_amount: Optional[Money] = None
    items: Optional[List[LineSelection]] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None

    @model_validator(mode='after')
    def check_single_selection_mode(self):
        if self.partial_amount is not None and self.items is not None:
            raise ValueError("Send either partial_amount or items, not both.")
        return self

class IntercompanyInvoiceResult(BaseModel):
    is_partial: bool
    invoice: Invoice
    bill: Bill
    transaction: IntercompanyTransaction
    source_journal_entry_id: int
    target_journal_entry_id: int

class IntercompanyReceiptPaymentCreate(BaseModel):
    invoice_id: OrderId
    company_id: OrderId
    amount: Money
    payment_method: str
    payment_date: Optional[date] = None
    reference: Optional[str] = None

class IntercompanyReceiptPaymentResult(BaseModel):
    receipt: Receipt
    payment: Payment
    invoice: Invoice
    bill: Bill
    transaction: IntercompanyTransaction

class TransactionGroup(BaseModel):
    reference_number: str
    sales_orders: List[SalesOrder] = []
    purchase_orders: List[PurchaseOrder] = []
    invoices: List[Invoice] = []
    bills: List[Bill] = []
    receipts: List[Receipt] = []
    payments: List[Payment] = []
    credit_notes: List[CreditNote] = []
    debit_notes: List[DebitNote] = []
    intercompany_transactions: List[IntercompanyTransaction] = []

class IntercompanyAdjustmentCreate(BaseModel):
    invoice_id: OrderId
    company_id: OrderId
    amount: Money
    reason: str
    adjustment_date: Optional[date] = None

class IntercompanyAdjustmentResult(BaseModel):
    credit_note: CreditNote
    debit_note: DebitNote
    invoice: Invoice
    bill: Bill
    transaction: IntercompanyTransaction

class CounterpartyBalance(BaseModel):
    company_id: int
    company_name: str
    receivable: Decimal
    payable: Decimal
    net: Decimal

class IntercompanyBalances(BaseModel):
    company_id: int
    counterparties: List[CounterpartyBalance] = []
    total_receivable: Decimal
    total_payable: Decimal
    net: Decimal
    receivable_ledger_balance: Optional[Decimal] = None
    payable_ledger_balance: Optional[Decimal] = None

class ReceiptEligibleTransaction(BaseModel):
    transaction: IntercompanyTransaction
    invoice: Invoice
    counterparty_company_id: int
    balance_due: Decimal
