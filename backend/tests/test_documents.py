from datetime import date
from decimal import Decimal

import pytest

from database import atomic
from exceptions import CreditExceedsBalance, DocumentLocked, InvalidStatusTransition, PaymentExceedsBalance, ValidationFailed
from models.audit_log import AuditLog
from models.bills import BillStatus
from models.credit_notes import CreditNote, CreditNoteStatus
from models.debit_notes import DebitNoteStatus
from models.invoices import InvoiceStatus
from models.sales_orders import SalesOrder, SalesOrderStatus
from models.purchase_orders import PurchaseOrderStatus
from models.journal_entry import JournalEntry
from crud import sales_orders as crud_sales_orders
from crud import purchase_orders as crud_purchase_orders
from crud.chart_of_accounts import get_account_by_code
from crud.invoices import create_invoice, apply_invoice_payment
from crud.bills import create_bill_document
from crud.receipts import create_receipt
from crud.payments import create_payment
from crud.credit_notes import create_credit_note
from crud.debit_notes import create_debit_note
from schemas.sales_orders import SalesOrderCreate
from schemas.purchase_orders import PurchaseOrderCreate
from schemas.invoices import InvoiceCreate
from schemas.receipts import ReceiptCreate
from schemas.payments import PaymentCreate
from schemas.credit_notes import CreditNoteCreate
from schemas.debit_notes import DebitNoteCreate


def _create_order(db, tenant_id, company, customer, product, quantity="10", price="100.00", status=SalesOrderStatus.OPEN):
    with atomic(db):
        return crud_sales_orders.create_sales_order(db, SalesOrderCreate(
            company_id=company.id,
            customer_id=customer.id,
            order_date=date(2026, 3, 1),
            status=status,
            items=[{"product_id": product.id, "quantity": quantity, "price_per_unit": price}],
        ), tenant_id, "alice")


def test_sales_order_totals_and_numbering(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    widget, gadget = products
    with atomic(db):
        so = crud_sales_orders.create_sales_order(db, SalesOrderCreate(
            company_id=manufacturer.id,
            customer_id=customer.id,
            order_date=date(2026, 3, 1),
            items=[
                {"product_id": widget.id, "quantity": "3", "price_per_unit": "100.00"},
                {"product_id": gadget.id, "quantity": "2.5", "price_per_unit": "19.99"},
            ],
        ), tenant_id, "alice")
    second = _create_order(db, tenant_id, manufacturer, customer, widget)

    assert so.so_number == "SO00001"
    assert second.so_number == "SO00002"
    assert so.status == SalesOrderStatus.DRAFT
    assert [item.line_total for item in so.items] == [Decimal("300.00"), Decimal("49.98")]
    assert so.total_amount == Decimal("349.98")


def test_sales_order_cannot_start_invoiced(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    with pytest.raises(ValidationFailed):
        _create_order(db, tenant_id, manufacturer, customer, products[0], status=SalesOrderStatus.INVOICED)
    assert db.query(SalesOrder).count() == 0


def test_sales_order_status_transitions(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    so = _create_order(db, tenant_id, manufacturer, customer, products[0], status=SalesOrderStatus.DRAFT)

    with atomic(db):
        crud_sales_orders.update_sales_order_status(db, so.id, SalesOrderStatus.OPEN, tenant_id, "alice")
    with atomic(db):
        crud_sales_orders.update_sales_order_status(db, so.id, SalesOrderStatus.CANCELLED, tenant_id, "alice")

    with pytest.raises(InvalidStatusTransition) as exc:
        with atomic(db):
            crud_sales_orders.update_sales_order_status(db, so.id, SalesOrderStatus.OPEN, tenant_id, "alice")
    assert exc.value.context == {"current_status": "cancelled", "requested_status": "open"}

    actions = [log.action for log in db.query(AuditLog).filter(AuditLog.table_name == "sales_orders").all()]
    assert actions == ["UPDATE", "UPDATE"]


def test_only_draft_orders_can_be_deleted(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    draft = _create_order(db, tenant_id, manufacturer, customer, products[0], status=SalesOrderStatus.DRAFT)
    open_order = _create_order(db, tenant_id, manufacturer, customer, products[0])

    with atomic(db):
        crud_sales_orders.delete_sales_order(db, draft.id, tenant_id, "alice")
    with pytest.raises(DocumentLocked):
        with atomic(db):
            crud_sales_orders.delete_sales_order(db, open_order.id, tenant_id, "alice")

    assert [so.id for so in db.query(SalesOrder).all()] == [open_order.id]


def test_purchase_order_lifecycle(db, tenant_id, companies, vendor, products):
    _, plant = companies
    with atomic(db):
        po = crud_purchase_orders.create_purchase_order(db, PurchaseOrderCreate(
            company_id=plant.id,
            vendor_id=vendor.id,
            order_date=date(2026, 3, 1),
            items=[{"product_id": products[0].id, "quantity": "4", "price_per_unit": "25.00"}],
        ), tenant_id, "bob")
    assert po.po_number == "PO00001"
    assert po.total_amount == Decimal("100.00")

    with atomic(db):
        crud_purchase_orders.update_purchase_order_status(db, po.id, PurchaseOrderStatus.SENT, tenant_id, "bob")
    with atomic(db):
        crud_purchase_orders.update_purchase_order_status(db, po.id, PurchaseOrderStatus.APPROVED, tenant_id, "bob")
    with pytest.raises(InvalidStatusTransition):
        with atomic(db):
            crud_purchase_orders.update_purchase_order_status(db, po.id, PurchaseOrderStatus.RECEIVED, tenant_id, "bob")
    db.refresh(po)
    assert po.status == PurchaseOrderStatus.APPROVED

    with pytest.raises(DocumentLocked):
        with atomic(db):
            crud_purchase_orders.delete_purchase_order(db, po.id, tenant_id, "bob")


def test_invoice_posts_receivable_and_revenue(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    so = _create_order(db, tenant_id, manufacturer, customer, products[0])
    with atomic(db):
        invoice = create_invoice(db, InvoiceCreate(
            sales_order_id=so.id,
            invoice_date=date(2026, 3, 2),
            items=[{"so_item_id": so.items[0].id, "quantity": "4"}],
        ), tenant_id, "alice")

    assert invoice.invoice_number == "INV00001"
    assert invoice.total == Decimal("400.00")
    assert invoice.balance_due == Decimal("400.00")
    assert invoice.due_date == date(2026, 4, 1)
    entry = db.get(JournalEntry, invoice.journal_entry_id)
    assert entry.source_type == "invoice"
    assert get_account_by_code(db, manufacturer.id, "1100").balance == Decimal("400.00")
    assert get_account_by_code(db, manufacturer.id, "4000").balance == Decimal("400.00")


def test_draft_orders_cannot_be_invoiced(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    so = _create_order(db, tenant_id, manufacturer, customer, products[0], status=SalesOrderStatus.DRAFT)
    with pytest.raises(DocumentLocked):
        with atomic(db):
            create_invoice(db, InvoiceCreate(
                sales_order_id=so.id,
                items=[{"product_id": products[0].id, "quantity": "1"}],
            ), tenant_id, "alice")


@pytest.mark.parametrize("already_paid, amount, expected_status, expected_balance", [
    ("0", "150.00", InvoiceStatus.PARTIAL, "250.00"),
    ("150.00", "250.00", InvoiceStatus.PAID, "0.00"),
    ("0", "400.00", InvoiceStatus.PAID, "0.00"),
])
def test_balance_recomputation(db, tenant_id, companies, customer, products, already_paid, amount, expected_status, expected_balance):
    manufacturer, _ = companies
    so = _create_order(db, tenant_id, manufacturer, customer, products[0])
    with atomic(db):
        invoice = create_invoice(db, InvoiceCreate(
            sales_order_id=so.id,
            items=[{"so_item_id": so.items[0].id, "quantity": "4"}],
        ), tenant_id, "alice")
        if Decimal(already_paid) > 0:
            apply_invoice_payment(db, invoice, Decimal(already_paid))
        apply_invoice_payment(db, invoice, Decimal(amount))

    assert invoice.amount_paid == Decimal(already_paid) + Decimal(amount)
    assert invoice.balance_due == Decimal(expected_balance)
    assert invoice.status == expected_status


def test_overpayment_is_rejected(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    so = _create_order(db, tenant_id, manufacturer, customer, products[0])
    with atomic(db):
        invoice = create_invoice(db, InvoiceCreate(
            sales_order_id=so.id,
            items=[{"so_item_id": so.items[0].id, "quantity": "1"}],
        ), tenant_id, "alice")
    with pytest.raises(PaymentExceedsBalance):
        apply_invoice_payment(db, invoice, Decimal("100.01"))


def test_receipt_posts_cash_and_rolls_up_to_order(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    so = _create_order(db, tenant_id, manufacturer, customer, products[0], quantity="2")
    with atomic(db):
        invoice = create_invoice(db, InvoiceCreate(
            sales_order_id=so.id,
            items=[{"so_item_id": so.items[0].id, "quantity": "2"}],
        ), tenant_id, "alice")
    cash = get_account_by_code(db, manufacturer.id, "1000")
    receivable = get_account_by_code(db, manufacturer.id, "1100")

    with atomic(db):
        receipt = create_receipt(db, ReceiptCreate(
            company_id=manufacturer.id,
            sales_order_id=so.id,
            customer_id=customer.id,
            invoice_id=invoice.id,
            debit_account_id=cash.id,
            credit_account_id=receivable.id,
            amount="50.00",
        ), tenant_id, "alice")

    assert receipt.receipt_number == "RC00001"
    assert receipt.is_partial_payment
    entry = db.get(JournalEntry, receipt.journal_entry_id)
    assert entry.reference_document == "RC00001"
    assert (entry.source_type, entry.source_id) == ("receipt", receipt.id)
    db.refresh(so)
    assert so.total_amount_paid == Decimal("50.00")
    assert so.status == SalesOrderStatus.PARTIAL
    assert invoice.status == InvoiceStatus.PARTIAL
    assert receivable.balance == Decimal("150.00")


def test_bill_payment_defaults_to_payable_and_cash(db, tenant_id, companies, vendor, products):
    _, plant = companies
    with atomic(db):
        po = crud_purchase_orders.create_purchase_order(db, PurchaseOrderCreate(
            company_id=plant.id,
            vendor_id=vendor.id,
            order_date=date(2026, 3, 1),
            status=PurchaseOrderStatus.APPROVED,
            items=[{"product_id": products[1].id, "quantity": "4", "price_per_unit": "25.00"}],
        ), tenant_id, "bob")
        bill = create_bill_document(db, po, [{
            "product_id": products[1].id,
            "po_item_id": po.items[0].id,
            "description": "Gadget",
            "quantity": Decimal("4"),
            "price_per_unit": Decimal("25.00"),
            "line_total": Decimal("100.00"),
        }], date(2026, 3, 3))

    with atomic(db):
        payment = create_payment(db, PaymentCreate(company_id=plant.id, bill_id=bill.id, amount="100"), tenant_id, "bob")

    assert payment.payment_number == "PAY00001"
    assert not payment.is_partial_payment
    assert payment.debit_account_id == get_account_by_code(db, plant.id, "2000").id
    assert payment.credit_account_id == get_account_by_code(db, plant.id, "1000").id
    entry = db.get(JournalEntry, payment.journal_entry_id)
    assert (entry.source_type, entry.source_id) == ("payment", payment.id)
    db.refresh(po)
    assert po.total_amount_paid == Decimal("100.00")
    assert bill.balance_due == Decimal("0.00")

    with pytest.raises(PaymentExceedsBalance):
        with atomic(db):
            create_payment(db, PaymentCreate(company_id=plant.id, bill_id=bill.id, amount="1"), tenant_id, "bob")
    assert db.query(JournalEntry).filter(JournalEntry.company_id == plant.id).count() == 1


def _invoice_order(db, tenant_id, company, customer, product, quantity):
    so = _create_order(db, tenant_id, company, customer, product)
    with atomic(db):
        return create_invoice(db, InvoiceCreate(
            sales_order_id=so.id,
            items=[{"so_item_id": so.items[0].id, "quantity": quantity}],
        ), tenant_id, "alice")


def test_credit_note_reverses_part_of_an_invoice(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    invoice = _invoice_order(db, tenant_id, manufacturer, customer, products[0], "4")

    with atomic(db):
        note = create_credit_note(db, CreditNoteCreate(
            company_id=manufacturer.id,
            customer_id=customer.id,
            invoice_id=invoice.id,
            amount="150.00",
            reason="Damaged in transit",
            note_date=date(2026, 3, 4),
        ), tenant_id, "alice")

    assert note.credit_note_number == "CN00001"
    assert note.status == CreditNoteStatus.APPLIED
    assert invoice.amount_credited == Decimal("150.00")
    assert invoice.balance_due == Decimal("250.00")
    assert invoice.status == InvoiceStatus.PARTIAL
    entry = db.get(JournalEntry, note.journal_entry_id)
    assert (entry.source_type, entry.source_id) == ("credit_note", note.id)
    assert get_account_by_code(db, manufacturer.id, "1100").balance == Decimal("250.00")
    assert get_account_by_code(db, manufacturer.id, "4000").balance == Decimal("250.00")

    with atomic(db):
        apply_invoice_payment(db, invoice, Decimal("250.00"))
    assert invoice.status == InvoiceStatus.PAID
    assert invoice.balance_due == Decimal("0.00")


def test_credit_note_cannot_exceed_what_is_still_due(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    invoice = _invoice_order(db, tenant_id, manufacturer, customer, products[0], "1")
    with atomic(db):
        apply_invoice_payment(db, invoice, Decimal("60.00"))
    entries_before = db.query(JournalEntry).count()

    with pytest.raises(CreditExceedsBalance):
        with atomic(db):
            create_credit_note(db, CreditNoteCreate(
                company_id=manufacturer.id,
                customer_id=customer.id,
                invoice_id=invoice.id,
                amount="40.01",
                reason="Price correction",
            ), tenant_id, "alice")

    assert db.query(JournalEntry).count() == entries_before
    assert db.query(CreditNote).count() == 0
    db.refresh(invoice)
    assert invoice.balance_due == Decimal("40.00")


def test_credit_note_on_another_customers_invoice_is_rejected(db, tenant_id, companies, customer, products):
    manufacturer, plant = companies
    invoice = _invoice_order(db, tenant_id, manufacturer, customer, products[0], "1")
    with pytest.raises(ValidationFailed):
        with atomic(db):
            create_credit_note(db, CreditNoteCreate(
                company_id=plant.id,
                customer_id=customer.id,
                invoice_id=invoice.id,
                amount="10",
                reason="Wrong company",
            ), tenant_id, "alice")


def test_standalone_credit_note_uses_receivable_and_revenue(db, tenant_id, companies, customer):
    manufacturer, _ = companies
    with atomic(db):
        note = create_credit_note(db, CreditNoteCreate(
            company_id=manufacturer.id,
            customer_id=customer.id,
            amount="50",
            reason="Goodwill",
        ), tenant_id, "alice")

    assert note.status == CreditNoteStatus.ISSUED
    assert note.invoice_id is None
    assert get_account_by_code(db, manufacturer.id, "1100").balance == Decimal("-50.00")
    assert get_account_by_code(db, manufacturer.id, "4000").balance == Decimal("-50.00")


def test_debit_note_lowers_a_bill_before_payment(db, tenant_id, companies, vendor, products):
    _, plant = companies
    with atomic(db):
        po = crud_purchase_orders.create_purchase_order(db, PurchaseOrderCreate(
            company_id=plant.id,
            vendor_id=vendor.id,
            order_date=date(2026, 3, 1),
            status=PurchaseOrderStatus.APPROVED,
            items=[{"product_id": products[1].id, "quantity": "4", "price_per_unit": "25.00"}],
        ), tenant_id, "bob")
        bill = create_bill_document(db, po, [{
            "product_id": products[1].id,
            "po_item_id": po.items[0].id,
            "description": "Gadget",
            "quantity": Decimal("4"),
            "price_per_unit": Decimal("25.00"),
            "line_total": Decimal("100.00"),
        }], date(2026, 3, 3))

    with atomic(db):
        note = create_debit_note(db, DebitNoteCreate(
            company_id=plant.id,
            vendor_id=vendor.id,
            bill_id=bill.id,
            amount="30",
            reason="One gadget returned",
        ), tenant_id, "bob")

    assert note.debit_note_number == "DN00001"
    assert note.status == DebitNoteStatus.APPLIED
    assert bill.balance_due == Decimal("70.00")
    assert bill.status == BillStatus.PARTIAL
    assert get_account_by_code(db, plant.id, "2000").balance == Decimal("-30.00")
    assert get_account_by_code(db, plant.id, "5000").balance == Decimal("-30.00")

    with pytest.raises(PaymentExceedsBalance):
        with atomic(db):
            create_payment(db, PaymentCreate(company_id=plant.id, bill_id=bill.id, amount="70.01"), tenant_id, "bob")
    with atomic(db):
        create_payment(db, PaymentCreate(company_id=plant.id, bill_id=bill.id, amount="70"), tenant_id, "bob")
    db.refresh(bill)
    assert bill.status == BillStatus.PAID
    assert bill.balance_due == Decimal("0.00")
