from datetime import date
from decimal import Decimal
from itertools import count

import pytest

import crud.intercompany_journal as intercompany_journal
from database import atomic
from exceptions import (
    CreditExceedsBalance,
    DocumentLocked,
    DocumentNumberConflict,
    MissingRequiredAccount,
    NotFound,
    OperationTimedOut,
    PaymentExceedsBalance,
    QuantityExceedsRemaining,
    ValidationFailed,
)
from models.audit_log import AuditLog
from models.bills import Bill
from models.business_partners import BusinessPartner
from models.credit_notes import CreditNote
from models.debit_notes import DebitNote
from models.intercompany_transactions import IntercompanyTransaction, IntercompanyStatus, IntercompanyPaymentStatus
from models.invoices import Invoice, InvoiceStatus
from models.journal_entry import JournalEntry
from models.purchase_orders import PurchaseOrderStatus
from models.sales_order_items import SalesOrderItem
from models.sales_orders import SalesOrderStatus
from crud.chart_of_accounts import get_account_by_code
from crud.invoices import create_invoice
from crud.intercompany_linker import create_intercompany_sales_order, find_transaction_for_order, resolve_transaction_group
from crud.intercompany_transactions import get_intercompany_balances, get_receipt_eligible_transactions
from crud.intercompany_workflow import create_intercompany_adjustment, create_intercompany_invoice, create_intercompany_receipt_payment
from crud.purchase_orders import create_purchase_order, update_purchase_order_status
from crud.sales_orders import create_sales_order, update_sales_order_status
from schemas.invoices import InvoiceCreate
from schemas.purchase_orders import PurchaseOrderCreate
from schemas.sales_orders import SalesOrderCreate
from schemas.intercompany import (
    IntercompanyAdjustmentCreate,
    IntercompanyInvoiceCreate,
    IntercompanyReceiptPaymentCreate,
    IntercompanySalesOrderCreate,
)
from utils.deadline import Deadline


@pytest.fixture
def ic_order(db, tenant_id, companies, products):
    """10 widgets at 100 sold by the manufacturer to the plant under REF-1."""
    manufacturer, plant = companies
    with atomic(db):
        return create_intercompany_sales_order(db, IntercompanySalesOrderCreate(
            source_company_id=manufacturer.id,
            target_company_id=plant.id,
            products=[{"product_id": products[0].id, "quantity": "10", "price_per_unit": "100"}],
            total="1000",
            reference_number="REF-1",
            order_date=date(2026, 3, 1),
        ), tenant_id, "alice")


def _invoice(db, tenant_id, sales_order, deadline=None, **selection):
    with atomic(db):
        return create_intercompany_invoice(db, IntercompanyInvoiceCreate(
            sales_order_id=sales_order.id,
            company_id=sales_order.company_id,
            invoice_date=date(2026, 3, 5),
            **selection
        ), tenant_id, "alice", deadline=deadline)


def _settle(db, tenant_id, invoice, amount):
    with atomic(db):
        return create_intercompany_receipt_payment(db, IntercompanyReceiptPaymentCreate(
            invoice_id=invoice.id,
            company_id=invoice.company_id,
            amount=amount,
            payment_method="bank_transfer",
            payment_date=date(2026, 3, 10),
        ), tenant_id, "bob")


def _balance(db, company, code):
    return get_account_by_code(db, company.id, code).balance


def test_sales_order_is_mirrored_under_one_reference(db, companies, ic_order):
    manufacturer, plant = companies
    so, po, transaction = ic_order["sales_order"], ic_order["purchase_order"], ic_order["transaction"]

    assert (so.company_id, po.company_id) == (manufacturer.id, plant.id)
    assert so.total_amount == po.total_amount == Decimal("1000.00")
    assert so.reference_number == po.reference_number == transaction.reference_number == "REF-1"
    assert so.status == SalesOrderStatus.OPEN
    assert po.status == PurchaseOrderStatus.APPROVED
    assert (transaction.source_order_id, transaction.target_order_id) == (str(so.id), str(po.id))
    assert transaction.status == IntercompanyStatus.PENDING

    customer = db.get(BusinessPartner, so.customer_id)
    vendor = db.get(BusinessPartner, po.vendor_id)
    assert (customer.company_id, customer.linked_company_id) == (manufacturer.id, plant.id)
    assert (vendor.company_id, vendor.linked_company_id) == (plant.id, manufacturer.id)


def test_generated_reference_and_reused_partners(db, tenant_id, companies, products, ic_order):
    manufacturer, plant = companies
    with atomic(db):
        second = create_intercompany_sales_order(db, IntercompanySalesOrderCreate(
            source_company_id=manufacturer.id,
            target_company_id=plant.id,
            products=[{"product_id": products[1].id, "quantity": "1", "price_per_unit": "50"}],
        ), tenant_id, "alice")

    assert second["reference_number"].startswith(f"IC-REF-{manufacturer.id}-{plant.id}-")
    assert second["sales_order"].customer_id == ic_order["sales_order"].customer_id
    assert db.query(BusinessPartner).count() == 2


@pytest.mark.parametrize("overrides", [
    {"total": "999"},
    {"reference_number": "REF-1"},
    {"products": []},
])
def test_invalid_intercompany_orders_are_rejected(db, tenant_id, companies, products, ic_order, overrides):
    manufacturer, plant = companies
    payload = {
        "source_company_id": manufacturer.id,
        "target_company_id": plant.id,
        "products": [{"product_id": products[0].id, "quantity": "10", "price_per_unit": "100"}],
    }
    payload.update(overrides)
    with pytest.raises(ValidationFailed):
        with atomic(db):
            create_intercompany_sales_order(db, IntercompanySalesOrderCreate(**payload), tenant_id, "alice")
    assert db.query(IntercompanyTransaction).count() == 1


def test_order_cannot_be_sold_to_its_own_company(db, tenant_id, companies, products):
    manufacturer, _ = companies
    with pytest.raises(ValidationFailed):
        create_intercompany_sales_order(db, IntercompanySalesOrderCreate(
            source_company_id=manufacturer.id,
            target_company_id=manufacturer.id,
            products=[{"product_id": products[0].id, "quantity": "1", "price_per_unit": "1"}],
        ), tenant_id, "alice")


def test_full_invoice_books_both_ledgers(db, tenant_id, companies, ic_order):
    manufacturer, plant = companies
    result = _invoice(db, tenant_id, ic_order["sales_order"])

    assert not result["is_partial"]
    assert result["invoice"].total == result["bill"].total == Decimal("1000.00")
    assert result["invoice"].reference_number == result["bill"].reference_number == "REF-1"
    transaction = result["transaction"]
    assert transaction.id == ic_order["transaction"].id
    assert transaction.status == IntercompanyStatus.COMPLETED
    assert transaction.source_invoice_id == result["invoice"].id
    assert transaction.target_bill_id == result["bill"].id

    source_entry = db.get(JournalEntry, result["source_journal_entry_id"])
    target_entry = db.get(JournalEntry, result["target_journal_entry_id"])
    assert (source_entry.company_id, source_entry.source_type) == (manufacturer.id, "intercompany_invoice")
    assert (target_entry.company_id, target_entry.source_type) == (plant.id, "intercompany_bill")
    assert _balance(db, manufacturer, "1150") == _balance(db, manufacturer, "4000") == Decimal("1000.00")
    assert _balance(db, plant, "5000") == _balance(db, plant, "2150") == Decimal("1000.00")

    db.refresh(ic_order["sales_order"])
    assert ic_order["sales_order"].status == SalesOrderStatus.INVOICED
    group = resolve_transaction_group(db, "REF-1", tenant_id)
    assert (len(group["invoices"]), len(group["bills"]), len(group["intercompany_transactions"])) == (1, 1, 1)


def test_partial_invoice_then_over_selection(db, tenant_id, ic_order):
    so = ic_order["sales_order"]
    so_item_id = so.items[0].id
    result = _invoice(db, tenant_id, so, items=[{"so_item_id": so_item_id, "quantity": "4"}])

    assert result["is_partial"]
    assert result["invoice"].total == Decimal("400.00")
    line = db.get(SalesOrderItem, so_item_id)
    assert line.invoiced_quantity == Decimal("4")

    with pytest.raises(QuantityExceedsRemaining):
        _invoice(db, tenant_id, so, items=[{"so_item_id": so_item_id, "quantity": "7"}])
    db.refresh(line)
    assert line.invoiced_quantity == Decimal("4")
    assert db.query(Invoice).count() == 1


def test_later_partial_invoices_get_their_own_transaction(db, tenant_id, ic_order):
    so = ic_order["sales_order"]
    first = _invoice(db, tenant_id, so, partial_amount="400")
    second = _invoice(db, tenant_id, so)

    assert first["transaction"].id == ic_order["transaction"].id
    assert second["transaction"].id != first["transaction"].id
    assert second["transaction"].reference_number == "REF-1"
    assert second["transaction"].source_order_id == str(so.id)
    assert second["transaction"].parent_transaction_id == first["transaction"].id
    assert second["invoice"].total == Decimal("600.00")
    assert second["is_partial"]

    with pytest.raises(ValidationFailed):
        _invoice(db, tenant_id, so)
    assert len(resolve_transaction_group(db, "REF-1", tenant_id)["intercompany_transactions"]) == 2


def test_settlement_pays_invoice_and_bill(db, tenant_id, companies, ic_order):
    manufacturer, plant = companies
    invoiced = _invoice(db, tenant_id, ic_order["sales_order"], items=[{"so_item_id": ic_order["sales_order"].items[0].id, "quantity": "4"}])

    result = _settle(db, tenant_id, invoiced["invoice"], "400")

    assert result["invoice"].status == InvoiceStatus.PAID
    assert result["invoice"].balance_due == Decimal("0.00")
    assert result["bill"].balance_due == Decimal("0.00")
    assert result["receipt"].company_id == manufacturer.id
    assert result["payment"].company_id == plant.id
    assert result["receipt"].receipt_number == "RC00001"
    assert result["payment"].payment_number == "PAY00001"
    transaction = result["transaction"]
    assert transaction.payment_status == IntercompanyPaymentStatus.PAID
    assert (transaction.source_receipt_id, transaction.target_payment_id) == (result["receipt"].id, result["payment"].id)

    paying = db.query(JournalEntry).filter(JournalEntry.source_type == "intercompany_payment").one()
    receiving = db.query(JournalEntry).filter(JournalEntry.source_type == "intercompany_receipt").one()
    assert (paying.company_id, receiving.company_id) == (plant.id, manufacturer.id)
    assert _balance(db, plant, "2150") == Decimal("0.00")
    assert _balance(db, plant, "1000") == Decimal("-400.00")
    assert _balance(db, manufacturer, "1000") == Decimal("400.00")
    assert _balance(db, manufacturer, "1150") == Decimal("0.00")

    db.refresh(ic_order["sales_order"])
    db.refresh(ic_order["purchase_order"])
    assert ic_order["sales_order"].total_amount_paid == Decimal("400.00")
    assert ic_order["sales_order"].status == SalesOrderStatus.PARTIAL
    assert ic_order["purchase_order"].total_amount_paid == Decimal("400.00")

    with pytest.raises(ValidationFailed):
        _settle(db, tenant_id, invoiced["invoice"], "1")


def test_settlement_rejects_overpayment_without_posting(db, tenant_id, ic_order):
    invoiced = _invoice(db, tenant_id, ic_order["sales_order"], partial_amount="400")
    entries_before = db.query(JournalEntry).count()

    with pytest.raises(PaymentExceedsBalance):
        _settle(db, tenant_id, invoiced["invoice"], "400.01")

    assert db.query(JournalEntry).count() == entries_before
    db.refresh(invoiced["invoice"])
    assert invoiced["invoice"].amount_paid == Decimal("0.00")


def test_settlement_requires_intercompany_invoice(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    with atomic(db):
        so = create_sales_order(db, SalesOrderCreate(
            company_id=manufacturer.id,
            customer_id=customer.id,
            order_date=date(2026, 3, 1),
            status=SalesOrderStatus.OPEN,
            items=[{"product_id": products[0].id, "quantity": "1", "price_per_unit": "100"}],
        ), tenant_id, "alice")
        invoice = create_invoice(db, InvoiceCreate(sales_order_id=so.id, items=[{"product_id": products[0].id, "quantity": "1"}]), tenant_id, "alice")

    with pytest.raises(NotFound):
        _settle(db, tenant_id, invoice, "100")


def test_failure_in_second_posting_rolls_back_everything(db, tenant_id, ic_order, monkeypatch):
    real_post = intercompany_journal.post_journal_entry
    calls = count(1)

    def failing_post(*args, **kwargs):
        if next(calls) == 2:
            raise RuntimeError("connection lost")
        return real_post(*args, **kwargs)

    monkeypatch.setattr(intercompany_journal, "post_journal_entry", failing_post)
    with pytest.raises(RuntimeError):
        _invoice(db, tenant_id, ic_order["sales_order"])

    assert db.query(JournalEntry).count() == 0
    assert db.query(Invoice).count() == 0
    assert db.query(Bill).count() == 0
    transaction = db.get(IntercompanyTransaction, ic_order["transaction"].id)
    assert transaction.status == IntercompanyStatus.PENDING
    assert transaction.source_invoice_id is None
    assert not db.get(SalesOrderItem, ic_order["sales_order"].items[0].id).invoiced_quantity


def test_expired_deadline_aborts_without_partial_writes(db, tenant_id, ic_order):
    ticks = count()
    deadline = Deadline("create_intercompany_invoice", seconds=2.5, clock=lambda: next(ticks))

    with pytest.raises(OperationTimedOut) as exc:
        _invoice(db, tenant_id, ic_order["sales_order"], deadline=deadline)

    assert exc.value.retryable
    assert exc.value.context["step"] == "create invoice and bill"
    assert db.query(Invoice).count() == 0
    assert not db.get(SalesOrderItem, ic_order["sales_order"].items[0].id).invoiced_quantity


def test_missing_account_leaves_ledgers_untouched(db, tenant_id, companies, ic_order):
    _, plant = companies
    get_account_by_code(db, plant.id, "2150").is_active = False
    db.commit()

    with pytest.raises(MissingRequiredAccount) as exc:
        _invoice(db, tenant_id, ic_order["sales_order"])

    assert exc.value.context["account_code"] == "2150"
    assert exc.value.context["company_id"] == plant.id
    assert db.query(JournalEntry).count() == 0
    assert db.query(Invoice).count() == 0


def test_transaction_lookup_is_stable(db, tenant_id, companies, ic_order):
    manufacturer, _ = companies
    so = ic_order["sales_order"]
    expected = ic_order["transaction"].id

    first = find_transaction_for_order(db, tenant_id, so.id, reference_number="REF-1")
    second = find_transaction_for_order(db, tenant_id, str(so.id), company_id=manufacturer.id)
    cached = find_transaction_for_order(db, tenant_id, so.id, candidates=[{"id": 999, "source_order_id": str(so.id)}])

    assert first.id == second.id == cached.id == expected
    with pytest.raises(NotFound):
        find_transaction_for_order(db, tenant_id, 4242)


def _plain_order(db, tenant_id, company, customer, product):
    with atomic(db):
        return create_sales_order(db, SalesOrderCreate(
            company_id=company.id,
            customer_id=customer.id,
            order_date=date(2026, 3, 2),
            status=SalesOrderStatus.OPEN,
            items=[{"product_id": product.id, "quantity": "1", "price_per_unit": "10"}],
        ), tenant_id, "alice")


def _assert_nothing_invoiced(db, transaction):
    db.refresh(transaction)
    assert transaction.source_invoice_id is None
    assert transaction.status == IntercompanyStatus.PENDING
    assert db.query(Invoice).count() == 0
    assert db.query(Bill).count() == 0
    assert db.query(JournalEntry).count() == 0


def test_substring_order_id_match_cannot_invoice_an_unrelated_order(db, tenant_id, companies, customer, products, ic_order):
    manufacturer, _ = companies
    so, transaction = ic_order["sales_order"], ic_order["transaction"]
    plain = _plain_order(db, tenant_id, manufacturer, customer, products[0])
    while plain.id <= so.id or str(so.id) not in str(plain.id):
        plain = _plain_order(db, tenant_id, manufacturer, customer, products[0])
    assert plain.reference_number is None

    # The read-only lookup is allowed to match loosely
    assert find_transaction_for_order(db, tenant_id, plain.id, company_id=manufacturer.id).id == transaction.id

    with pytest.raises(NotFound):
        _invoice(db, tenant_id, plain)
    _assert_nothing_invoiced(db, transaction)
    db.refresh(plain.items[0])
    assert not plain.items[0].fully_invoiced


def test_purchase_order_id_does_not_claim_a_sales_order(db, tenant_id, companies, customer, vendor, products):
    manufacturer, plant = companies
    with atomic(db):
        create_purchase_order(db, PurchaseOrderCreate(
            company_id=plant.id,
            vendor_id=vendor.id,
            order_date=date(2026, 3, 1),
            status=PurchaseOrderStatus.APPROVED,
            items=[{"product_id": products[1].id, "quantity": "1", "price_per_unit": "5"}],
        ), tenant_id, "bob")
    with atomic(db):
        created = create_intercompany_sales_order(db, IntercompanySalesOrderCreate(
            source_company_id=manufacturer.id,
            target_company_id=plant.id,
            products=[{"product_id": products[0].id, "quantity": "2", "price_per_unit": "100"}],
            reference_number="REF-2",
        ), tenant_id, "alice")
    transaction = created["transaction"]
    plain = _plain_order(db, tenant_id, manufacturer, customer, products[0])

    # The plain sales order id collides with the mirrored purchase order id
    assert transaction.target_order_id == str(plain.id)
    assert transaction.source_order_id != str(plain.id)
    assert find_transaction_for_order(db, tenant_id, plain.id, company_id=manufacturer.id).id == transaction.id

    with pytest.raises(NotFound):
        _invoice(db, tenant_id, plain)
    _assert_nothing_invoiced(db, transaction)


@pytest.mark.parametrize("path", [
    [PurchaseOrderStatus.CANCELLED],
    [PurchaseOrderStatus.PROCESSING, PurchaseOrderStatus.RECEIVED],
])
def test_closed_purchase_order_blocks_intercompany_invoice(db, tenant_id, ic_order, path):
    for new_status in path:
        with atomic(db):
            update_purchase_order_status(db, ic_order["purchase_order"].id, new_status, tenant_id, "bob")

    with pytest.raises(DocumentLocked):
        _invoice(db, tenant_id, ic_order["sales_order"])
    assert db.query(Invoice).count() == 0
    assert db.query(Bill).count() == 0
    assert db.query(JournalEntry).count() == 0


@pytest.mark.parametrize("side", ["sales_order", "purchase_order"])
def test_cancelling_either_order_cancels_the_pending_transaction(db, tenant_id, ic_order, side):
    with atomic(db):
        if side == "sales_order":
            update_sales_order_status(db, ic_order["sales_order"].id, SalesOrderStatus.CANCELLED, tenant_id, "alice")
        else:
            update_purchase_order_status(db, ic_order["purchase_order"].id, PurchaseOrderStatus.CANCELLED, tenant_id, "bob")

    transaction = ic_order["transaction"]
    db.refresh(transaction)
    assert transaction.status == IntercompanyStatus.CANCELLED
    audit = db.query(AuditLog).filter(
        AuditLog.table_name == "intercompany_transactions",
        AuditLog.record_id == transaction.id,
        AuditLog.action == "CANCEL",
    ).one()
    assert audit.old_values["status"] == "pending"
    with pytest.raises(DocumentLocked):
        _invoice(db, tenant_id, ic_order["sales_order"])


def test_cancelling_after_an_invoice_keeps_the_completed_transaction(db, tenant_id, ic_order):
    so = ic_order["sales_order"]
    first = _invoice(db, tenant_id, so, items=[{"so_item_id": so.items[0].id, "quantity": "4"}])
    with atomic(db):
        update_purchase_order_status(db, ic_order["purchase_order"].id, PurchaseOrderStatus.CANCELLED, tenant_id, "bob")

    db.refresh(first["transaction"])
    assert first["transaction"].status == IntercompanyStatus.COMPLETED
    with pytest.raises(DocumentLocked):
        _invoice(db, tenant_id, so, items=[{"so_item_id": so.items[0].id, "quantity": "2"}])
    assert db.query(Bill).count() == 1


def test_reference_number_is_unique_per_tenant_in_the_database(db, tenant_id, ic_order):
    base = ic_order["transaction"]

    def _copy(**extra):
        return IntercompanyTransaction(
            tenant_id=tenant_id,
            source_company_id=base.source_company_id,
            target_company_id=base.target_company_id,
            amount=base.amount,
            transaction_date=base.transaction_date,
            reference_number=base.reference_number,
            status=IntercompanyStatus.PENDING,
            payment_status=IntercompanyPaymentStatus.PENDING,
            **extra
        )

    with pytest.raises(DocumentNumberConflict):
        with atomic(db):
            db.add(_copy())
            db.flush()

    with atomic(db):
        db.add(_copy(parent_transaction_id=base.id))
    assert db.query(IntercompanyTransaction).filter(IntercompanyTransaction.reference_number == "REF-1").count() == 2


def _adjust(db, tenant_id, invoice, amount):
    with atomic(db):
        return create_intercompany_adjustment(db, IntercompanyAdjustmentCreate(
            invoice_id=invoice.id,
            company_id=invoice.company_id,
            amount=amount,
            reason="Short shipment",
            adjustment_date=date(2026, 3, 8),
        ), tenant_id, "alice")


def test_adjustment_credits_invoice_and_debits_bill(db, tenant_id, companies, ic_order):
    manufacturer, plant = companies
    invoiced = _invoice(db, tenant_id, ic_order["sales_order"])

    result = _adjust(db, tenant_id, invoiced["invoice"], "200")

    credit_note, debit_note = result["credit_note"], result["debit_note"]
    assert (credit_note.company_id, credit_note.credit_note_number) == (manufacturer.id, "CN00001")
    assert (debit_note.company_id, debit_note.debit_note_number) == (plant.id, "DN00001")
    assert credit_note.reference_number == debit_note.reference_number == "REF-1"
    assert result["invoice"].balance_due == result["bill"].balance_due == Decimal("800.00")
    assert _balance(db, manufacturer, "1150") == _balance(db, manufacturer, "4000") == Decimal("800.00")
    assert _balance(db, plant, "5000") == _balance(db, plant, "2150") == Decimal("800.00")
    group = resolve_transaction_group(db, "REF-1", tenant_id)
    assert (len(group["credit_notes"]), len(group["debit_notes"])) == (1, 1)

    settled = _settle(db, tenant_id, invoiced["invoice"], "800")
    assert settled["invoice"].status == InvoiceStatus.PAID
    assert settled["transaction"].amount_paid == Decimal("800.00")
    assert settled["transaction"].payment_status == IntercompanyPaymentStatus.PAID
    assert _balance(db, plant, "2150") == _balance(db, manufacturer, "1150") == Decimal("0.00")


def test_adjustment_cannot_exceed_the_open_balance(db, tenant_id, ic_order):
    invoiced = _invoice(db, tenant_id, ic_order["sales_order"], partial_amount="400")
    _settle(db, tenant_id, invoiced["invoice"], "300")
    entries_before = db.query(JournalEntry).count()

    with pytest.raises(CreditExceedsBalance):
        _adjust(db, tenant_id, invoiced["invoice"], "100.01")

    assert db.query(JournalEntry).count() == entries_before
    assert db.query(CreditNote).count() == db.query(DebitNote).count() == 0
    db.refresh(invoiced["bill"])
    assert invoiced["bill"].balance_due == Decimal("100.00")


def test_adjustment_requires_an_intercompany_invoice(db, tenant_id, companies, customer, products):
    manufacturer, _ = companies
    plain = _plain_order(db, tenant_id, manufacturer, customer, products[0])
    with atomic(db):
        invoice = create_invoice(db, InvoiceCreate(
            sales_order_id=plain.id,
            items=[{"so_item_id": plain.items[0].id, "quantity": "1"}],
        ), tenant_id, "alice")

    with pytest.raises(NotFound):
        _adjust(db, tenant_id, invoice, "5")
    assert db.query(CreditNote).count() == 0


def test_balances_net_receivables_against_payables(db, tenant_id, companies, ic_order):
    manufacturer, plant = companies
    invoiced = _invoice(db, tenant_id, ic_order["sales_order"])
    _settle(db, tenant_id, invoiced["invoice"], "250")

    seller = get_intercompany_balances(db, tenant_id, manufacturer.id)
    buyer = get_intercompany_balances(db, tenant_id, plant.id)

    assert [(row["company_id"], row["receivable"], row["payable"], row["net"]) for row in seller["counterparties"]] == [
        (plant.id, Decimal("750.00"), Decimal("0"), Decimal("750.00")),
    ]
    assert seller["counterparties"][0]["company_name"] == "Acme Plant"
    assert seller["receivable_ledger_balance"] == Decimal("750.00")
    assert [(row["company_id"], row["net"]) for row in buyer["counterparties"]] == [(manufacturer.id, Decimal("-750.00"))]
    assert buyer["total_payable"] == Decimal("750.00")
    assert buyer["payable_ledger_balance"] == Decimal("750.00")


def test_receipt_eligible_lists_only_invoices_with_money_due(db, tenant_id, companies, ic_order):
    manufacturer, plant = companies
    so = ic_order["sales_order"]
    first = _invoice(db, tenant_id, so, partial_amount="400")
    second = _invoice(db, tenant_id, so)
    _settle(db, tenant_id, first["invoice"], "400")

    eligible = get_receipt_eligible_transactions(db, tenant_id, manufacturer.id)

    assert [row["transaction"].id for row in eligible] == [second["transaction"].id]
    assert eligible[0]["balance_due"] == Decimal("600.00")
    assert eligible[0]["counterparty_company_id"] == plant.id
    assert get_receipt_eligible_transactions(db, tenant_id, plant.id) == []
