from decimal import Decimal

import pytest

from crud.chart_of_accounts import get_account_by_code


@pytest.fixture
def ic_reference(client, companies, products):
    manufacturer, plant = companies
    response = client.post("/intercompany/sales-orders", json={
        "source_company_id": manufacturer.id,
        "target_company_id": plant.id,
        "products": [{"product_id": products[0].id, "quantity": "10", "price_per_unit": "100"}],
        "total": "1,000.00",
        "reference_number": "REF-API",
        "order_date": "2026-03-01",
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_root(client):
    assert client.get("/").json() == {"message": "Intercompany Ledger API"}


def test_tenant_header_is_required(client):
    response = client.get("/sales-orders/", headers={"X-Tenant-ID": ""})
    assert response.status_code in (400, 422)


def test_not_found_uses_error_shape(client):
    response = client.get("/sales-orders/999")
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "not_found"
    assert body["detail"] == "Sales Order not found"
    assert body["id"] == 999


def test_orders_are_scoped_to_tenant(client, ic_reference):
    so_id = ic_reference["sales_order"]["id"]
    response = client.get(f"/sales-orders/{so_id}", headers={"X-Tenant-ID": "tenant-b"})
    assert response.status_code == 404


def test_intercompany_order_to_settlement(client, companies, ic_reference):
    manufacturer, plant = companies
    sales_order = ic_reference["sales_order"]
    assert Decimal(sales_order["total_amount"]) == Decimal("1000")
    assert Decimal(ic_reference["purchase_order"]["total_amount"]) == Decimal("1000")
    assert ic_reference["purchase_order"]["reference_number"] == "REF-API"

    response = client.post("/intercompany/invoices", json={
        "sales_order_id": str(sales_order["id"]),
        "company_id": manufacturer.id,
        "items": [{"so_item_id": sales_order["items"][0]["id"], "quantity": 4}],
    })
    assert response.status_code == 201, response.text
    invoiced = response.json()
    assert invoiced["is_partial"] is True
    assert Decimal(invoiced["invoice"]["total"]) == Decimal("400")
    assert invoiced["transaction"]["status"] == "completed"

    remaining = client.get(f"/sales-orders/{sales_order['id']}/remaining").json()
    assert Decimal(remaining["lines"][0]["remaining_qty"]) == Decimal("6")
    assert Decimal(remaining["remaining_amount"]) == Decimal("600")

    response = client.post("/intercompany/invoices", json={
        "sales_order_id": sales_order["id"],
        "company_id": manufacturer.id,
        "items": [{"so_item_id": sales_order["items"][0]["id"], "quantity": 7}],
    })
    assert response.status_code == 400
    assert response.json()["error"] == "quantity_exceeds_remaining"

    response = client.post("/intercompany/receipt-payments", json={
        "invoice_id": invoiced["invoice"]["id"],
        "company_id": manufacturer.id,
        "amount": "400",
        "payment_method": "bank_transfer",
    })
    assert response.status_code == 201, response.text
    settled = response.json()
    assert settled["invoice"]["status"] == "paid"
    assert Decimal(settled["invoice"]["balance_due"]) == Decimal("0")
    assert settled["transaction"]["payment_status"] == "paid"

    group = client.get("/transactions/by-reference/REF-API").json()
    assert [len(group[key]) for key in ("sales_orders", "purchase_orders", "invoices", "bills", "receipts", "payments")] == [1, 1, 1, 1, 1, 1]

    entries = client.get("/journal-entries/", params={"company_id": plant.id}).json()
    assert sorted(entry["source_type"] for entry in entries) == ["intercompany_bill", "intercompany_payment"]


def test_transaction_lookup_by_order(client, companies, ic_reference):
    order_id = ic_reference["sales_order"]["id"]
    response = client.get(f"/intercompany/transactions/by-order/{order_id}")
    assert response.status_code == 200
    assert response.json()["id"] == ic_reference["transaction"]["id"]

    response = client.get("/intercompany/transactions/by-order/nothing-like-this")
    assert response.status_code == 404


@pytest.mark.parametrize("amount", ["-5", "0", "abc", "1.005"])
def test_bad_amounts_are_rejected_before_any_work(client, companies, ic_reference, amount):
    manufacturer, _ = companies
    response = client.post("/intercompany/receipt-payments", json={
        "invoice_id": 1,
        "company_id": manufacturer.id,
        "amount": amount,
        "payment_method": "cash",
    })
    assert response.status_code == 422


def test_unbalanced_manual_entry(client, db, companies):
    manufacturer, _ = companies
    cash = get_account_by_code(db, manufacturer.id, "1000")
    equity = get_account_by_code(db, manufacturer.id, "3000")
    payload = {
        "company_id": manufacturer.id,
        "date": "2026-03-01",
        "description": "Owner contribution",
        "items": [
            {"account_id": cash.id, "debit": "500.00"},
            {"account_id": equity.id, "credit": "400.00"},
        ],
    }

    response = client.post("/journal-entries/", json=payload)
    assert response.status_code == 422
    assert response.json()["error"] == "unbalanced_entry"

    payload["items"][1]["credit"] = "500.00"
    response = client.post("/journal-entries/", json=payload)
    assert response.status_code == 201, response.text
    assert response.json()["entry_number"] == "JE00001"


def test_sales_order_status_endpoint(client, companies, customer, products):
    manufacturer, _ = companies
    created = client.post("/sales-orders/", json={
        "company_id": manufacturer.id,
        "customer_id": customer.id,
        "order_date": "2026-03-01",
        "items": [{"product_id": products[0].id, "quantity": "2", "price_per_unit": "10"}],
    })
    assert created.status_code == 201, created.text
    so_id = created.json()["id"]

    response = client.patch(f"/sales-orders/{so_id}/status", json={"status": "invoiced"})
    assert response.status_code == 409
    assert response.json()["current_status"] == "draft"

    assert client.patch(f"/sales-orders/{so_id}/status", json={"status": "open"}).json()["status"] == "open"
    assert client.delete(f"/sales-orders/{so_id}").status_code == 409


def test_financial_settings_validate_account_type(client, db, companies):
    manufacturer, _ = companies
    revenue = get_account_by_code(db, manufacturer.id, "4000")

    assert client.get(f"/financial-settings/{manufacturer.id}").json()["cash_account_id"] is None
    response = client.patch(f"/financial-settings/{manufacturer.id}", json={"cash_account_id": revenue.id})
    assert response.status_code in (400, 422)


def test_business_partner_lifecycle(client, companies):
    manufacturer, _ = companies
    created = client.post("/business-partners/", json={
        "company_id": manufacturer.id,
        "name": "Northwind Traders",
        "email": "buyer@northwind.example",
        "is_vendor": False,
    })
    assert created.status_code == 201, created.text
    partner_id = created.json()["id"]

    duplicate = client.post("/business-partners/", json={"company_id": manufacturer.id, "name": "Northwind Traders"})
    assert duplicate.status_code == 400

    customers = client.get("/business-partners/", params={"company_id": manufacturer.id, "is_customer": True}).json()
    assert [partner["name"] for partner in customers] == ["Northwind Traders"]

    deactivated = client.delete(f"/business-partners/{partner_id}")
    assert deactivated.json()["status"] == "Inactive"


def test_audit_log_records_postings(client, db, companies):
    manufacturer, _ = companies
    cash = get_account_by_code(db, manufacturer.id, "1000")
    equity = get_account_by_code(db, manufacturer.id, "3000")
    created = client.post("/journal-entries/", json={
        "company_id": manufacturer.id,
        "date": "2026-03-01",
        "items": [
            {"account_id": cash.id, "debit": "75.00"},
            {"account_id": equity.id, "credit": "75.00"},
        ],
    }).json()

    rows = client.get("/audit-log/", params={"table_name": "journal_entries", "action": "post"}).json()
    assert [row["record_id"] for row in rows] == [created["id"]]
    assert rows[0]["changed_by"] == "tester"
    assert rows[0]["new_values"]["total"] == "75.00"


def test_adjustment_and_intercompany_reads(client, companies, ic_reference):
    manufacturer, plant = companies
    invoiced = client.post("/intercompany/invoices", json={
        "sales_order_id": ic_reference["sales_order"]["id"],
        "company_id": manufacturer.id,
    }).json()
    invoice_id = invoiced["invoice"]["id"]

    response = client.post("/intercompany/adjustments", json={
        "invoice_id": invoice_id,
        "company_id": manufacturer.id,
        "amount": "100",
        "reason": "Late delivery discount",
    })
    assert response.status_code == 201, response.text
    adjusted = response.json()
    assert adjusted["credit_note"]["status"] == "applied"
    assert Decimal(adjusted["invoice"]["amount_credited"]) == Decimal("100")
    assert Decimal(adjusted["bill"]["balance_due"]) == Decimal("900")

    response = client.post("/intercompany/adjustments", json={
        "invoice_id": invoice_id,
        "company_id": manufacturer.id,
        "amount": "900.01",
        "reason": "Too much",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "credit_exceeds_balance"

    balances = client.get("/intercompany/balances", params={"company_id": plant.id}).json()
    assert Decimal(balances["total_payable"]) == Decimal("900")
    assert balances["counterparties"][0]["company_id"] == manufacturer.id

    eligible = client.get("/intercompany/receipt-eligible", params={"company_id": manufacturer.id}).json()
    assert [row["invoice"]["id"] for row in eligible] == [invoice_id]
    assert Decimal(eligible[0]["balance_due"]) == Decimal("900")

    notes = client.get("/credit-notes/", params={"invoice_id": invoice_id}).json()
    assert [note["id"] for note in notes] == [adjusted["credit_note"]["id"]]
    assert client.get(f"/debit-notes/{adjusted['debit_note']['id']}").json()["vendor_id"] == adjusted["bill"]["vendor_id"]
    assert client.get("/debit-notes/9999").status_code == 404
