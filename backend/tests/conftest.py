import os
import tempfile
from decimal import Decimal

# Point the app at a throwaway database before anything imports `database`
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "intercompany-ledger-test-logs"))

import pytest
from fastapi.testclient import TestClient

from database import Base, engine, SessionLocal
import models  # noqa: F401
from models.companies import Company, CompanyType
from models.products import Product
from models.business_partners import BusinessPartner
from crud.chart_of_accounts import initialize_default_accounts

TENANT_ID = "tenant-a"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def companies(db):
    """A manufacturer selling to a plant, both with the default chart of accounts."""
    manufacturer = Company(tenant_id=TENANT_ID, name="Acme Manufacturing", code="ACME", company_type=CompanyType.MANUFACTURER)
    plant = Company(tenant_id=TENANT_ID, name="Acme Plant", code="PLANT", company_type=CompanyType.PLANT)
    db.add_all([manufacturer, plant])
    db.flush()
    initialize_default_accounts(db, manufacturer)
    initialize_default_accounts(db, plant)
    db.commit()
    return manufacturer, plant


@pytest.fixture
def products(db):
    widget = Product(tenant_id=TENANT_ID, name="Widget", sku="W-1", sales_price=Decimal("100.00"))
    gadget = Product(tenant_id=TENANT_ID, name="Gadget", sku="G-1", sales_price=Decimal("50.00"))
    db.add_all([widget, gadget])
    db.commit()
    return widget, gadget


@pytest.fixture
def customer(db, companies):
    """An outside customer of the manufacturer."""
    manufacturer, _ = companies
    partner = BusinessPartner(tenant_id=TENANT_ID, company_id=manufacturer.id, name="Outside Customer Ltd", is_customer=True, is_vendor=False)
    db.add(partner)
    db.commit()
    return partner


@pytest.fixture
def vendor(db, companies):
    """An outside vendor of the plant."""
    _, plant = companies
    partner = BusinessPartner(tenant_id=TENANT_ID, company_id=plant.id, name="Outside Supplier Ltd", is_customer=False, is_vendor=True)
    db.add(partner)
    db.commit()
    return partner


@pytest.fixture
def client(db):
    from main import app
    with TestClient(app, headers={"X-Tenant-ID": TENANT_ID, "X-User-ID": "tester"}) as test_client:
        yield test_client


@pytest.fixture
def tenant_id():
    return TENANT_ID
