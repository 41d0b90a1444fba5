from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from database import Base, engine
from datetime import datetime
from exceptions import LedgerError
import models  # registers every table on Base.metadata
import routers.audit_log as audit_log
import routers.business_partners as business_partners
import routers.chart_of_accounts as chart_of_accounts
import routers.journal_entry as journal_entry
import routers.financial_settings as financial_settings
import routers.sales_orders as sales_orders
import routers.purchase_orders as purchase_orders
import routers.invoices as invoices
import routers.bills as bills
import routers.receipts as receipts
import routers.payments as payments
import routers.credit_notes as credit_notes
import routers.debit_notes as debit_notes
import routers.intercompany as intercompany
import routers.transactions as transactions
import os
import logging
from fastapi.openapi.utils import get_openapi


LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
os.makedirs(LOG_DIR, exist_ok=True) # Create the log directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also output logs to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler) # Add to the root logger

# Get a logger for this module (app.main)
logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
Base.metadata.create_all(bind=engine)


app = FastAPI()


allowed_origins_str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173"
)

# Split the string into a list, stripping any whitespace
allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',')]

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    message = f"{request.method} {request.url.path} failed with {exc.kind}: {exc.detail}"
    if exc.category == "consistency":
        logger.error(message)
    elif exc.category == "transient":
        logger.warning(f"{message} (retryable)")
    else:
        logger.warning(message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Intercompany Ledger API",
        version="1.0.0",
        description="Multi-company accounting with intercompany orders, invoices and settlements",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "TenantHeader": {
            "type": "apiKey",
            "in": "header",
            "name": "X-Tenant-ID",
        }
    }
    # Apply the tenant header to all endpoints
    openapi_schema["security"] = [{"TenantHeader": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(business_partners.router)
app.include_router(chart_of_accounts.router)
app.include_router(journal_entry.router)
app.include_router(financial_settings.router)
app.include_router(sales_orders.router)
app.include_router(purchase_orders.router)
app.include_router(invoices.router)
app.include_router(bills.router)
app.include_router(receipts.router)
app.include_router(payments.router)
app.include_router(credit_notes.router)
app.include_router(debit_notes.router)
app.include_router(intercompany.router)
app.include_router(transactions.router)
app.include_router(audit_log.router)

@app.get("/")
async def test_route():
    return {"message": "Intercompany Ledger API"}
