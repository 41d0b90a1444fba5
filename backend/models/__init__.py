from models.companies import Company
from models.chart_of_accounts import ChartOfAccounts
from models.financial_settings import FinancialSettings
from models.journal_entry import JournalEntry
from models.journal_item import JournalItem
from models.business_partners import BusinessPartner
from models.products import Product
from models.sales_orders import SalesOrder
from models.sales_order_items import SalesOrderItem
from models.purchase_orders import PurchaseOrder
from models.purchase_order_items import PurchaseOrderItem
from models.invoices import Invoice
from models.invoice_items import InvoiceItem
from models.bills import Bill
from models.bill_items import BillItem
from models.receipts import Receipt
from models.payments import Payment
from models.credit_notes import CreditNote
from models.debit_notes import DebitNote
from models.intercompany_transactions import IntercompanyTransaction
from models.audit_log import AuditLog

__all__ = ['AuditLog', 'Bill', 'BillItem', 'BusinessPartner', 'ChartOfAccounts', 'Company', 'CreditNote', 'DebitNote', 'FinancialSettings', 'IntercompanyTransaction', 'Invoice', 'InvoiceItem', 'JournalEntry', 'JournalItem', 'Payment', 'Product', 'PurchaseOrder', 'PurchaseOrderItem', 'Receipt', 'SalesOrder', 'SalesOrderItem',]
