"""initial ledger schema

Revision ID: a1c3e5f7b9d0
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


company_type = sa.Enum('MANUFACTURER', 'PLANT', 'DISTRIBUTOR', name='companytype')
account_type = sa.Enum('ASSET', 'LIABILITY', 'EQUITY', 'REVENUE', 'EXPENSE', name='accounttype')
partner_status = sa.Enum('ACTIVE', 'INACTIVE', 'BLOCKED', name='partnerstatus')
sales_order_status = sa.Enum(
    'DRAFT', 'OPEN', 'DELIVERED', 'INVOICED', 'PARTIAL', 'PAID', 'CLOSED', 'CANCELLED', 'RETURNED',
    name='salesorderstatus',
)
purchase_order_status = sa.Enum(
    'DRAFT', 'SENT', 'APPROVED', 'PROCESSING', 'RECEIVED', 'CANCELLED',
    name='purchaseorderstatus',
)
invoice_status = sa.Enum('DRAFT', 'OPEN', 'PARTIAL', 'PAID', 'OVERDUE', 'VOID', name='invoicestatus')
bill_status = sa.Enum('DRAFT', 'OPEN', 'PARTIAL', 'PAID', 'OVERDUE', 'VOID', name='billstatus')
intercompany_status = sa.Enum('PENDING', 'COMPLETED', 'CANCELLED', name='intercompanystatus')
intercompany_payment_status = sa.Enum('PENDING', 'PARTIAL', 'PAID', name='intercompanypaymentstatus')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def _money(name, nullable=False, server_default=None):
    return sa.Column(name, sa.Numeric(15, 2), nullable=nullable, server_default=server_default)


def upgrade() -> None:
    """Create every table of the ledger."""
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('company_type', company_type, nullable=False),
        sa.Column('base_currency', sa.String(3), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'code', name='_tenant_company_code_uc'),
    )
    op.create_index('ix_companies_id', 'companies', ['id'])
    op.create_index('ix_companies_tenant_id', 'companies', ['tenant_id'])

    op.create_table(
        'chart_of_accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('account_code', sa.String(20), nullable=False),
        sa.Column('account_name', sa.String(100), nullable=False),
        sa.Column('account_type', account_type, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=True),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _money('balance', server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'account_code', name='_company_account_code_uc'),
    )
    op.create_index('ix_chart_of_accounts_id', 'chart_of_accounts', ['id'])
    op.create_index('ix_chart_of_accounts_tenant_id', 'chart_of_accounts', ['tenant_id'])
    op.create_index('ix_chart_of_accounts_company_id', 'chart_of_accounts', ['company_id'])
    op.create_index('ix_chart_of_accounts_account_code', 'chart_of_accounts', ['account_code'])

    role_columns = [
        'cash_account_id',
        'accounts_receivable_account_id',
        'accounts_payable_account_id',
        'intercompany_receivable_account_id',
        'intercompany_payable_account_id',
        'revenue_account_id',
        'expense_account_id',
    ]
    op.create_table(
        'financial_settings',
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        *[sa.Column(name, sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=True) for name in role_columns],
        *_timestamps(),
    )
    op.create_index('ix_financial_settings_tenant_id', 'financial_settings', ['tenant_id'])

    op.create_table(
        'journal_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('entry_number', sa.String(20), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('reference_document', sa.String(), nullable=True),
        sa.Column('source_type', sa.String(50), nullable=True),
        sa.Column('source_id', sa.Integer(), nullable=True),
        sa.Column('is_posted', sa.Boolean(), nullable=False),
        sa.Column('posted_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'sequence', name='_company_je_sequence_uc'),
        sa.UniqueConstraint('company_id', 'entry_number', name='_company_je_number_uc'),
    )
    op.create_index('ix_journal_entries_id', 'journal_entries', ['id'])
    op.create_index('ix_journal_entries_tenant_id', 'journal_entries', ['tenant_id'])
    op.create_index('ix_journal_entries_company_id', 'journal_entries', ['company_id'])

    op.create_table(
        'journal_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('debit', sa.Numeric(15, 2), sa.CheckConstraint('debit >= 0'), nullable=False),
        sa.Column('credit', sa.Numeric(15, 2), sa.CheckConstraint('credit >= 0'), nullable=False),
        sa.CheckConstraint(
            '(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0)',
            name='check_debit_or_credit_exclusive'
        ),
    )
    op.create_index('ix_journal_items_id', 'journal_items', ['id'])
    op.create_index('ix_journal_items_tenant_id', 'journal_items', ['tenant_id'])

    op.create_table(
        'business_partners',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('linked_company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('contact_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('status', partner_status, nullable=False),
        sa.Column('is_vendor', sa.Boolean(), nullable=False),
        sa.Column('is_customer', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_business_partners_id', 'business_partners', ['id'])
    op.create_index('ix_business_partners_tenant_id', 'business_partners', ['tenant_id'])
    op.create_index('ix_business_partners_company_id', 'business_partners', ['company_id'])
    op.create_index('ix_business_partners_linked_company_id', 'business_partners', ['linked_company_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sku', sa.String(50), nullable=True),
        _money('sales_price', nullable=True),
        _money('purchase_price', nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'sku', name='_tenant_product_sku_uc'),
    )
    op.create_index('ix_products_id', 'products', ['id'])
    op.create_index('ix_products_tenant_id', 'products', ['tenant_id'])

    for table, number_column, status_type, partner_column, prefix in (
        ('sales_orders', 'so_number', sales_order_status, 'customer_id', 'so'),
        ('purchase_orders', 'po_number', purchase_order_status, 'vendor_id', 'po'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('tenant_id', sa.String(), nullable=False),
            sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
            sa.Column(number_column, sa.String(20), nullable=False),
            sa.Column('sequence', sa.Integer(), nullable=False),
            sa.Column(partner_column, sa.Integer(), sa.ForeignKey('business_partners.id'), nullable=False),
            sa.Column('order_date', sa.Date(), nullable=False),
            sa.Column('expected_date', sa.Date(), nullable=True),
            _money('total_amount'),
            _money('total_amount_paid', server_default='0'),
            sa.Column('status', status_type, nullable=False),
            sa.Column('reference_number', sa.String(100), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint('company_id', 'sequence', name=f'_company_{prefix}_sequence_uc'),
            sa.UniqueConstraint('company_id', number_column, name=f'_company_{prefix}_number_uc'),
        )
        op.create_index(f'ix_{table}_id', table, ['id'])
        op.create_index(f'ix_{table}_tenant_id', table, ['tenant_id'])
        op.create_index(f'ix_{table}_company_id', table, ['company_id'])
        op.create_index(f'ix_{table}_reference_number', table, ['reference_number'])

    op.create_table(
        'sales_order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sales_order_id', sa.Integer(), sa.ForeignKey('sales_orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        _money('quantity'),
        _money('price_per_unit'),
        _money('line_total'),
        _money('invoiced_quantity', server_default='0'),
        sa.Column('fully_invoiced', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('tenant_id', sa.String(), nullable=True),
    )
    op.create_index('ix_sales_order_items_id', 'sales_order_items', ['id'])
    op.create_index('ix_sales_order_items_tenant_id', 'sales_order_items', ['tenant_id'])

    op.create_table(
        'purchase_order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('purchase_order_id', sa.Integer(), sa.ForeignKey('purchase_orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        _money('quantity'),
        _money('price_per_unit'),
        _money('line_total'),
        _money('billed_quantity', server_default='0'),
        sa.Column('fully_billed', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('tenant_id', sa.String(), nullable=True),
    )
    op.create_index('ix_purchase_order_items_id', 'purchase_order_items', ['id'])
    op.create_index('ix_purchase_order_items_tenant_id', 'purchase_order_items', ['tenant_id'])

    for table, number_column, status_type, partner_column, order_column, order_table, date_column, prefix in (
        ('invoices', 'invoice_number', invoice_status, 'customer_id', 'sales_order_id', 'sales_orders', 'invoice_date', 'invoice'),
        ('bills', 'bill_number', bill_status, 'vendor_id', 'purchase_order_id', 'purchase_orders', 'bill_date', 'bill'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('tenant_id', sa.String(), nullable=False),
            sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
            sa.Column(number_column, sa.String(20), nullable=False),
            sa.Column('sequence', sa.Integer(), nullable=False),
            sa.Column(partner_column, sa.Integer(), sa.ForeignKey('business_partners.id'), nullable=False),
            sa.Column(order_column, sa.Integer(), sa.ForeignKey(f'{order_table}.id'), nullable=True),
            sa.Column(date_column, sa.Date(), nullable=False),
            sa.Column('due_date', sa.Date(), nullable=False),
            sa.Column('status', status_type, nullable=False),
            _money('subtotal'),
            _money('tax_amount'),
            _money('total'),
            _money('amount_paid', server_default='0'),
            _money('balance_due'),
            sa.Column('reference_number', sa.String(100), nullable=True),
            sa.Column('journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint('company_id', 'sequence', name=f'_company_{prefix}_sequence_uc'),
            sa.UniqueConstraint('company_id', number_column, name=f'_company_{prefix}_number_uc'),
        )
        op.create_index(f'ix_{table}_id', table, ['id'])
        op.create_index(f'ix_{table}_tenant_id', table, ['tenant_id'])
        op.create_index(f'ix_{table}_company_id', table, ['company_id'])
        op.create_index(f'ix_{table}_{order_column}', table, [order_column])
        op.create_index(f'ix_{table}_reference_number', table, ['reference_number'])

    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('invoice_id', sa.Integer(), sa.ForeignKey('invoices.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('so_item_id', sa.Integer(), sa.ForeignKey('sales_order_items.id'), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        _money('quantity'),
        _money('price_per_unit'),
        _money('line_total'),
        _money('paid_quantity', server_default='0'),
        sa.Column('fully_paid', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('tenant_id', sa.String(), nullable=True),
    )
    op.create_index('ix_invoice_items_id', 'invoice_items', ['id'])
    op.create_index('ix_invoice_items_so_item_id', 'invoice_items', ['so_item_id'])
    op.create_index('ix_invoice_items_tenant_id', 'invoice_items', ['tenant_id'])

    op.create_table(
        'bill_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('bill_id', sa.Integer(), sa.ForeignKey('bills.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('po_item_id', sa.Integer(), sa.ForeignKey('purchase_order_items.id'), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        _money('quantity'),
        _money('price_per_unit'),
        _money('line_total'),
        sa.Column('tenant_id', sa.String(), nullable=True),
    )
    op.create_index('ix_bill_items_id', 'bill_items', ['id'])
    op.create_index('ix_bill_items_po_item_id', 'bill_items', ['po_item_id'])
    op.create_index('ix_bill_items_tenant_id', 'bill_items', ['tenant_id'])

    op.create_table(
        'receipts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('receipt_number', sa.String(20), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('sales_order_id', sa.Integer(), sa.ForeignKey('sales_orders.id'), nullable=False),
        sa.Column('invoice_id', sa.Integer(), sa.ForeignKey('invoices.id'), nullable=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('business_partners.id'), nullable=False),
        sa.Column('receipt_date', sa.Date(), nullable=False),
        _money('amount'),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('reference', sa.String(), nullable=True),
        sa.Column('reference_number', sa.String(100), nullable=True),
        sa.Column('is_partial_payment', sa.Boolean(), nullable=False),
        sa.Column('debit_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=False),
        sa.Column('credit_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=False),
        sa.Column('journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'sequence', name='_company_receipt_sequence_uc'),
        sa.UniqueConstraint('company_id', 'receipt_number', name='_company_receipt_number_uc'),
    )
    for column in ('id', 'tenant_id', 'company_id', 'sales_order_id', 'invoice_id', 'reference_number'):
        op.create_index(f'ix_receipts_{column}', 'receipts', [column])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('payment_number', sa.String(20), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('bill_id', sa.Integer(), sa.ForeignKey('bills.id'), nullable=False),
        sa.Column('purchase_order_id', sa.Integer(), sa.ForeignKey('purchase_orders.id'), nullable=True),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('business_partners.id'), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        _money('amount'),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('reference', sa.String(), nullable=True),
        sa.Column('reference_number', sa.String(100), nullable=True),
        sa.Column('is_partial_payment', sa.Boolean(), nullable=False),
        sa.Column('debit_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=False),
        sa.Column('credit_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=False),
        sa.Column('journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'sequence', name='_company_payment_sequence_uc'),
        sa.UniqueConstraint('company_id', 'payment_number', name='_company_payment_number_uc'),
    )
    for column in ('id', 'tenant_id', 'company_id', 'bill_id', 'purchase_order_id', 'reference_number'):
        op.create_index(f'ix_payments_{column}', 'payments', [column])

    op.create_table(
        'intercompany_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('source_company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('target_company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _money('amount'),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('reference_number', sa.String(100), nullable=True),
        sa.Column('source_order_id', sa.String(50), nullable=True),
        sa.Column('target_order_id', sa.String(50), nullable=True),
        sa.Column('source_invoice_id', sa.Integer(), sa.ForeignKey('invoices.id'), nullable=True),
        sa.Column('target_bill_id', sa.Integer(), sa.ForeignKey('bills.id'), nullable=True),
        sa.Column('source_receipt_id', sa.Integer(), sa.ForeignKey('receipts.id'), nullable=True),
        sa.Column('target_payment_id', sa.Integer(), sa.ForeignKey('payments.id'), nullable=True),
        sa.Column('source_journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=True),
        sa.Column('target_journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=True),
        sa.Column('is_partial_invoice', sa.Boolean(), nullable=False),
        sa.Column('status', intercompany_status, nullable=False),
        sa.Column('payment_status', intercompany_payment_status, nullable=False),
        _money('amount_paid', server_default='0'),
        *_timestamps(),
    )
    for column in (
        'id', 'tenant_id', 'source_company_id', 'target_company_id',
        'reference_number', 'source_order_id', 'target_order_id',
    ):
        op.create_index(f'ix_intercompany_transactions_{column}', 'intercompany_transactions', [column])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
    )
    op.create_index('ix_audit_log_id', 'audit_log', ['id'])
    op.create_index('ix_audit_log_tenant_id', 'audit_log', ['tenant_id'])


def downgrade() -> None:
    """Drop every table in reverse dependency order."""
    for table in (
        'audit_log',
        'intercompany_transactions',
        'payments',
        'receipts',
        'bill_items',
        'invoice_items',
        'bills',
        'invoices',
        'purchase_order_items',
        'sales_order_items',
        'purchase_orders',
        'sales_orders',
        'products',
        'business_partners',
        'journal_items',
        'journal_entries',
        'financial_settings',
        'chart_of_accounts',
        'companies',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (
        intercompany_payment_status,
        intercompany_status,
        bill_status,
        invoice_status,
        purchase_order_status,
        sales_order_status,
        partner_status,
        account_type,
        company_type,
    ):
        enum_type.drop(bind, checkfirst=True)
