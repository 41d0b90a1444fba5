"""credit and debit notes, intercompany reference index

Revision ID: b2d4f6a8c0e1
Revises: a1c3e5f7b9d0
Create Date: 2026-10-19 15:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b2d4f6a8c0e1'
down_revision: Union[str, None] = 'a1c3e5f7b9d0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


credit_note_status = sa.Enum('ISSUED', 'APPLIED', name='creditnotestatus')
debit_note_status = sa.Enum('ISSUED', 'APPLIED', name='debitnotestatus')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def _note_table(name, number_column, partner_column, document_column, document_table, status_type, constraint_prefix):
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column(number_column, sa.String(20), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column(partner_column, sa.Integer(), sa.ForeignKey('business_partners.id'), nullable=False),
        sa.Column(document_column, sa.Integer(), sa.ForeignKey(f'{document_table}.id'), nullable=True),
        sa.Column('note_date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', status_type, nullable=False),
        sa.Column('reference_number', sa.String(100), nullable=True),
        sa.Column('journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'sequence', name=f'_company_{constraint_prefix}_sequence_uc'),
        sa.UniqueConstraint('company_id', number_column, name=f'_company_{constraint_prefix}_number_uc'),
    )
    for column in ('id', 'tenant_id', 'company_id', document_column, 'reference_number'):
        op.create_index(f'ix_{name}_{column}', name, [column])


def upgrade() -> None:
    """Add credit and debit notes, credited amounts and the one-base-row-per-reference index."""
    for table in ('invoices', 'bills'):
        op.add_column(table, sa.Column('amount_credited', sa.Numeric(15, 2), nullable=False, server_default='0'))

    _note_table('credit_notes', 'credit_note_number', 'customer_id', 'invoice_id', 'invoices', credit_note_status, 'credit_note')
    _note_table('debit_notes', 'debit_note_number', 'vendor_id', 'bill_id', 'bills', debit_note_status, 'debit_note')

    with op.batch_alter_table('intercompany_transactions') as batch_op:
        batch_op.add_column(sa.Column('parent_transaction_id', sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            'fk_intercompany_transactions_parent', 'intercompany_transactions',
            ['parent_transaction_id'], ['id'],
        )
    op.create_index('ix_intercompany_transactions_parent_transaction_id', 'intercompany_transactions', ['parent_transaction_id'])

    # Rows written before the parent link existed: every later row of a reference points at the first
    op.execute(
        """
        UPDATE intercompany_transactions
        SET parent_transaction_id = (
            SELECT MIN(base_row.id) FROM intercompany_transactions AS base_row
            WHERE base_row.tenant_id = intercompany_transactions.tenant_id
              AND base_row.reference_number = intercompany_transactions.reference_number
        )
        WHERE reference_number IS NOT NULL
          AND id > (
            SELECT MIN(base_row.id) FROM intercompany_transactions AS base_row
            WHERE base_row.tenant_id = intercompany_transactions.tenant_id
              AND base_row.reference_number = intercompany_transactions.reference_number
          )
        """
    )
    op.create_index(
        '_intercompany_base_reference_uq',
        'intercompany_transactions',
        ['tenant_id', 'reference_number'],
        unique=True,
        postgresql_where=sa.text('parent_transaction_id IS NULL'),
        sqlite_where=sa.text('parent_transaction_id IS NULL'),
    )


def downgrade() -> None:
    op.drop_index('_intercompany_base_reference_uq', table_name='intercompany_transactions')
    op.drop_index('ix_intercompany_transactions_parent_transaction_id', table_name='intercompany_transactions')
    with op.batch_alter_table('intercompany_transactions') as batch_op:
        batch_op.drop_constraint('fk_intercompany_transactions_parent', type_='foreignkey')
        batch_op.drop_column('parent_transaction_id')

    op.drop_table('debit_notes')
    op.drop_table('credit_notes')
    for table in ('bills', 'invoices'):
        op.drop_column(table, 'amount_credited')

    bind = op.get_bind()
    for enum_type in (debit_note_status, credit_note_status):
        enum_type.drop(bind, checkfirst=True)
