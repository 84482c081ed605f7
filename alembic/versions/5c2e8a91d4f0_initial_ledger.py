"""initial_ledger

Creates the ledger tables: families, accounts, income events, payments,
attributions, budget categories, allocations, bank transactions and audit log.

Revision ID: 5c2e8a91d4f0
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c2e8a91d4f0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ID = sa.String(36)
_MONEY = sa.Numeric(12, 2)
_TS = sa.DateTime(timezone=True)


def upgrade() -> None:
    op.create_table(
        'family',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', _TS, nullable=False),
    )
    op.create_table(
        'family_member',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('family_id', _ID, sa.ForeignKey('family.id'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(200), nullable=False),
        sa.Column('first_name', sa.String(255)),
        sa.Column('last_name', sa.String(255)),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('active', sa.Boolean, nullable=False),
        sa.Column('last_login_at', _TS),
        sa.Column('created_at', _TS, nullable=False),
        sa.Column('updated_at', _TS, nullable=False),
    )
    op.create_table(
        'bank_account',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('family_id', _ID, sa.ForeignKey('family.id'), nullable=False),
        sa.Column('institution_name', sa.String(255), nullable=False),
        sa.Column('account_name', sa.String(255), nullable=False),
        sa.Column('account_type', sa.String(20), nullable=False),
        sa.Column('created_at', _TS, nullable=False),
        sa.Column('deleted_at', _TS),
    )
    op.create_table(
        'budget_category',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('family_id', _ID, sa.ForeignKey('family.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('target_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('color', sa.String(7)),
        sa.Column('sort_order', sa.Integer, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        sa.Column('created_at', _TS, nullable=False),
        sa.Column('updated_at', _TS, nullable=False),
    )
    op.create_table(
        'income_event',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('family_id', _ID, sa.ForeignKey('family.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('amount', _MONEY, nullable=False),
        sa.Column('scheduled_date', sa.Date, nullable=False),
        sa.Column('actual_date', sa.Date),
        sa.Column('actual_amount', _MONEY),
        sa.Column('allocated_amount', _MONEY, nullable=False),
        sa.Column('remaining_amount', _MONEY, nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('source', sa.String(255)),
        sa.Column('notes', sa.Text),
        sa.Column('created_at', _TS, nullable=False),
        sa.Column('updated_at', _TS, nullable=False),
    )
    op.create_table(
        'payment',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('family_id', _ID, sa.ForeignKey('family.id'), nullable=False),
        sa.Column('payee', sa.String(255), nullable=False),
        sa.Column('amount', _MONEY, nullable=False),
        sa.Column('due_date', sa.Date, nullable=False),
        sa.Column('paid_date', sa.Date),
        sa.Column('paid_amount', _MONEY),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('budget_category_id', _ID, sa.ForeignKey('budget_category.id')),
        sa.Column('notes', sa.Text),
        sa.Column('created_at', _TS, nullable=False),
        sa.Column('updated_at', _TS, nullable=False),
    )
    op.create_table(
        'payment_attribution',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('income_event_id', _ID, sa.ForeignKey('income_event.id'), nullable=False),
        sa.Column('payment_id', _ID, sa.ForeignKey('payment.id'), nullable=False),
        sa.Column('amount', _MONEY, nullable=False),
        sa.Column('attribution_type', sa.String(20), nullable=False),
        sa.Column('created_by', _ID, nullable=False),
        sa.Column('created_at', _TS, nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_attribution_amount_positive'),
    )
    op.create_table(
        'budget_allocation',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('income_event_id', _ID, sa.ForeignKey('income_event.id'), nullable=False),
        sa.Column('budget_category_id', _ID, sa.ForeignKey('budget_category.id'), nullable=False),
        sa.Column('amount', _MONEY, nullable=False),
        sa.Column('percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('created_at', _TS, nullable=False),
        sa.UniqueConstraint('income_event_id', 'budget_category_id', name='uq_allocation_income_category'),
    )
    op.create_table(
        'bank_transaction',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('bank_account_id', _ID, sa.ForeignKey('bank_account.id'), nullable=False),
        sa.Column('amount', _MONEY, nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('merchant_name', sa.String(255)),
        sa.Column('pending', sa.Boolean, nullable=False),
        sa.Column('matched_payment_id', _ID, sa.ForeignKey('payment.id')),
        sa.Column('created_at', _TS, nullable=False),
    )
    op.create_table(
        'audit_log',
        sa.Column('id', _ID, primary_key=True),
        sa.Column('family_id', _ID, sa.ForeignKey('family.id'), nullable=False),
        sa.Column('family_member_id', _ID),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', _ID, nullable=False),
        sa.Column('old_values', sa.JSON),
        sa.Column('new_values', sa.JSON),
        sa.Column('created_at', _TS, nullable=False),
    )
    for table, column in (
        ('family_member', 'family_id'),
        ('bank_account', 'family_id'),
        ('budget_category', 'family_id'),
        ('income_event', 'family_id'),
        ('payment', 'family_id'),
        ('payment', 'due_date'),
        ('payment_attribution', 'income_event_id'),
        ('payment_attribution', 'payment_id'),
        ('budget_allocation', 'income_event_id'),
        ('bank_transaction', 'bank_account_id'),
        ('bank_transaction', 'date'),
        ('audit_log', 'family_id'),
    ):
        op.create_index(f'ix_{table}_{column}', table, [column])


def downgrade() -> None:
    for table in (
        'audit_log',
        'bank_transaction',
        'budget_allocation',
        'payment_attribution',
        'payment',
        'income_event',
        'budget_category',
        'bank_account',
        'family_member',
        'family',
    ):
        op.drop_table(table)
