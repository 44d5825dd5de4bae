"""baseline schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(precision=20, scale=4)

payment_status = sa.Enum('PAID', 'UNPAID', 'PARTIAL', name='paymentstatus')
# Second use of the type: PostgreSQL must not create it again
payment_status_existing = payment_status.with_variant(
    postgresql.ENUM('PAID', 'UNPAID', 'PARTIAL', name='paymentstatus', create_type=False),
    'postgresql',
)


def upgrade() -> None:
    """Shop schema as first released.

    A database created earlier by ``init_db`` already has these tables;
    run ``alembic stamp 0001`` on it instead of upgrading.
    """
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(150), nullable=False, unique=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum('ADMIN', 'CASHIER', name='roleenum'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('locked_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('failed_login_attempts >= 0', name='ck_users_failed_attempts'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=False),
        sa.Column('resource_id', sa.String(255), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
    )
    op.create_index('ix_audit_logs_resource', 'audit_logs', ['resource_type', 'resource_id'])
    op.create_index('ix_audit_logs_user_at', 'audit_logs', ['user_id', 'at'])

    # ── Catalogue ────────────────────────────────────────────────────────
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('author', sa.String(255), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('cost_price', MONEY, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('quantity >= 0', name='ck_product_quantity_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_product_price_non_negative'),
    )
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_category', 'products', ['category'])

    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_customers_phone', 'customers', ['phone'])

    op.create_table(
        'requested_books',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('requested_count', sa.Integer(), nullable=False),
        sa.Column('last_requested_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'FULFILLED', name='requestedbookstatus'),
            nullable=False,
        ),
    )
    op.create_index('ix_requested_books_status', 'requested_books', ['status'])

    # ── Invoices and returns ─────────────────────────────────────────────
    op.create_table(
        'invoices',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('reference', sa.String(50), nullable=False, unique=True),
        sa.Column(
            'type',
            sa.Enum('SALE', 'SHIPPING', 'RESERVATION', 'RETURN', name='invoicetype'),
            nullable=False,
        ),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'SHIPPED', 'COMPLETED', 'CANCELLED', name='invoicestatus'),
            nullable=False,
        ),
        sa.Column('payment_status', payment_status, nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('paid_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total', MONEY, nullable=False),
        sa.Column('total_cost', MONEY, nullable=False),
        sa.Column('total_profit', MONEY, nullable=False),
        sa.Column('shipping_fee', MONEY, nullable=False),
        sa.Column(
            'source',
            sa.Enum('IN_STORE', 'FACEBOOK', 'INSTAGRAM', 'WHATSAPP', 'OTHER', name='ordersource'),
            nullable=True,
        ),
        sa.Column('customer_id', sa.Uuid(), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('customer_address', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.String(150), nullable=True),
        sa.Column('original_invoice_id', sa.Uuid(), sa.ForeignKey('invoices.id'), nullable=True),
    )
    op.create_index('ix_invoices_type', 'invoices', ['type'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_date', 'invoices', ['date'])
    op.create_index('ix_invoices_paid_date', 'invoices', ['paid_date'])
    op.create_index('ix_invoices_processed_by', 'invoices', ['processed_by'])
    op.create_index('ix_invoices_original', 'invoices', ['original_invoice_id'])

    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'invoice_id',
            sa.Uuid(),
            sa.ForeignKey('invoices.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('line_no', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('cost_price', MONEY, nullable=True),
        sa.Column('discount', MONEY, nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_invoice_item_quantity_positive'),
        sa.CheckConstraint('discount >= 0', name='ck_invoice_item_discount_non_negative'),
    )
    op.create_index('ix_invoice_items_invoice', 'invoice_items', ['invoice_id'])
    op.create_index('ix_invoice_items_product', 'invoice_items', ['product_id'])

    op.create_table(
        'return_requests',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('request_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('original_invoice_id', sa.Uuid(), sa.ForeignKey('invoices.id'), nullable=False),
        sa.Column('requested_by', sa.String(150), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='returnrequeststatus'),
            nullable=False,
        ),
        sa.Column('processed_by', sa.String(150), nullable=True),
        sa.Column('processed_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('return_invoice_id', sa.Uuid(), sa.ForeignKey('invoices.id'), nullable=True),
    )
    op.create_index('ix_return_requests_status', 'return_requests', ['status'])
    op.create_index('ix_return_requests_original', 'return_requests', ['original_invoice_id'])

    op.create_table(
        'return_request_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'request_id',
            sa.Uuid(),
            sa.ForeignKey('return_requests.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('line_no', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('cost_price', MONEY, nullable=True),
        sa.Column('discount', MONEY, nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_return_request_item_quantity_positive'),
    )

    # ── Ledger ───────────────────────────────────────────────────────────
    op.create_table(
        'financial_accounts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('code', sa.String(50), nullable=True, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.Enum('CASH', 'BANK', 'OTHER', name='accounttype'), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_financial_accounts_user', 'financial_accounts', ['user_id'])

    op.create_table(
        'budgets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('target_amount', MONEY, nullable=False),
        sa.CheckConstraint('target_amount > 0', name='ck_budget_target_positive'),
    )

    op.create_table(
        'financial_transactions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column(
            'type',
            sa.Enum(
                'SALE_INCOME',
                'EXPENSE',
                'EXPENSE_REVERSAL',
                'CAPITAL_DEPOSIT',
                'PROFIT_WITHDRAWAL',
                'SUPPLIER_PAYMENT',
                'RETURN_REFUND',
                'TRANSFER',
                name='transactiontype',
            ),
            nullable=False,
        ),
        sa.Column('from_account_id', sa.Uuid(), nullable=True),
        sa.Column('to_account_id', sa.Uuid(), nullable=True),
        sa.Column('related_invoice_id', sa.Uuid(), nullable=True),
        sa.Column('related_purchase_id', sa.Uuid(), nullable=True),
        sa.Column('budget_id', sa.Uuid(), sa.ForeignKey('budgets.id'), nullable=True),
        sa.Column('category', sa.String(255), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.CheckConstraint('amount > 0', name='ck_financial_transaction_amount_positive'),
    )
    op.create_index('ix_financial_transactions_date', 'financial_transactions', ['date'])
    op.create_index('ix_financial_transactions_type', 'financial_transactions', ['type'])
    op.create_index('ix_financial_transactions_from', 'financial_transactions', ['from_account_id'])
    op.create_index('ix_financial_transactions_to', 'financial_transactions', ['to_account_id'])
    op.create_index(
        'ix_financial_transactions_invoice', 'financial_transactions', ['related_invoice_id']
    )
    op.create_index('ix_financial_transactions_budget', 'financial_transactions', ['budget_id'])

    op.create_table(
        'expenses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('account_id', sa.Uuid(), nullable=False),
        sa.Column('transaction_id', sa.Uuid(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.CheckConstraint('amount > 0', name='ck_expense_amount_positive'),
    )
    op.create_index('ix_expenses_date', 'expenses', ['date'])
    op.create_index('ix_expenses_category', 'expenses', ['category'])

    # ── Purchasing ───────────────────────────────────────────────────────
    op.create_table(
        'suppliers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('contact_person', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'purchases',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('reference', sa.String(50), nullable=False, unique=True),
        sa.Column('supplier_id', sa.Uuid(), nullable=False),
        sa.Column('supplier_name', sa.String(255), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_cost', MONEY, nullable=False),
        sa.Column('payment_status', payment_status_existing, nullable=False),
        sa.Column('is_stocked_in', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_purchases_supplier', 'purchases', ['supplier_id'])
    op.create_index('ix_purchases_date', 'purchases', ['date'])

    op.create_table(
        'purchase_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'purchase_id',
            sa.Uuid(),
            sa.ForeignKey('purchases.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('line_no', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('cost_price', MONEY, nullable=False),
        sa.Column('price', MONEY, nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.CheckConstraint('quantity > 0', name='ck_purchase_item_quantity_positive'),
        sa.CheckConstraint('cost_price >= 0', name='ck_purchase_item_cost_non_negative'),
    )

    op.create_table(
        'purchase_payments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'purchase_id',
            sa.Uuid(),
            sa.ForeignKey('purchases.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('account_id', sa.Uuid(), nullable=False),
        sa.Column('transaction_id', sa.Uuid(), nullable=True),
        sa.CheckConstraint('amount > 0', name='ck_purchase_payment_amount_positive'),
    )
    op.create_index('ix_purchase_payments_purchase', 'purchase_payments', ['purchase_id'])

    # ── Till ─────────────────────────────────────────────────────────────
    op.create_table(
        'till_closeouts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('cashier_id', sa.Uuid(), nullable=False),
        sa.Column('cashier_username', sa.String(150), nullable=False),
        sa.Column('for_date', sa.Date(), nullable=False),
        sa.Column('total_sales', MONEY, nullable=False),
        sa.Column('total_returns', MONEY, nullable=False),
        sa.Column('net_cash_expected', MONEY, nullable=False),
        sa.Column('counted_cash', MONEY, nullable=False),
        sa.Column('difference', MONEY, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('invoice_ids', sa.JSON(), nullable=False),
    )
    op.create_index('ix_till_closeouts_cashier_day', 'till_closeouts', ['cashier_id', 'for_date'])
    op.create_index('ix_till_closeouts_date', 'till_closeouts', ['date'])


def downgrade() -> None:
    for table in (
        'till_closeouts',
        'purchase_payments',
        'purchase_items',
        'purchases',
        'suppliers',
        'expenses',
        'financial_transactions',
        'budgets',
        'financial_accounts',
        'return_request_items',
        'return_requests',
        'invoice_items',
        'invoices',
        'requested_books',
        'customers',
        'products',
        'audit_logs',
        'users',
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_name in (
        'transactiontype',
        'accounttype',
        'returnrequeststatus',
        'ordersource',
        'paymentstatus',
        'invoicestatus',
        'invoicetype',
        'requestedbookstatus',
        'roleenum',
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
