"""Initial schema - branches, products, stock ledger and invoices

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='EMPLOYEE'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email')
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # Create branches table
    op.create_table(
        'branches',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_branches')
    )

    # Create products table
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=500), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('barcode', sa.String(length=50), nullable=True),
        sa.Column('unit', sa.String(length=50), nullable=False, server_default='pcs'),
        sa.Column('cost_price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('selling_price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sa.CheckConstraint('cost_price >= 0', name='ck_products_cost_price_non_negative'),
        sa.CheckConstraint('selling_price >= 0', name='ck_products_selling_price_non_negative')
    )
    op.create_index('idx_products_barcode', 'products', ['barcode'])

    # Create stock_items table
    op.create_table(
        'stock_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('branch_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], name='fk_stock_items_branch_id_branches', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_stock_items_product_id_products', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_stock_items'),
        sa.UniqueConstraint('branch_id', 'product_id', name='uq_stock_items_branch_product'),
        sa.CheckConstraint('quantity >= 0', name='ck_stock_items_quantity_non_negative')
    )
    op.create_index('idx_stock_items_branch_updated', 'stock_items', ['branch_id', 'updated_at'])

    # Create stock_txns table (append-only ledger)
    op.create_table(
        'stock_txns',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('branch_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('created_by_id', sa.Uuid(), nullable=False),
        sa.Column('qty_change', sa.Integer(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], name='fk_stock_txns_branch_id_branches', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_stock_txns_product_id_products', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], name='fk_stock_txns_created_by_id_users', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_stock_txns'),
        sa.CheckConstraint(
            "type IN ('RECEIVE', 'ADJUST', 'SALE', 'DAMAGE')",
            name='ck_stock_txns_type_valid'
        ),
        sqlite_autoincrement=True
    )
    op.create_index('idx_stock_txns_branch_created', 'stock_txns', ['branch_id', 'created_at'])
    op.create_index(
        'idx_stock_txns_branch_product_created',
        'stock_txns',
        ['branch_id', 'product_id', 'created_at']
    )
    op.create_index('idx_stock_txns_note', 'stock_txns', ['note'])

    # Create invoices table
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('public_id', sa.Uuid(), nullable=False),
        sa.Column('invoice_no', sa.String(length=32), nullable=True),
        sa.Column('branch_id', sa.Uuid(), nullable=False),
        sa.Column('created_by_id', sa.Uuid(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('total', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], name='fk_invoices_branch_id_branches', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], name='fk_invoices_created_by_id_users', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_invoices'),
        sa.UniqueConstraint('public_id', name='uq_invoices_public_id'),
        sa.UniqueConstraint('invoice_no', name='uq_invoices_invoice_no'),
        sa.CheckConstraint('total >= 0', name='ck_invoices_total_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('idx_invoices_branch_created', 'invoices', ['branch_id', 'created_at'])

    # Create invoice_items table
    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('line_no', sa.Integer(), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('line_total', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], name='fk_invoice_items_invoice_id_invoices', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_invoice_items_product_id_products', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_invoice_items'),
        sa.UniqueConstraint('invoice_id', 'line_no', name='uq_invoice_items_invoice_line'),
        sa.CheckConstraint('qty > 0', name='ck_invoice_items_qty_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_invoice_items_unit_price_non_negative')
    )
    op.create_index('idx_invoice_items_product', 'invoice_items', ['product_id'])


def downgrade() -> None:
    # Drop tables in reverse order (respecting foreign keys)
    op.drop_table('invoice_items')
    op.drop_table('invoices')
    op.drop_table('stock_txns')
    op.drop_table('stock_items')
    op.drop_table('products')
    op.drop_table('branches')
    op.drop_table('users')
