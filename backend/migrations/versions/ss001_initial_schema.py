"""Initial schema: tenancy, authorization, catalog, sales and print queue

MULTI-TENANT:
1. merchants is the tenant root; stores, users, catalog, sales and print
   rows all carry merchant_id
2. role_permissions holds per-user store access grants
3. print_devices / print_jobs back the remote print agent

Revision ID: ss001_initial
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'ss001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated=False):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()))
    return columns


def upgrade():
    # ==========================================================================
    # TENANCY
    # ==========================================================================
    op.create_table('merchants',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False, server_default='PKR'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('stores',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=True),
        sa.Column('currency', sa.String(length=8), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_stores_merchant_id', 'stores', ['merchant_id'])
    op.create_index('ix_stores_merchant_created', 'stores', ['merchant_id', 'created_at'])

    # ==========================================================================
    # USERS, ROLES AND STORE ACCESS
    # ==========================================================================
    op.create_table('roles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table('users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('external_user_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('role_id', sa.String(length=36), nullable=True),
        sa.Column('store_id', sa.String(length=36), nullable=True),
        *_timestamps(updated=True),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_external_user_id', 'users', ['external_user_id'], unique=True)
    op.create_index('ix_users_merchant_id', 'users', ['merchant_id'])
    op.create_index('ix_users_role_id', 'users', ['role_id'])

    op.create_table('role_permissions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('store_id', sa.String(length=36), nullable=False),
        *_timestamps(updated=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'store_id', name='uq_role_permissions_user_store')
    )
    op.create_index('ix_role_permissions_user_id', 'role_permissions', ['user_id'])
    op.create_index('ix_role_permissions_store_id', 'role_permissions', ['store_id'])

    # ==========================================================================
    # CATALOG AND INVENTORY
    # ==========================================================================
    op.create_table('categories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('parent_id', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_categories_merchant_id', 'categories', ['merchant_id'])

    op.create_table('suppliers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('contact', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_suppliers_merchant_id', 'suppliers', ['merchant_id'])

    op.create_table('products',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('store_id', sa.String(length=36), nullable=True),
        sa.Column('category_id', sa.String(length=36), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_products_merchant_id', 'products', ['merchant_id'])
    op.create_index('ix_products_store_id', 'products', ['store_id'])

    op.create_table('product_variants',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('cost', sa.Numeric(12, 2), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku')
    )
    op.create_index('ix_product_variants_product_id', 'product_variants', ['product_id'])
    op.create_index('ix_product_variants_barcode', 'product_variants', ['barcode'])

    op.create_table('inventory',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('store_id', sa.String(length=36), nullable=False),
        sa.Column('variant_id', sa.String(length=36), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reserved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reorder_point', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['variant_id'], ['product_variants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'variant_id', name='uq_inventory_store_variant')
    )
    op.create_index('ix_inventory_store_id', 'inventory', ['store_id'])
    op.create_index('ix_inventory_variant_id', 'inventory', ['variant_id'])

    # ==========================================================================
    # SALES
    # ==========================================================================
    op.create_table('customers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('store_id', sa.String(length=36), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customers_merchant_id', 'customers', ['merchant_id'])
    op.create_index('ix_customers_store_id', 'customers', ['store_id'])

    op.create_table('orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('store_id', sa.String(length=36), nullable=False),
        sa.Column('customer_id', sa.String(length=36), nullable=True),
        sa.Column('placed_by_user_id', sa.String(length=36), nullable=True),
        sa.Column('order_number', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='paid'),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('discounts_total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('taxes_total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(length=8), nullable=True),
        sa.Column('placed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('fulfilled_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['placed_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number')
    )
    op.create_index('ix_orders_merchant_id', 'orders', ['merchant_id'])
    op.create_index('ix_orders_store_id', 'orders', ['store_id'])
    op.create_index('ix_orders_store_placed', 'orders', ['store_id', 'placed_at'])

    op.create_table('order_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('variant_id', sa.String(length=36), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('discounts_total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('taxes_total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['variant_id'], ['product_variants.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table('invoices',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('store_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=True),
        sa.Column('pdf_url', sa.String(length=512), nullable=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
        sa.UniqueConstraint('invoice_number')
    )
    op.create_index('ix_invoices_merchant_id', 'invoices', ['merchant_id'])
    op.create_index('ix_invoices_store_id', 'invoices', ['store_id'])

    # ==========================================================================
    # PRINT DEVICES AND JOBS
    # ==========================================================================
    op.create_table('print_devices',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('device_identifier', sa.String(length=255), nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('api_secret_encrypted', sa.Text(), nullable=False),
        sa.Column('api_secret_hash', sa.String(length=64), nullable=False),
        sa.Column('last_seen', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=True),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_print_devices_device_identifier', 'print_devices', ['device_identifier'], unique=True)
    op.create_index('ix_print_devices_api_secret_hash', 'print_devices', ['api_secret_hash'], unique=True)
    op.create_index('ix_print_devices_merchant_id', 'print_devices', ['merchant_id'])

    op.create_table('print_jobs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=False),
        sa.Column('store_id', sa.String(length=36), nullable=True),
        sa.Column('order_id', sa.String(length=36), nullable=True),
        sa.Column('routing_key', sa.String(length=255), nullable=False),
        sa.Column('job_type', sa.String(length=32), nullable=False, server_default='receipt'),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='queued'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('claim_token', sa.String(length=36), nullable=True),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_print_jobs_merchant_id', 'print_jobs', ['merchant_id'])
    op.create_index('ix_print_jobs_store_id', 'print_jobs', ['store_id'])
    op.create_index('ix_print_jobs_order_id', 'print_jobs', ['order_id'])
    op.create_index('ix_print_jobs_claim_token', 'print_jobs', ['claim_token'])
    op.create_index('ix_print_jobs_routing_status', 'print_jobs', ['routing_key', 'status'])
    op.create_index('ix_print_jobs_merchant_created', 'print_jobs', ['merchant_id', 'created_at'])

    # ==========================================================================
    # SECURITY EVENTS (append-only)
    # ==========================================================================
    op.create_table('security_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('merchant_id', sa.String(length=255), nullable=True),
        sa.Column('store_id', sa.String(length=36), nullable=True),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('device_identifier', sa.String(length=255), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_security_events_merchant_id', 'security_events', ['merchant_id'])
    op.create_index('ix_security_events_store_id', 'security_events', ['store_id'])
    op.create_index('ix_security_events_user_id', 'security_events', ['user_id'])
    op.create_index('ix_security_events_event_type', 'security_events', ['event_type'])
    op.create_index('ix_security_events_success', 'security_events', ['success'])
    op.create_index('ix_security_events_user_type', 'security_events', ['user_id', 'event_type'])
    op.create_index('ix_security_events_merchant_occurred', 'security_events', ['merchant_id', 'occurred_at'])


def downgrade():
    for name in (
        'security_events',
        'print_jobs',
        'print_devices',
        'invoices',
        'order_items',
        'orders',
        'customers',
        'inventory',
        'product_variants',
        'products',
        'suppliers',
        'categories',
        'role_permissions',
        'users',
        'roles',
        'stores',
        'merchants',
    ):
        op.drop_table(name)
