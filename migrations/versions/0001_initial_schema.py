"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete dresscode schema:
- stores, users, addresses, session_tokens, document_sequences
- catalog: products -> variants -> variant_sizes, store_quantities
- stock movement ledger: assigned/raised inventories and their lines
- e-commerce: orders, order_lines, payments, returns, coupons
- point of sale: customers, bills, bill edit requests, old_bills
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _snapshot_columns():
    return [
        sa.Column('group', sa.String(length=64), nullable=False),
        sa.Column('product_id', sa.String(length=255), nullable=False),
        sa.Column('variant_id', sa.String(length=16), nullable=True),
        sa.Column('color_name', sa.String(length=64), nullable=False),
        sa.Column('hexcode', sa.String(length=16), nullable=True),
        sa.Column('size', sa.String(length=16), nullable=False),
        sa.Column('style_coat', sa.String(length=64), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
    ]


def _bill_line_columns():
    return [
        sa.Column('variant_size_id', sa.Integer(), sa.ForeignKey('variant_sizes.id'), nullable=False),
        sa.Column('group', sa.String(length=64), nullable=False),
        sa.Column('product_id', sa.String(length=255), nullable=False),
        sa.Column('variant_id', sa.String(length=16), nullable=True),
        sa.Column('color_name', sa.String(length=64), nullable=False),
        sa.Column('size', sa.String(length=16), nullable=False),
        sa.Column('style_coat', sa.String(length=64), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
    ]


def upgrade():
    # ============================================================================
    # stores / identity
    # ============================================================================
    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_name', sa.String(length=120), nullable=False),
        sa.Column('store_type', sa.String(length=16), nullable=False),
        sa.Column('store_address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=80), nullable=True),
        sa.Column('pincode', sa.String(length=12), nullable=True),
        sa.Column('state', sa.String(length=80), nullable=True),
        sa.Column('phone_no', sa.String(length=20), nullable=True),
        sa.Column('email_id', sa.String(length=255), nullable=True),
        sa.Column('commission_percentage', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_stores'),
        sa.UniqueConstraint('store_name', name='uq_stores_store_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stores_store_type', 'stores', ['store_type'])

    op.create_table(
        'document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_document_sequences'),
        sa.UniqueConstraint('store_id', 'document_type', name='uq_doc_sequences_store_type'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_document_sequences_store_id', 'document_sequences', ['store_id'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_store_id', 'users', ['store_id'])

    op.create_table(
        'addresses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('first_name', sa.String(length=80), nullable=True),
        sa.Column('last_name', sa.String(length=80), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=80), nullable=False),
        sa.Column('pin_code', sa.String(length=12), nullable=False),
        sa.Column('state', sa.String(length=80), nullable=False),
        sa.Column('country', sa.String(length=80), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_addresses'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_addresses_user_id', 'addresses', ['user_id'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=True),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # catalog
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('group', sa.String(length=64), nullable=False),
        sa.Column('product_id', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('sub_category', sa.String(length=64), nullable=True),
        sa.Column('school_name', sa.String(length=120), nullable=True),
        sa.Column('product_category', sa.String(length=64), nullable=True),
        sa.Column('product_name', sa.String(length=120), nullable=True),
        sa.Column('gender', sa.String(length=16), nullable=True),
        sa.Column('product_type', sa.String(length=64), nullable=True),
        sa.Column('fit', sa.String(length=64), nullable=True),
        sa.Column('neckline', sa.String(length=64), nullable=True),
        sa.Column('pattern', sa.String(length=64), nullable=True),
        sa.Column('sleeves', sa.String(length=64), nullable=True),
        sa.Column('material', sa.String(length=120), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('product_description', sa.Text(), nullable=True),
        sa.Column('size_chart', sa.String(length=512), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('group', 'product_id', name='uq_products_group_product_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_group', 'products', ['group'])

    op.create_table(
        'variants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_pk', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('variant_id', sa.String(length=16), nullable=False),
        sa.Column('color_name', sa.String(length=64), nullable=False),
        sa.Column('hexcode', sa.String(length=16), nullable=True),
        sa.Column('image_urls', sa.JSON(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_variants'),
        sa.UniqueConstraint('variant_id', name='uq_variants_variant_id'),
        sa.UniqueConstraint('product_pk', 'color_name', name='uq_variants_product_color'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_variants_product_pk', 'variants', ['product_pk'])

    op.create_table(
        'variant_sizes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('variant_pk', sa.Integer(), sa.ForeignKey('variants.id'), nullable=False),
        sa.Column('size', sa.String(length=16), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('style_coat', sa.String(length=64), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_variant_sizes'),
        sa.UniqueConstraint('variant_pk', 'size', name='uq_variant_sizes_variant_size'),
        sa.UniqueConstraint('style_coat', name='uq_variant_sizes_style_coat'),
        sa.CheckConstraint('quantity >= 0', name='ck_variant_sizes_quantity_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_variant_sizes_variant_pk', 'variant_sizes', ['variant_pk'])

    op.create_table(
        'store_quantities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('variant_size_id', sa.Integer(), sa.ForeignKey('variant_sizes.id'), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('present_quantity', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_store_quantities'),
        sa.UniqueConstraint('variant_size_id', 'store_id', name='uq_store_quantities_size_store'),
        sa.CheckConstraint(
            'present_quantity >= 0', name='ck_store_quantities_present_quantity_non_negative'
        ),
        sqlite_autoincrement=True
    )
    op.create_index('ix_store_quantities_variant_size_id', 'store_quantities', ['variant_size_id'])
    op.create_index('ix_store_quantities_store_id', 'store_quantities', ['store_id'])

    # ============================================================================
    # stock movement ledger
    # ============================================================================
    op.create_table(
        'assigned_inventories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('assigned_inventory_id', sa.String(length=16), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('group', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('assigned_date', sa.DateTime(), nullable=False),
        sa.Column('received_date', sa.DateTime(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('received_by_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_assigned_inventories'),
        sa.UniqueConstraint('assigned_inventory_id', name='uq_assigned_inventories_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_assigned_inventories_store_id', 'assigned_inventories', ['store_id'])
    op.create_index('ix_assigned_inventories_status', 'assigned_inventories', ['status'])

    op.create_table(
        'assigned_inventory_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('assigned_inventory_pk', sa.Integer(), sa.ForeignKey('assigned_inventories.id'), nullable=False),
        sa.Column('variant_size_id', sa.Integer(), sa.ForeignKey('variant_sizes.id'), nullable=False),
        *_snapshot_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_assigned_inventory_lines'),
        sqlite_autoincrement=True
    )
    op.create_index(
        'ix_assigned_inventory_lines_assigned_inventory_pk', 'assigned_inventory_lines', ['assigned_inventory_pk']
    )

    op.create_table(
        'assigned_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('variant_size_id', sa.Integer(), sa.ForeignKey('variant_sizes.id'), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('assigned_inventory_pk', sa.Integer(), sa.ForeignKey('assigned_inventories.id'), nullable=False),
        sa.Column('quantity_of_assigned', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_assigned_history'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_assigned_history_size_store', 'assigned_history', ['variant_size_id', 'store_id'])
    op.create_index('ix_assigned_history_assigned_inventory_pk', 'assigned_history', ['assigned_inventory_pk'])

    op.create_table(
        'raised_inventories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('raised_inventory_id', sa.String(length=16), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('group', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('total_amount_raised_cents', sa.Integer(), nullable=False),
        sa.Column('raised_date', sa.DateTime(), nullable=False),
        sa.Column('approved_date', sa.DateTime(), nullable=True),
        sa.Column('rejected_date', sa.DateTime(), nullable=True),
        sa.Column('received_date', sa.DateTime(), nullable=True),
        sa.Column('decision_note', sa.String(length=512), nullable=True),
        sa.Column('assigned_inventory_pk', sa.Integer(), sa.ForeignKey('assigned_inventories.id'), nullable=True),
        sa.Column('raised_by_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('decided_by_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_raised_inventories'),
        sa.UniqueConstraint('raised_inventory_id', name='uq_raised_inventories_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_raised_inventories_store_id', 'raised_inventories', ['store_id'])
    op.create_index('ix_raised_inventories_status', 'raised_inventories', ['status'])

    op.create_table(
        'raised_inventory_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('raised_inventory_pk', sa.Integer(), sa.ForeignKey('raised_inventories.id'), nullable=False),
        sa.Column('variant_size_id', sa.Integer(), sa.ForeignKey('variant_sizes.id'), nullable=False),
        *_snapshot_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_raised_inventory_lines'),
        sqlite_autoincrement=True
    )
    op.create_index(
        'ix_raised_inventory_lines_raised_inventory_pk', 'raised_inventory_lines', ['raised_inventory_pk']
    )

    # ============================================================================
    # e-commerce orders and payments
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=16), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('address_id', sa.Integer(), sa.ForeignKey('addresses.id'), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('total_discount_cents', sa.Integer(), nullable=False),
        sa.Column('coupon_discount_cents', sa.Integer(), nullable=False),
        sa.Column('total_price_after_discount_cents', sa.Integer(), nullable=False),
        sa.Column('delivery_status', sa.String(length=16), nullable=False),
        sa.Column('order_created', sa.Boolean(), nullable=False),
        sa.Column('gateway_order_id', sa.String(length=64), nullable=True),
        sa.Column('payment_id', sa.String(length=64), nullable=True),
        sa.Column('coupon_code', sa.String(length=16), nullable=True),
        sa.Column('coupon_type', sa.String(length=16), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
        sa.UniqueConstraint('order_id', name='uq_orders_order_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_delivery_status', 'orders', ['delivery_status'])
    op.create_index('ix_orders_order_created', 'orders', ['order_created'])
    op.create_index('ix_orders_gateway_order_id', 'orders', ['gateway_order_id'])

    op.create_table(
        'order_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_pk', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('variant_size_id', sa.Integer(), sa.ForeignKey('variant_sizes.id'), nullable=False),
        sa.Column('group', sa.String(length=64), nullable=False),
        sa.Column('product_id', sa.String(length=255), nullable=False),
        sa.Column('variant_id', sa.String(length=16), nullable=True),
        sa.Column('color_name', sa.String(length=64), nullable=False),
        sa.Column('size', sa.String(length=16), nullable=False),
        sa.Column('quantity_ordered', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('discount_percentage', sa.Integer(), nullable=False),
        sa.Column('discount_amount_cents', sa.Integer(), nullable=False),
        sa.Column('coupon_discount_cents', sa.Integer(), nullable=False),
        sa.Column('return_status', sa.String(length=16), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_order_lines'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_lines_order_pk', 'order_lines', ['order_pk'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_pk', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('razorpay_order_id', sa.String(length=64), nullable=False),
        sa.Column('razorpay_payment_id', sa.String(length=64), nullable=False),
        sa.Column('razorpay_signature', sa.String(length=128), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_payments'),
        sa.UniqueConstraint('razorpay_payment_id', name='uq_payments_razorpay_payment_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_payments_order_pk', 'payments', ['order_pk'])

    op.create_table(
        'return_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('return_id', sa.String(length=16), nullable=False),
        sa.Column('order_pk', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('reason', sa.String(length=512), nullable=True),
        sa.Column('decision_note', sa.String(length=512), nullable=True),
        sa.Column('refund_amount_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_return_orders'),
        sa.UniqueConstraint('return_id', name='uq_return_orders_return_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_return_orders_order_pk', 'return_orders', ['order_pk'])
    op.create_index('ix_return_orders_user_id', 'return_orders', ['user_id'])
    op.create_index('ix_return_orders_status', 'return_orders', ['status'])

    op.create_table(
        'return_order_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('return_order_pk', sa.Integer(), sa.ForeignKey('return_orders.id'), nullable=False),
        sa.Column('order_line_id', sa.Integer(), sa.ForeignKey('order_lines.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_return_order_lines'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_return_order_lines_return_order_pk', 'return_order_lines', ['return_order_pk'])

    op.create_table(
        'coupons',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('coupon_code', sa.String(length=16), nullable=False),
        sa.Column('coupon_type', sa.String(length=16), nullable=False),
        sa.Column('discount_percentage', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('expiry_date', sa.DateTime(), nullable=False),
        sa.Column('is_single_use', sa.Boolean(), nullable=False),
        sa.Column('linked_group', sa.String(length=64), nullable=True),
        sa.Column('linked_product_id', sa.String(length=255), nullable=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('order_id', sa.String(length=16), nullable=True),
        sa.Column('used_date', sa.DateTime(), nullable=True),
        sa.Column('issued_by_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_coupons'),
        sa.UniqueConstraint('coupon_code', name='uq_coupons_coupon_code'),
        sa.CheckConstraint(
            'discount_percentage >= 1 AND discount_percentage <= 100',
            name='ck_coupons_discount_percentage_range',
        ),
        sqlite_autoincrement=True
    )
    op.create_index('ix_coupons_status', 'coupons', ['status'])
    op.create_index('ix_coupons_expiry_date', 'coupons', ['expiry_date'])

    op.create_table(
        'coupon_usages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('coupon_pk', sa.Integer(), sa.ForeignKey('coupons.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('order_id', sa.String(length=16), nullable=False),
        sa.Column('used_date', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_coupon_usages'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_coupon_usages_coupon_pk', 'coupon_usages', ['coupon_pk'])

    # ============================================================================
    # point of sale
    # ============================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_customers'),
        sa.UniqueConstraint('phone', name='uq_customers_phone'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'bills',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bill_id', sa.String(length=16), nullable=False),
        sa.Column('invoice_no', sa.String(length=32), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('discount_percentage', sa.Integer(), nullable=False),
        sa.Column('discount_amount_cents', sa.Integer(), nullable=False),
        sa.Column('price_after_discount_cents', sa.Integer(), nullable=False),
        sa.Column('mode_of_payment', sa.String(length=8), nullable=False),
        sa.Column('delete_req_status', sa.String(length=16), nullable=True),
        sa.Column('delete_req_note', sa.String(length=512), nullable=True),
        sa.Column('delete_validate_note', sa.String(length=512), nullable=True),
        sa.Column('delete_requested_at', sa.DateTime(), nullable=True),
        sa.Column('delete_validated_at', sa.DateTime(), nullable=True),
        sa.Column('edit_status', sa.String(length=16), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('invoice_url', sa.String(length=1024), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_bills'),
        sa.UniqueConstraint('bill_id', name='uq_bills_bill_id'),
        sa.UniqueConstraint('store_id', 'invoice_no', name='uq_bills_store_invoice'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_bills_store_id', 'bills', ['store_id'])
    op.create_index('ix_bills_customer_id', 'bills', ['customer_id'])
    op.create_index('ix_bills_is_deleted', 'bills', ['is_deleted'])

    op.create_table(
        'bill_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bill_pk', sa.Integer(), sa.ForeignKey('bills.id'), nullable=False),
        *_bill_line_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_bill_lines'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_bill_lines_bill_pk', 'bill_lines', ['bill_pk'])

    op.create_table(
        'bill_edit_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('edit_bill_req_id', sa.String(length=16), nullable=False),
        sa.Column('bill_pk', sa.Integer(), sa.ForeignKey('bills.id'), nullable=False),
        sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('requested_by_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('validated_by_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('req_note', sa.String(length=512), nullable=True),
        sa.Column('validate_note', sa.String(length=512), nullable=True),
        sa.Column('customer_name', sa.String(length=120), nullable=True),
        sa.Column('customer_phone', sa.String(length=20), nullable=True),
        sa.Column('discount_percentage', sa.Integer(), nullable=False),
        sa.Column('mode_of_payment', sa.String(length=8), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('discount_amount_cents', sa.Integer(), nullable=False),
        sa.Column('price_after_discount_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('validated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_bill_edit_requests'),
        sa.UniqueConstraint('edit_bill_req_id', name='uq_bill_edit_requests_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_bill_edit_requests_bill_pk', 'bill_edit_requests', ['bill_pk'])
    op.create_index('ix_bill_edit_requests_store_id', 'bill_edit_requests', ['store_id'])
    op.create_index('ix_bill_edit_requests_status', 'bill_edit_requests', ['status'])

    op.create_table(
        'bill_edit_request_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('edit_request_pk', sa.Integer(), sa.ForeignKey('bill_edit_requests.id'), nullable=False),
        *_bill_line_columns(),
        sa.PrimaryKeyConstraint('id', name='pk_bill_edit_request_lines'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_bill_edit_request_lines_edit_request_pk', 'bill_edit_request_lines', ['edit_request_pk'])

    op.create_table(
        'old_bills',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bill_pk', sa.Integer(), sa.ForeignKey('bills.id'), nullable=False),
        sa.Column('edit_request_pk', sa.Integer(), sa.ForeignKey('bill_edit_requests.id'), nullable=False),
        sa.Column('snapshot', sa.JSON(), nullable=False),
        sa.Column('archived_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_old_bills'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_old_bills_bill_pk', 'old_bills', ['bill_pk'])


def downgrade():
    for table in (
        'old_bills', 'bill_edit_request_lines', 'bill_edit_requests', 'bill_lines', 'bills', 'customers',
        'coupon_usages', 'coupons', 'return_order_lines', 'return_orders', 'payments', 'order_lines',
        'orders', 'raised_inventory_lines', 'raised_inventories', 'assigned_history',
        'assigned_inventory_lines', 'assigned_inventories', 'store_quantities', 'variant_sizes',
        'variants', 'products', 'session_tokens', 'addresses', 'users', 'document_sequences', 'stores',
    ):
        op.drop_table(table)
