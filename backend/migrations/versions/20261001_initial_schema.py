"""Initial schema: tenancy, catalog, unit inventory, POS, payments, loans

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01

This migration creates:
1. Users and session tokens
2. Shops and worker assignments
3. Products, suppliers, purchases and the unit-level inventory ledger
4. Customers, carts, sales, sale lines and payments
5. Loans and installment schedules
6. Document sequences and the audit log
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. USERS / SESSIONS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='SHOP_WORKER'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('ix_users_email', ['email'], unique=True)
        batch_op.create_index('ix_users_role', ['role'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_session_tokens_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_session_tokens_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_session_tokens_token_hash', ['token_hash'], unique=True)

    # ==========================================================================
    # 2. SHOPS / WORKERS
    # ==========================================================================
    op.create_table('shops',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='ACTIVE'),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name='fk_shops_owner_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_shops'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('shops', schema=None) as batch_op:
        batch_op.create_index('ix_shops_code', ['code'], unique=True)
        batch_op.create_index('ix_shops_owner_id', ['owner_id'], unique=False)
        batch_op.create_index('ix_shops_status', ['status'], unique=False)

    op.create_table('shop_workers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_shop_workers_shop_id_shops'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_shop_workers_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_shop_workers'),
        sa.UniqueConstraint('shop_id', 'user_id', name='uq_shop_workers_shop_user'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('shop_workers', schema=None) as batch_op:
        batch_op.create_index('ix_shop_workers_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_shop_workers_user_id', ['user_id'], unique=False)

    # ==========================================================================
    # 3. CATALOG / PURCHASING / UNIT INVENTORY
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('brand', sa.String(length=120), nullable=True),
        sa.Column('category', sa.String(length=120), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('selling_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('cost_price', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='ACTIVE'),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_products_shop_id_shops'),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('shop_id', 'sku', name='uq_products_shop_sku'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_products_shop_status', ['shop_id', 'status'], unique=False)

    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_person', sa.String(length=120), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_suppliers_shop_id_shops'),
        sa.PrimaryKeyConstraint('id', name='pk_suppliers'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('suppliers', schema=None) as batch_op:
        batch_op.create_index('ix_suppliers_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_suppliers_shop_active', ['shop_id', 'is_active'], unique=False)

    op.create_table('purchases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('due_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('purchase_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('received_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_purchases_shop_id_shops'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], name='fk_purchases_supplier_id_suppliers'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_purchases_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_purchases'),
        sa.UniqueConstraint('shop_id', 'invoice_number', name='uq_purchases_shop_invoice'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('purchases', schema=None) as batch_op:
        batch_op.create_index('ix_purchases_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_purchases_supplier_id', ['supplier_id'], unique=False)
        batch_op.create_index('ix_purchases_status', ['status'], unique=False)

    op.create_table('purchase_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('purchase_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_cost', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_cost', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('received_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['purchase_id'], ['purchases.id'], name='fk_purchase_items_purchase_id_purchases'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_purchase_items_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_purchase_items'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('purchase_items', schema=None) as batch_op:
        batch_op.create_index('ix_purchase_items_purchase_id', ['purchase_id'], unique=False)

    # ==========================================================================
    # 4. CUSTOMERS / POS
    # ==========================================================================
    op.create_table('customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('cnic', sa.String(length=32), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('total_purchases', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('last_purchase_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_customers_shop_id_shops'),
        sa.PrimaryKeyConstraint('id', name='pk_customers'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('customers', schema=None) as batch_op:
        batch_op.create_index('ix_customers_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_customers_shop_phone', ['shop_id', 'phone'], unique=False)

    op.create_table('sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='COMPLETED'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_sales_shop_id_shops'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], name='fk_sales_customer_id_customers'),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id'], name='fk_sales_seller_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_sales'),
        sa.UniqueConstraint('shop_id', 'invoice_number', name='uq_sales_shop_invoice'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index('ix_sales_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_sales_customer_id', ['customer_id'], unique=False)
        batch_op.create_index('ix_sales_seller_id', ['seller_id'], unique=False)
        batch_op.create_index('ix_sales_status', ['status'], unique=False)
        batch_op.create_index('ix_sales_sale_date', ['sale_date'], unique=False)
        batch_op.create_index('ix_sales_shop_status_date', ['shop_id', 'status', 'sale_date'], unique=False)

    op.create_table('sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], name='fk_sale_items_sale_id_sales'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_sale_items_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_sale_items'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sale_items', schema=None) as batch_op:
        batch_op.create_index('ix_sale_items_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_sale_items_product_id', ['product_id'], unique=False)

    op.create_table('payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('method', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='COMPLETED'),
        sa.Column('transaction_id', sa.String(length=128), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], name='fk_payments_sale_id_sales'),
        sa.PrimaryKeyConstraint('id', name='pk_payments'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('payments', schema=None) as batch_op:
        batch_op.create_index('ix_payments_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_payments_method', ['method'], unique=False)
        batch_op.create_index('ix_payments_status', ['status'], unique=False)
        batch_op.create_index('ix_payments_date_method', ['payment_date', 'method'], unique=False)

    op.create_table('inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='IN_STOCK'),
        sa.Column('imei', sa.String(length=32), nullable=True),
        sa.Column('serial_number', sa.String(length=64), nullable=True),
        sa.Column('batch_number', sa.String(length=64), nullable=True),
        sa.Column('cost_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('purchase_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('purchase_id', sa.Integer(), nullable=True),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_inventory_items_shop_id_shops'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_inventory_items_product_id_products'),
        sa.ForeignKeyConstraint(['purchase_id'], ['purchases.id'], name='fk_inventory_items_purchase_id_purchases'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], name='fk_inventory_items_supplier_id_suppliers'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], name='fk_inventory_items_sale_id_sales'),
        sa.PrimaryKeyConstraint('id', name='pk_inventory_items'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('inventory_items', schema=None) as batch_op:
        batch_op.create_index('ix_inventory_items_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_inventory_items_product_id', ['product_id'], unique=False)
        batch_op.create_index('ix_inventory_items_status', ['status'], unique=False)
        batch_op.create_index('ix_inventory_items_imei', ['imei'], unique=False)
        batch_op.create_index('ix_inventory_items_purchase_id', ['purchase_id'], unique=False)
        batch_op.create_index('ix_inventory_items_sale_id', ['sale_id'], unique=False)
        batch_op.create_index('ix_inventory_items_stock', ['shop_id', 'product_id', 'status', 'purchase_date'], unique=False)

    op.create_table('cart_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_cart_items_user_id_users'),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_cart_items_shop_id_shops'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_cart_items_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_cart_items'),
        sa.UniqueConstraint('user_id', 'product_id', 'shop_id', name='uq_cart_items_user_product_shop'),
        sa.CheckConstraint('quantity >= 1', name='ck_cart_items_quantity_positive'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('cart_items', schema=None) as batch_op:
        batch_op.create_index('ix_cart_items_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_cart_items_shop_id', ['shop_id'], unique=False)

    # ==========================================================================
    # 5. LOANS
    # ==========================================================================
    op.create_table('loans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('loan_number', sa.String(length=64), nullable=False),
        sa.Column('principal_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('interest_rate', sa.Numeric(precision=6, scale=2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('remaining_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('installment_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_installments', sa.Integer(), nullable=False),
        sa.Column('paid_installments', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='ACTIVE'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('next_due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_loans_shop_id_shops'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], name='fk_loans_customer_id_customers'),
        sa.PrimaryKeyConstraint('id', name='pk_loans'),
        sa.UniqueConstraint('loan_number', name='uq_loans_loan_number'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('loans', schema=None) as batch_op:
        batch_op.create_index('ix_loans_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_loans_customer_id', ['customer_id'], unique=False)
        batch_op.create_index('ix_loans_status', ['status'], unique=False)
        batch_op.create_index('ix_loans_shop_status_due', ['shop_id', 'status', 'next_due_date'], unique=False)

    op.create_table('loan_installments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('loan_id', sa.Integer(), nullable=False),
        sa.Column('installment_no', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('paid_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('paid_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.ForeignKeyConstraint(['loan_id'], ['loans.id'], name='fk_loan_installments_loan_id_loans'),
        sa.PrimaryKeyConstraint('id', name='pk_loan_installments'),
        sa.UniqueConstraint('loan_id', 'installment_no', name='uq_loan_installments_loan_no'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('loan_installments', schema=None) as batch_op:
        batch_op.create_index('ix_loan_installments_loan_id', ['loan_id'], unique=False)

    # ==========================================================================
    # 6. DOCUMENT SEQUENCES / AUDIT LOG
    # ==========================================================================
    op.create_table('document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_document_sequences_shop_id_shops'),
        sa.PrimaryKeyConstraint('id', name='pk_document_sequences'),
        sa.UniqueConstraint('shop_id', 'document_type', name='uq_document_sequences_shop_type'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('document_sequences', schema=None) as batch_op:
        batch_op.create_index('ix_document_sequences_shop_id', ['shop_id'], unique=False)

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('shop_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('table_name', sa.String(length=64), nullable=False),
        sa.Column('record_id', sa.String(length=64), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_audit_logs_user_id_users'),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_audit_logs_shop_id_shops'),
        sa.PrimaryKeyConstraint('id', name='pk_audit_logs'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index('ix_audit_logs_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_audit_logs_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_audit_logs_action', ['action'], unique=False)
        batch_op.create_index('ix_audit_logs_created_at', ['created_at'], unique=False)
        batch_op.create_index('ix_audit_logs_table_record', ['table_name', 'record_id'], unique=False)


def downgrade():
    for table in (
        'audit_logs',
        'document_sequences',
        'loan_installments',
        'loans',
        'cart_items',
        'inventory_items',
        'payments',
        'sale_items',
        'sales',
        'customers',
        'purchase_items',
        'purchases',
        'suppliers',
        'products',
        'shop_workers',
        'shops',
        'session_tokens',
        'users',
    ):
        op.drop_table(table)
