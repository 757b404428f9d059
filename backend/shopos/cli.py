# Overview: Flask CLI command groups for bootstrap and maintenance.

# backend/shopos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app shopos <group> <command> [options]
#
# Schema:
# - flask --app shopos db upgrade
#   Apply migrations (Flask-Migrate).
#
# System bootstrap/repair:
# - flask --app shopos system init
#   Idempotent bootstrap: super admin, demo owner, demo shop and a worker.
# - flask --app shopos system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users and shops:
# - flask --app shopos users create --name "Ali" --email ali@shop.local --password "Password123" --role SHOP_OWNER
# - flask --app shopos shops create --name "Main Branch" --code MAIN --owner-email ali@shop.local
# - flask --app shopos shops add-worker --shop-code MAIN --email cashier@shop.local
#
# Inventory:
# - flask --app shopos inventory receive --shop-code MAIN --sku IPH-15 --quantity 5 [--cost 250000]
#   Add IN_STOCK units directly (opening stock).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Product, Shop, User
from .models.auth import ROLE_SHOP_OWNER, ROLE_SHOP_WORKER, ROLE_SUPER_ADMIN, VALID_ROLES
from .services.auth_service import create_user
from .services.inventory_service import count_in_stock, receive_stock
from .services.shop_service import add_worker, create_shop
from .validation import ShopError, to_decimal


DEFAULT_PASSWORD = "Password123"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--shop-name', default='Main Shop', help='Demo shop name')
@click.option('--shop-code', default='MAIN', help='Demo shop code')
@with_appcontext
def init_system(shop_name, shop_code):
    """
    Create the default accounts and a demo shop if missing.

    - admin@shopos.local  (SUPER_ADMIN)
    - owner@shopos.local  (SHOP_OWNER, owns the demo shop)
    - worker@shopos.local (SHOP_WORKER, assigned to the demo shop)

    All passwords default to "Password123". Change them in production.
    """
    click.echo("START Initializing ShopOS...")

    users = {}
    for name, email, role in (
        ("Admin", "admin@shopos.local", ROLE_SUPER_ADMIN),
        ("Owner", "owner@shopos.local", ROLE_SHOP_OWNER),
        ("Worker", "worker@shopos.local", ROLE_SHOP_WORKER),
    ):
        existing = db.session.query(User).filter_by(email=email).first()
        if existing:
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            users[role] = existing
            continue
        users[role] = create_user(name, email, DEFAULT_PASSWORD, role)
        click.echo(f"PASS Created user: {email} with role {role}")

    shop = db.session.query(Shop).filter_by(code=shop_code.upper()).first()
    if shop:
        click.echo(f"PASS Using existing shop: {shop.name} (ID: {shop.id})")
    else:
        shop = create_shop(name=shop_name, code=shop_code, owner_id=users[ROLE_SHOP_OWNER].id)
        click.echo(f"PASS Created shop: {shop.name} (ID: {shop.id}, Code: {shop.code})")

    add_worker(shop_id=shop.id, user_id=users[ROLE_SHOP_WORKER].id)
    click.echo("PASS Worker assigned to shop")

    click.echo("\n" + "=" * 60)
    click.echo("DONE ShopOS initialized")
    click.echo("=" * 60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   admin  -> admin@shopos.local  / {DEFAULT_PASSWORD}")
    click.echo(f"   owner  -> owner@shopos.local  / {DEFAULT_PASSWORD}")
    click.echo(f"   worker -> worker@shopos.local / {DEFAULT_PASSWORD}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DANGER: Drop all tables and recreate schema."""
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'flask --app shopos system init' to initialize.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(VALID_ROLES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """
    Create a new user.

    Password must be 8+ characters with an uppercase letter, a lowercase
    letter and a digit.
    """
    try:
        user = create_user(name, email, password, role)
        click.echo(f"PASS Created user: {user.email} (ID: {user.id}, role {user.role})")
    except ShopError as e:
        raise click.ClickException(e.message)


@click.group('shops')
def shops_group():
    """Shop management commands."""


@shops_group.command('create')
@click.option('--name', required=True, help='Shop name')
@click.option('--code', required=True, help='Unique shop code')
@click.option('--owner-email', required=True, help='Email of a SHOP_OWNER user')
@click.option('--address', default=None)
@click.option('--phone', default=None)
@with_appcontext
def create_shop_cli(name, code, owner_email, address, phone):
    owner = db.session.query(User).filter_by(email=owner_email.strip().lower()).first()
    if not owner:
        raise click.ClickException(f"User '{owner_email}' not found")
    try:
        shop = create_shop(name=name, code=code, owner_id=owner.id, address=address, phone=phone)
        click.echo(f"PASS Created shop: {shop.name} (ID: {shop.id}, Code: {shop.code})")
    except ShopError as e:
        raise click.ClickException(e.message)


@shops_group.command('add-worker')
@click.option('--shop-code', required=True)
@click.option('--email', required=True, help='Email of a SHOP_WORKER user')
@with_appcontext
def add_worker_cli(shop_code, email):
    shop = db.session.query(Shop).filter_by(code=shop_code.strip().upper()).first()
    if not shop:
        raise click.ClickException(f"Shop '{shop_code}' not found")
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        raise click.ClickException(f"User '{email}' not found")
    try:
        add_worker(shop_id=shop.id, user_id=user.id)
        click.echo(f"PASS {user.email} assigned to {shop.code}")
    except ShopError as e:
        raise click.ClickException(e.message)


@click.group('inventory')
def inventory_group():
    """Stock commands."""


@inventory_group.command('receive')
@click.option('--shop-code', required=True)
@click.option('--sku', required=True)
@click.option('--quantity', type=click.IntRange(min=1), required=True)
@click.option('--cost', default=None, help='Unit cost (defaults to the product cost price)')
@with_appcontext
def receive_cli(shop_code, sku, quantity, cost):
    """Add IN_STOCK units for a product (opening stock)."""
    shop = db.session.query(Shop).filter_by(code=shop_code.strip().upper()).first()
    if not shop:
        raise click.ClickException(f"Shop '{shop_code}' not found")
    product = db.session.query(Product).filter_by(shop_id=shop.id, sku=sku).first()
    if not product:
        raise click.ClickException(f"Product '{sku}' not found in {shop.code}")
    try:
        units = receive_stock(
            shop_id=shop.id,
            product_id=product.id,
            quantity=quantity,
            cost_price=to_decimal(cost, "cost") if cost is not None else None,
        )
    except ShopError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Received {len(units)} units of {product.sku}; in stock: {count_in_stock(shop.id, product.id)}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(shops_group)
    app.cli.add_command(inventory_group)
