# Overview: Flask CLI command groups for bootstrap, user management and maintenance.

# dresscode/cli.py
# Commands Legend:
# - flask --app dresscode system init [--warehouse "Central Warehouse"]
#   Idempotent bootstrap: warehouse store plus a warehouse manager account.
# - flask --app dresscode system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask --app dresscode stores create --name "Koramangala" --commission 10
# - flask --app dresscode users create --name "Asha" --email asha@example.com --role STORE_MANAGER --store-id 2
# - flask --app dresscode users list
# - flask --app dresscode maintenance sweep
#   Expire coupons past their expiry date and purge unpaid orders older than UNPAID_ORDER_TTL_HOURS.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import ServiceError
from .extensions import db
from .models import Store, User
from .models.auth import ROLE_WAREHOUSE_MANAGER, VALID_ROLES
from .models.stores import STORE_TYPE_STORE
from .services import maintenance_service, store_service
from .services.auth_service import create_user


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--warehouse', 'warehouse_name', default='Central Warehouse', help='Warehouse store name')
@click.option('--email', default='warehouse@dresscode.local', help='Warehouse manager email')
@click.option('--password', default='Password123!', help='Warehouse manager password')
@with_appcontext
def init_system(warehouse_name, email, password):
    """
    Create the warehouse store and a warehouse manager.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing dresscode...")

    warehouse = store_service.ensure_warehouse(warehouse_name)
    db.session.commit()
    click.echo(f"PASS Warehouse: {warehouse.store_name} (ID: {warehouse.id})")

    if db.session.query(User.id).filter_by(email=email.lower()).first():
        click.echo(f"WARN  User '{email}' already exists, skipping...")
    else:
        try:
            create_user(
                name="Warehouse Manager",
                email=email,
                password=password,
                role=ROLE_WAREHOUSE_MANAGER,
                store_id=warehouse.id,
            )
            db.session.commit()
            click.echo(f"PASS Created warehouse manager: {email}")
        except ServiceError as e:
            db.session.rollback()
            click.echo(f"FAIL Could not create warehouse manager: {e.message}")

    click.echo("DONE dresscode initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('stores')
def stores_group():
    """Store management commands."""


@stores_group.command('create')
@click.option('--name', required=True)
@click.option('--commission', type=int, default=0, show_default=True)
@click.option('--city', default=None)
@with_appcontext
def create_store_cli(name, commission, city):
    if db.session.query(Store.id).filter_by(store_name=name).first():
        click.echo(f"FAIL Store '{name}' already exists")
        return
    store = Store(store_name=name, store_type=STORE_TYPE_STORE, commission_percentage=commission, city=city)
    db.session.add(store)
    db.session.commit()
    click.echo(f"PASS Created store: {store.store_name} (ID: {store.id})")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(VALID_ROLES), prompt=True)
@click.option('--store-id', type=int, default=None)
@with_appcontext
def create_user_cli(name, email, password, role, store_id):
    try:
        user = create_user(name=name, email=email, password=password, role=role, store_id=store_id)
        db.session.commit()
        click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")
    except ServiceError as e:
        db.session.rollback()
        click.echo(f"FAIL {e.message}")


@users_group.command('list')
@with_appcontext
def list_users_cli():
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return
    click.echo(f"{'ID':<5} {'Email':<35} {'Role':<20} {'Store':<6} {'Active':<6}")
    click.echo("-" * 75)
    for u in users:
        click.echo(f"{u.id:<5} {u.email:<35} {u.role:<20} {str(u.store_id or ''):<6} {str(u.is_active):<6}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('sweep')
@click.option('--ttl-hours', type=int, default=None, help='Unpaid order lifetime (default: UNPAID_ORDER_TTL_HOURS)')
@with_appcontext
def sweep_cli(ttl_hours):
    """Expire stale coupons and purge abandoned unpaid orders."""
    ttl = ttl_hours if ttl_hours is not None else current_app.config["UNPAID_ORDER_TTL_HOURS"]
    expired = maintenance_service.expire_coupons()
    purged = maintenance_service.purge_unpaid_orders(ttl_hours=ttl)
    click.echo(f"Expired {expired} coupons; purged {purged} unpaid orders older than {ttl}h.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
