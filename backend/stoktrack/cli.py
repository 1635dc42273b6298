# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stoktrack/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users and tokens:
# - python -m flask users create --name "Sari" --email sari@example.com --role "Field Assistant"
# - python -m flask users list
# - python -m flask users issue-token --email sari@example.com [--hours 24]
#   Prints a bearer token for the HTTP API (shown once, stored hashed).
#
# Catalog:
# - python -m flask catalog add-product --name "Benih Jagung" --package-unit "sak" [--unit "kg"]
# - python -m flask catalog add-kiosk --name "Kios Makmur"
#
# Stock:
# - python -m flask stock resync
#   Rebuild every availability snapshot from the ledgers.

import click
from datetime import timedelta
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Product, Kiosk
from .models.auth import KNOWN_ROLES
from .services import session_service, snapshot_service


@click.group('system')
def system_group():
    """System repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--role', type=click.Choice(list(KNOWN_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, role):
    """Create a user."""
    if db.session.query(User).filter_by(email=email).first():
        click.echo(f"FAIL User with email '{email}' already exists")
        return

    user = User(name=name, email=email, role=role, is_active=True)
    db.session.add(user)
    db.session.commit()
    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{user.role}' (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<30} {'Active':<8} {'Role'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<30} {active_str:<8} {user.role}")

    click.echo("="*100 + "\n")


@users_group.command('issue-token')
@click.option('--email', required=True, help='Email of the user')
@click.option('--hours', type=int, default=None, help='Token lifetime (defaults to SESSION_TTL_HOURS)')
@with_appcontext
def issue_token(email, hours):
    """Issue a bearer token for a user. The plaintext is printed once."""
    user = db.session.query(User).filter_by(email=email).first()
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    ttl = timedelta(hours=hours) if hours else None
    try:
        session, token = session_service.create_session(user.id, ttl=ttl)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Token for {user.email} (expires {session.expires_at:%Y-%m-%d %H:%M} UTC):")
    click.echo(token)


@click.group('catalog')
def catalog_group():
    """Product and kiosk master data."""


@catalog_group.command('add-product')
@click.option('--name', required=True, help='Product name')
@click.option('--package-unit', required=True, help='Packaging unit, e.g. sak, botol')
@click.option('--unit', default=None, help='Measure unit, e.g. kg, liter')
@with_appcontext
def add_product(name, package_unit, unit):
    product = Product(name=name, package_unit=package_unit, unit=unit)
    db.session.add(product)
    db.session.commit()
    click.echo(f"PASS Created product: {product.name} (ID: {product.id})")


@catalog_group.command('add-kiosk')
@click.option('--name', required=True, help='Kiosk name')
@with_appcontext
def add_kiosk(name):
    kiosk = Kiosk(name=name)
    db.session.add(kiosk)
    db.session.commit()
    click.echo(f"PASS Created kiosk: {kiosk.name} (ID: {kiosk.id})")


@click.group('stock')
def stock_group():
    """Stock ledger maintenance."""


@stock_group.command('resync')
@with_appcontext
def resync_stock():
    """Recompute every availability snapshot from the ledgers."""
    count = snapshot_service.resync_all()
    click.echo(f"PASS Resynced {count} (product, kiosk) pairs")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(stock_group)
