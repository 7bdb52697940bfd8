# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/nutopiano/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--business "Name"] [--admin-phone 5550000000]
#   Idempotent bootstrap: default business, order statuses, admin user.
#
# Business management (MULTI-TENANT):
# - python -m flask businesses list
# - python -m flask businesses create --name "Acme"
#   Create a new business (tenant) with default order statuses.
#
# Users:
# - python -m flask users create --business-id 1 --name "Ayse" --phone 5551112233 --role STAFF
#
# Maintenance:
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window (add --business-id 3 for one tenant).

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .errors import ApiError
from .models import Business, User
from .models.auth import ROLES
from .services import auth_service, maintenance_service, order_status_service, tenant_service


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--business', 'business_name', default=None, help='Business name (defaults to BUSINESS_NAME)')
@click.option('--admin-name', default='Admin', show_default=True)
@click.option('--admin-phone', default='5550000000', show_default=True)
@click.option('--admin-email', default='admin@nutopiano.local', show_default=True)
@click.option('--admin-password', default='Password123!', show_default=True)
@with_appcontext
def init_system(business_name, admin_name, admin_phone, admin_email, admin_password):
    """
    Initialize Nutopiano: business, default order statuses and an admin.

    Safe to run repeatedly; existing rows are reused.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing Nutopiano...")

    business = db.session.query(Business).order_by(Business.id.asc()).first()
    if not business:
        business = tenant_service.create_business(business_name or current_app.config["BUSINESS_NAME"])
        click.echo(f"PASS Created business: {business.name} (ID: {business.id})")
    else:
        click.echo(f"PASS Using existing business: {business.name} (ID: {business.id})")

    created = order_status_service.create_default_statuses(business.id)
    if created:
        click.echo(f"PASS Created order statuses: {', '.join(s.key for s in created)}")
    else:
        click.echo("PASS Order statuses already configured")

    admin = db.session.query(User).filter_by(phone=admin_phone).first()
    if admin:
        click.echo(f"PASS Using existing user for {admin_phone} (role {admin.role})")
    else:
        try:
            admin = auth_service.create_user(
                business_id=business.id,
                name=admin_name,
                phone=admin_phone,
                email=admin_email,
                password=admin_password,
                role="ADMIN",
            )
        except ApiError as e:
            click.echo(f"FAIL Failed to create admin: {e.message}")
            return
        click.echo(f"PASS Created admin: {admin.phone} ({admin.email})")

    click.echo("DONE Nutopiano initialized.")


@click.group('businesses')
def businesses_group():
    """Business (tenant) management commands."""


@businesses_group.command('list')
@with_appcontext
def list_businesses():
    """List all businesses."""
    businesses = db.session.query(Business).order_by(Business.id.asc()).all()
    if not businesses:
        click.echo("No businesses found.")
        return
    for b in businesses:
        users = db.session.query(User).filter_by(business_id=b.id).count()
        click.echo(f"{b.id:>4}  {b.name}  ({users} users)")


@businesses_group.command('create')
@click.option('--name', prompt=True, help='Business name')
@with_appcontext
def create_business_cli(name):
    """Create a business and seed its default order statuses."""
    try:
        business = tenant_service.create_business(name)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return
    order_status_service.create_default_statuses(business.id)
    click.echo(f"PASS Created business: {business.name} (ID: {business.id})")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--business-id', type=int, help='Business ID (uses the first business if not specified)')
@click.option('--name', prompt=True, help='Display name')
@click.option('--phone', prompt=True, help='Phone number (login identifier)')
@click.option('--email', default=None, help='Email address')
@click.option('--password', default=None, help='Password (omit for a phone-only account)')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(business_id, name, phone, email, password, role):
    """
    Create a user.

    MULTI-TENANT: the user belongs to exactly one business.
    Password (when given): 8+ characters with a letter and a digit.
    """
    if business_id:
        business = tenant_service.get_business(business_id)
    else:
        business = db.session.query(Business).order_by(Business.id.asc()).first()
    if not business:
        click.echo("FAIL Business not found. Run 'python -m flask system init' first.")
        return

    try:
        user = auth_service.create_user(
            business_id=business.id,
            name=name,
            phone=phone,
            email=email,
            password=password,
            role=role,
        )
    except ApiError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        return

    click.echo(f"PASS Created user: {user.name} ({user.phone}) with role '{role}'")
    click.echo(f"     Business: {business.name} (ID: {business.id})")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@click.option('--business-id', type=int, default=None, help='Only purge this business (default: all)')
@with_appcontext
def cleanup_security_events_cli(retention_days, business_id):
    """
    Cleanup old security events.

    Default retention: 90 days, across every business.
    """
    try:
        deleted = maintenance_service.cleanup_security_events(
            retention_days=retention_days,
            business_id=business_id,
        )
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return
    scope = f"business {business_id}" if business_id is not None else "all businesses"
    click.echo(f"Deleted {deleted} security events older than {retention_days} days ({scope}).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(businesses_group)  # Multi-tenant business management
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
