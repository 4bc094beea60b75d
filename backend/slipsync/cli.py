# Overview: Flask CLI command groups for bootstrap, tenant inspection, identity tokens, print devices and security events.

# backend/slipsync/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (development; use flask db upgrade with migrations elsewhere).
# - python -m flask system init-roles
#   Create the ADMIN and EMPLOYEE roles.
# - python -m flask system permissions [--role org:employee]
#   Show the permission table per role.
#
# Merchant management (MULTI-TENANT):
# - python -m flask merchants list
# - python -m flask merchants create --name "Acme Traders" [--id org_123] [--currency PKR]
# - python -m flask merchants add-store --merchant-id org_123 --name "Main Branch"
#
# Identity (development verifier):
# - python -m flask identity issue-token --subject user_abc [--email a@b.c] [--name "Ada"]
#   Print a signed bearer token accepted by the built-in verifier.
#
# Print devices:
# - python -m flask devices list [--merchant-id org_123]
# - python -m flask devices online --merchant-id org_123
#
# Security audit trail:
# - python -m flask security events --merchant-id org_123 [--type DEVICE_AUTH_FAILED] [--limit 50]

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .errors import SlipSyncError
from .models import Merchant, Store, User
from .permissions import DEFAULT_ROLE_PERMISSIONS, RoleName, canonical_role_name, describe_permission
from .services import identity_service, print_device_service, security_service, store_service, user_service
from .time_utils import seconds_since, to_utc_z


# =============================================================================
# SYSTEM COMMANDS
# =============================================================================

@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables for the current models."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('init-roles')
@with_appcontext
def init_roles():
    """Create the ADMIN and EMPLOYEE roles."""
    for role in (RoleName.ADMIN, RoleName.EMPLOYEE):
        user_service.ensure_role(role)
    db.session.commit()
    click.echo("PASS Roles ready: ADMIN, EMPLOYEE")


@system_group.command('permissions')
@click.option('--role', help='Only this role (accepts provider names such as org:admin)')
def list_permissions(role):
    """Show the permission table per role."""
    if role:
        canonical = canonical_role_name(role)
        if canonical is None:
            click.echo(f"FAIL Unknown role: {role}")
            return
        roles = [RoleName(canonical)]
    else:
        roles = [RoleName.ADMIN, RoleName.EMPLOYEE]

    for role_name in roles:
        click.echo(f"\n{role_name.value}")
        for code in sorted(DEFAULT_ROLE_PERMISSIONS[role_name]):
            definition = describe_permission(code)
            click.echo(f"  {code:<18} {definition['category']:<13} {definition['description']}")


# =============================================================================
# MERCHANT MANAGEMENT COMMANDS (MULTI-TENANT)
# =============================================================================

@click.group('merchants')
def merchants_group():
    """Merchant (tenant) management commands."""


@merchants_group.command('list')
@with_appcontext
def list_merchants():
    """List all merchants."""
    merchants = db.session.query(Merchant).order_by(Merchant.created_at.asc()).all()

    if not merchants:
        click.echo("No merchants found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<38} {'Name':<30} {'Currency':<9} {'Stores':<7} {'Users'}")
    click.echo("="*90)

    for merchant in merchants:
        store_count = db.session.query(Store).filter_by(merchant_id=merchant.id).count()
        user_count = db.session.query(User).filter_by(merchant_id=merchant.id).count()
        click.echo(f"{merchant.id:<38} {merchant.name:<30} {merchant.currency:<9} {store_count:<7} {user_count}")

    click.echo("="*90 + "\n")


@merchants_group.command('create')
@click.option('--name', required=True, help='Merchant name')
@click.option('--id', 'merchant_id', help='Merchant id (e.g. the identity provider org id)')
@click.option('--currency', default=None, help='Default currency (defaults to DEFAULT_CURRENCY)')
@with_appcontext
def create_merchant_cli(name, merchant_id, currency):
    """Create a new merchant (tenant)."""
    if merchant_id and db.session.get(Merchant, merchant_id) is not None:
        click.echo(f"FAIL Merchant '{merchant_id}' already exists")
        return

    merchant = Merchant(name=name, currency=(currency or current_app.config["DEFAULT_CURRENCY"]).upper())
    if merchant_id:
        merchant.id = merchant_id
    db.session.add(merchant)
    db.session.commit()

    click.echo(f"PASS Created merchant: {merchant.name} (ID: {merchant.id})")


@merchants_group.command('add-store')
@click.option('--merchant-id', required=True, help='Merchant ID')
@click.option('--name', required=True, help='Store name')
@click.option('--address', help='Store address')
@click.option('--currency', help='Store currency (defaults to the merchant currency)')
@with_appcontext
def add_store_cli(merchant_id, name, address, currency):
    """Add a store to a merchant."""
    try:
        store = store_service.create_store(merchant_id, name=name, address=address, currency=currency)
    except SlipSyncError as exc:
        click.echo(f"FAIL {exc}")
        return
    click.echo(f"PASS Created store: {store.name} (ID: {store.id}) in merchant '{merchant_id}'")


# =============================================================================
# IDENTITY COMMANDS
# =============================================================================

@click.group('identity')
def identity_group():
    """Development identity tokens."""


@identity_group.command('issue-token')
@click.option('--subject', required=True, help='Identity subject (external user id)')
@click.option('--email', help='Email claim')
@click.option('--name', 'full_name', help='Display name claim')
@with_appcontext
def issue_token_cli(subject, email, full_name):
    """Print a bearer token for the built-in verifier."""
    click.echo(identity_service.issue_identity_token(subject, email=email, full_name=full_name))


# =============================================================================
# PRINT DEVICE COMMANDS
# =============================================================================

@click.group('devices')
def devices_group():
    """Print device inspection commands."""


@devices_group.command('list')
@click.option('--merchant-id', help='Filter by merchant ID')
@with_appcontext
def list_devices_cli(merchant_id):
    """List paired print devices."""
    devices = print_device_service.list_devices(merchant_id)
    if not devices:
        click.echo("No print devices found.")
        return

    window = current_app.config["PRINT_DEVICE_ONLINE_WINDOW_SECONDS"]
    for device in devices:
        age = seconds_since(device.last_seen)
        status = "online" if age is not None and age < window else "offline"
        click.echo(
            f"{device.device_identifier:<45} {device.name or '-':<25} "
            f"{device.merchant_id:<38} {status:<8} {to_utc_z(device.last_seen) or 'never'}"
        )


@devices_group.command('online')
@click.option('--merchant-id', required=True, help='Merchant ID')
@click.option('--within', 'within_seconds', type=int, default=None, help='Liveness window in seconds')
@with_appcontext
def online_devices_cli(merchant_id, within_seconds):
    """List devices seen within the liveness window."""
    devices = print_device_service.list_online(merchant_id, within_seconds)
    click.echo(f"{len(devices)} device(s) online")
    for device in devices:
        click.echo(f"  {device.device_identifier} ({device.name or '-'}) last seen {to_utc_z(device.last_seen)}")


# =============================================================================
# SECURITY COMMANDS
# =============================================================================

@click.group('security')
def security_group():
    """Security audit trail inspection."""


@security_group.command('events')
@click.option('--merchant-id', required=True, help='Merchant ID')
@click.option('--type', 'event_type', help='Filter by event type, e.g. DEVICE_AUTH_FAILED')
@click.option('--limit', type=int, default=50, show_default=True)
@with_appcontext
def list_security_events_cli(merchant_id, event_type, limit):
    """Most recent security events for a merchant."""
    events = security_service.list_security_events(merchant_id, event_type=event_type, limit=limit)
    if not events:
        click.echo("No security events found.")
        return
    for event in events:
        outcome = "PASS" if event.success else "FAIL"
        actor = event.user_id or event.device_identifier or "-"
        click.echo(f"{to_utc_z(event.occurred_at)} {outcome} {event.event_type:<28} {actor:<38} {event.reason or ''}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(merchants_group)  # Multi-tenant merchant management
    app.cli.add_command(identity_group)
    app.cli.add_command(devices_group)
    app.cli.add_command(security_group)
