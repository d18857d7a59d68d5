# Overview: Flask CLI command groups for site setup and the backup job.

# backend/weighbridge/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app wsgi <group> <command> [options]
#
# Site setup:
# - flask --app wsgi setup init
#   Migrate the database, resolve the device id, prompt for the first admin.
# - flask --app wsgi setup create-user --username op1 --role operator
#   Create a local user (prompts for the password).
# - flask --app wsgi setup seed-sample-data
#   DEV only: demo users, customers, completed and pending tickets.
#
# Backup:
# - flask --app wsgi export run
#   Export completed tickets to the configured spreadsheet.
#   Cron (daily at midnight): 0 0 * * * cd /opt/weighbridge/backend && flask --app wsgi export run

import random
from datetime import timedelta

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer
from .services import auth_service, device_service, export_service, tickets_service
from .services.sheets import SheetTargetError, build_target
from .validation import ConflictError, ValidationError
from .time_utils import utcnow


@click.group('setup')
def setup_group():
    """Site bootstrap commands."""


@setup_group.command('init')
@click.option('--admin-username', help='Username for the first admin')
@click.option('--admin-name', help='Full name for the first admin')
@click.option('--admin-password', help='Password for the first admin (prompted if omitted)')
@with_appcontext
def init_site_command(admin_username, admin_name, admin_password):
    """
    Idempotent site bootstrap.

    - Applies migrations
    - Resolves (or generates) the device id and stores it in app_settings
    - Creates an admin user unless one already exists
    """
    from . import init_site

    app = current_app._get_current_object()
    click.echo("START Initializing weighbridge site...")

    device_id = init_site(app)
    click.echo(f"PASS Device ID: {device_id}")

    if auth_service.admin_exists() and not admin_username:
        click.echo("PASS Admin user already exists, skipping")
        return

    username = admin_username or click.prompt("Admin username")
    name = admin_name if admin_name is not None else click.prompt("Admin full name", default="", show_default=False)
    password = admin_password or click.prompt("Admin password", hide_input=True, confirmation_prompt=True)

    try:
        auth_service.create_user(username, password, name=name, role="admin")
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Admin user {username} created")


@setup_group.command('create-user')
@click.option('--username', required=True, help='Username (unique)')
@click.option('--name', default=None, help='Full name')
@click.option('--role', type=click.Choice(['admin', 'operator']), default='operator', show_default=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_command(username, name, role, password):
    """Create a local user."""
    try:
        user = auth_service.create_user(username, password, name=name, role=role)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user: {user.username} (ID: {user.id}, role: {user.role})")


SAMPLE_CUSTOMERS = [
    ("ABC Logistics", "ABC Inc.", "contact@abclogistics.com", "555-1234", "123 Main St, Anytown"),
    ("XYZ Manufacturing", "XYZ Corp", "info@xyzmfg.com", "555-5678", "456 Industrial Blvd, Cityville"),
    ("Smith Farming", "Smith Family Farms", "john@smithfarms.com", "555-9101", "Rural Route 2, Farmville"),
]
SAMPLE_MATERIALS = ["Gravel", "Sand", "Soil", "Concrete", "Asphalt", "Coal"]
SAMPLE_UNITS = ["kg", "ton"]
SAMPLE_VEHICLES = ["Truck123", "Trailer456", "Vehicle789", "Lorry101"]


@setup_group.command('seed-sample-data')
@click.option('--seed', type=int, default=None, help='Random seed for repeatable data')
@with_appcontext
def seed_sample_data_command(seed):
    """
    DEV only: demo users, customers and tickets.

    Tickets go through the normal create/update path, so timestamps and
    derived fields follow the same rules as real weighings.
    """
    rng = random.Random(seed)

    for username, password, name, role in (
        ("admin", "admin123", "Admin User", "admin"),
        ("operator", "operator123", "Scale Operator", "operator"),
    ):
        try:
            auth_service.create_user(username, password, name=name, role=role)
            click.echo(f"PASS Created user {username}")
        except ConflictError:
            click.echo(f"WARN  User '{username}' already exists, skipping...")

    customer_ids = []
    for name, company, email, phone, address in SAMPLE_CUSTOMERS:
        customer = db.session.query(Customer).filter_by(name=name).first()
        if customer is None:
            customer = Customer(name=name, company=company, email=email, phone=phone, address=address)
            db.session.add(customer)
            db.session.commit()
        customer_ids.append(customer.id)
    click.echo(f"PASS {len(customer_ids)} customers ready")

    def _patch():
        return {
            "customer_id": rng.choice(customer_ids),
            "vehicle_id": rng.choice(SAMPLE_VEHICLES),
            "material": rng.choice(SAMPLE_MATERIALS),
            "unit": rng.choice(SAMPLE_UNITS),
            "gross_weight": float(rng.randint(1000, 9999)),
        }

    now = utcnow()
    for _ in range(10):
        weigh_in = now - timedelta(days=rng.randint(0, 29), minutes=rng.randint(0, 600))
        ticket = tickets_service.create_ticket(patch=_patch(), now=weigh_in, rng=rng)
        tickets_service.update_ticket(
            ticket["id"],
            patch={"tare_weight": float(rng.randint(500, 999))},
            now=weigh_in + timedelta(minutes=30),
        )

    for _ in range(5):
        weigh_in = now - timedelta(days=rng.randint(0, 1), minutes=rng.randint(0, 600))
        tickets_service.create_ticket(patch=_patch(), now=weigh_in, rng=rng)

    click.echo("PASS Created 10 completed and 5 pending tickets")
    click.echo("\nDefault Credentials (DEV ONLY):")
    click.echo("   admin    / admin123")
    click.echo("   operator / operator123")


@click.group('export')
def export_group():
    """Spreadsheet backup commands."""


@export_group.command('run')
@with_appcontext
def export_run_command():
    """Export completed, not yet backed up tickets. Exits 1 on failure."""
    try:
        target = build_target(current_app.config)
    except SheetTargetError as e:
        current_app.logger.error("Backup process failed: %s", e)
        raise click.ClickException(str(e))

    result = export_service.run_export(target, device_service.current_device_id())

    if result.status == "failed":
        raise click.ClickException(f"Backup failed: {result.error}")
    click.echo(f"PASS Backup {result.status}: {result.exported} tickets exported")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(setup_group)
    app.cli.add_command(export_group)
