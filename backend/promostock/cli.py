# Overview: Flask CLI command groups for bootstrap, inspection, and manual ledger entries.

# backend/promostock/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--employee-name "Warehouse Admin" --initials WA]
#   Idempotent bootstrap: creates tables and a first active employee.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Employee inspection/bootstrap:
# - python -m flask employees list
#   List all employees with active status.
# - python -m flask employees create --name "Jane Doe" --initials JD
#   Create an employee (prompts if options are omitted).
# - python -m flask employees deactivate 3
#   Block an employee from recording movements.
#
# Ledger inspection/repair:
# - python -m flask ledger project 12
#   Print an item's aggregate quantities.
# - python -m flask ledger holdings 4
#   Print what a promoter currently holds.
# - python -m flask ledger record take_out 12 31 5 --employee-id 1 --promoter-id 4 --note "Expo"
#   Record one movement exactly as the API would.

import click
from flask.cli import with_appcontext

from .errors import LedgerError
from .extensions import db
from .models import Employee, TRANSACTION_TYPES
from .services import catalog_service, holdings_service, quantity_service, transaction_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--employee-name', default='Warehouse Admin', help='Full name of the first employee')
@click.option('--initials', default='WA', help='Initials of the first employee')
@with_appcontext
def init_system(employee_name, initials):
    """
    Initialize the promostock database.

    Creates:
    - All tables (no-op for tables that already exist)
    - One active employee, if no active employee exists yet
    """
    click.echo("START Initializing promostock...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(Employee).filter(Employee.is_active.is_(True)).first()
    if existing:
        click.echo(f"PASS Using existing employee: {existing.full_name} (ID: {existing.id})")
    else:
        employee = catalog_service.create_employee(employee_name, initials)
        click.echo(f"PASS Created employee: {employee.full_name} (ID: {employee.id}, {employee.initials})")

    click.echo("DONE Send X-Employee-Id with that ID on mutating API calls.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('employees')
def employees_group():
    """Employee inspection and bootstrap commands."""


@employees_group.command('list')
@with_appcontext
def list_employees():
    employees = catalog_service.list_employees()
    if not employees:
        click.echo("No employees found.")
        return

    click.echo(f"{'ID':<5} {'Initials':<10} {'Name':<30} {'Active':<6}")
    click.echo("-" * 55)
    for e in employees:
        click.echo(f"{e.id:<5} {e.initials:<10} {e.full_name:<30} {'yes' if e.is_active else 'no':<6}")


@employees_group.command('create')
@click.option('--name', prompt='Full name', help='Employee full name')
@click.option('--initials', prompt='Initials', help='Employee initials')
@with_appcontext
def create_employee(name, initials):
    try:
        employee = catalog_service.create_employee(name, initials)
    except LedgerError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created employee {employee.full_name} (ID: {employee.id})")


@employees_group.command('deactivate')
@click.argument('employee_id', type=int)
@with_appcontext
def deactivate_employee(employee_id):
    try:
        employee = catalog_service.set_employee_active(employee_id, False)
    except LedgerError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Deactivated employee {employee.full_name} (ID: {employee.id})")


@click.group('ledger')
def ledger_group():
    """Ledger inspection and manual entry commands."""


@ledger_group.command('project')
@click.argument('item_id', type=int)
@with_appcontext
def project_item(item_id):
    try:
        q = quantity_service.project(item_id)
        sizes = quantity_service.size_quantities(item_id)
    except LedgerError as e:
        raise click.ClickException(e.message)

    click.echo(
        f"Item {item_id}: original={q['original']} available={q['available']} "
        f"in_circulation={q['in_circulation']} total={q['total']}"
    )
    for s in sizes:
        click.echo(
            f"  {s['size']:<10} orig={s['original_quantity']:<6} avail={s['available_quantity']:<6} "
            f"circ={s['in_circulation']:<6} destroyed={s['destroyed_quantity']}"
        )


@ledger_group.command('holdings')
@click.argument('promoter_id', type=int)
@with_appcontext
def promoter_holdings(promoter_id):
    try:
        entries = holdings_service.holdings_detailed(promoter_id)
    except LedgerError as e:
        raise click.ClickException(e.message)

    if not entries:
        click.echo(f"Promoter {promoter_id} holds nothing.")
        return
    for entry in entries:
        click.echo(
            f"{entry['product_code'] or '-':<12} {entry['item_name'] or '-':<30} "
            f"{entry['size'] or '-':<10} x{entry['quantity']}"
        )


@ledger_group.command('record')
@click.argument('kind', type=click.Choice(TRANSACTION_TYPES))
@click.argument('item_id', type=int)
@click.argument('item_size_id', type=int)
@click.argument('quantity', type=int)
@click.option('--employee-id', type=int, required=True, help='Acting employee')
@click.option('--promoter-id', type=int, default=None, help='Promoter (not for restock)')
@click.option('--note', default=None, help='Free-text note')
@with_appcontext
def record_movement(kind, item_id, item_size_id, quantity, employee_id, promoter_id, note):
    try:
        tx = transaction_service.record(
            kind, item_id, item_size_id, quantity, employee_id, promoter_id=promoter_id, note=note
        )
    except LedgerError as e:
        raise click.ClickException(f"{e.code}: {e.message}")
    click.echo(f"PASS Recorded {tx.transaction_type} #{tx.id} ({tx.quantity} x size {tx.item_size_id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(employees_group)
    app.cli.add_command(ledger_group)
