# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/salon_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--branch-code MAIN] [--branch-name "Main Branch"]
#   Idempotent bootstrap: default branch, its stock location, owner user and settings.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system set-star-goal 120
#   Set the global monthly star goal used when an employee has none.
#
# Branch management:
# - python -m flask branches list
#   List all branches with their active stock location.
# - python -m flask branches create --code "BLR" --name "Bangalore" --timezone "Asia/Kolkata"
#   Create a branch and its default stock location.
#
# Cash drawer:
# - python -m flask cash summary --branch-id 1 [--date 2026-02-01]
#   Print the expected-cash summary for one business day.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import BillingError
from .extensions import db
from .models import Branch, InventoryLocation, User
from .services.cash_service import CashService
from .services.settings_service import DEFAULT_MONTHLY_STAR_GOAL_KEY, get_setting, set_setting


def _ensure_branch(code: str, name: str, timezone: str) -> tuple[Branch, bool]:
    branch = db.session.query(Branch).filter_by(code=code).first()
    if branch:
        return branch, False
    branch = Branch(code=code, name=name, timezone=timezone, is_active=True)
    db.session.add(branch)
    db.session.flush()
    db.session.add(
        InventoryLocation(branch_id=branch.id, name=f"{name} Store", location_type="store", is_active=True)
    )
    db.session.flush()
    return branch, True


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--branch-code', default='MAIN', help='Default branch code (bill number prefix)')
@click.option('--branch-name', default='Main Branch', help='Default branch name')
@click.option('--timezone', default='UTC', help='IANA timezone of the default branch')
@with_appcontext
def init_system(branch_code, branch_name, timezone):
    """
    Initialize the billing system.

    Creates (when missing):
    - Default branch and its stock location
    - Owner user "owner"
    - default_monthly_star_goal setting
    """
    click.echo("START Initializing salon POS...")

    branch, created = _ensure_branch(branch_code.upper(), branch_name, timezone)
    if created:
        click.echo(f"PASS Created default branch: {branch.name} (ID: {branch.id}, Code: {branch.code})")
    else:
        click.echo(f"PASS Using existing branch: {branch.name} (ID: {branch.id})")

    owner = db.session.query(User).filter_by(username="owner").first()
    if not owner:
        owner = User(username="owner", full_name="Owner", role="owner", is_active=True)
        db.session.add(owner)
        db.session.flush()
        click.echo(f"PASS Created owner user (ID: {owner.id})")
    else:
        click.echo(f"PASS Using existing owner user (ID: {owner.id})")

    if get_setting(db.session, DEFAULT_MONTHLY_STAR_GOAL_KEY) is None:
        goal = current_app.config["DEFAULT_MONTHLY_STAR_GOAL"]
        set_setting(
            db.session,
            DEFAULT_MONTHLY_STAR_GOAL_KEY,
            str(goal),
            "Monthly star goal for employees without a personal goal",
        )
        click.echo("PASS Seeded default monthly star goal")

    db.session.commit()
    click.echo("DONE Initialization complete.")


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


@system_group.command('set-star-goal')
@click.argument('goal', type=click.IntRange(min=1))
@with_appcontext
def set_star_goal(goal):
    """Set the global monthly star goal."""
    set_setting(db.session, DEFAULT_MONTHLY_STAR_GOAL_KEY, str(goal))
    db.session.commit()
    click.echo(f"PASS Monthly star goal set to {goal}")


@click.group('branches')
def branches_group():
    """Branch management commands."""


@branches_group.command('list')
@with_appcontext
def list_branches():
    """List all branches."""
    branches = db.session.query(Branch).order_by(Branch.id).all()

    if not branches:
        click.echo("No branches found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Code':<10} {'Name':<30} {'Timezone':<20} {'Active':<8} {'Location'}")
    click.echo("="*80)

    for branch in branches:
        active_str = "Yes" if branch.is_active else "No"
        location_id = branch.active_location_id or '-'
        click.echo(
            f"{branch.id:<5} {branch.code:<10} {branch.name:<30} {branch.timezone:<20} {active_str:<8} {location_id}"
        )

    click.echo("="*80 + "\n")


@branches_group.command('create')
@click.option('--code', required=True, help='Short code (unique, bill number prefix)')
@click.option('--name', required=True, help='Branch name')
@click.option('--timezone', default='UTC', help='IANA timezone')
@with_appcontext
def create_branch_cli(code, name, timezone):
    """Create a branch with a default stock location."""
    code = code.upper()
    if db.session.query(Branch).filter_by(code=code).first():
        click.echo(f"FAIL Branch with code '{code}' already exists")
        return

    branch, _ = _ensure_branch(code, name, timezone)
    db.session.commit()
    click.echo(f"PASS Created branch: {branch.name} (ID: {branch.id}, Code: {branch.code})")


@click.group('cash')
def cash_group():
    """Cash drawer commands."""


@cash_group.command('summary')
@click.option('--branch-id', type=int, required=True, help='Branch ID')
@click.option('--date', 'day', default=None, help='Business day (YYYY-MM-DD), default today')
@with_appcontext
def cash_summary_cli(branch_id, day):
    """Print the expected cash for one business day."""
    try:
        summary = CashService(db.session).get_daily_cash_summary(branch_id, day)
    except BillingError as e:
        raise click.ClickException(e.message)

    click.echo(f"\nCash summary for branch {summary.branch_id} on {summary.date}")
    click.echo("-"*50)
    click.echo(f"{'Bills':<25} {summary.bills_count:>12}")
    for mode, amount in summary.payment_breakdown.items():
        click.echo(f"{mode.capitalize() + ' payments':<25} {amount:>12.2f}")
    click.echo(f"{'Cash in':<25} {summary.cash_sources:>12.2f}")
    click.echo(f"{'Bank deposits':<25} {summary.bank_deposits:>12.2f}")
    click.echo(f"{'Cash expenses':<25} {summary.cash_expenses:>12.2f}")
    click.echo("-"*50)
    click.echo(f"{'Expected cash':<25} {summary.expected_cash:>12.2f}\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(branches_group)
    app.cli.add_command(cash_group)
