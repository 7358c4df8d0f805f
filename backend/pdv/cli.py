# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/pdv/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--username admin --password admin123 --full-name "Administrador"]
#   Idempotent: creates the Master role and the first master user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --username maria --password 1234 --full-name "Maria" --role Caixa
#
# Sessions:
# - python -m flask sessions cleanup
#   Delete every expired session row.
#
# Permissions:
# - python -m flask perms list [--role Caixa]
# - python -m flask perms grant Caixa sales.create
# - python -m flask perms revoke Caixa sales.create

import click
from flask.cli import with_appcontext

from .errors import PdvError
from .extensions import db
from .models import InternalRole, InternalUser
from .permissions import CATEGORY_ORDER, get_permission_groups
from .services import auth_service, permission_service, role_service, session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--username', default='admin', help='Master username')
@click.option('--password', default='admin123', help='Master password (max 8 characters)')
@click.option('--full-name', default='Administrador', help='Master full name')
@with_appcontext
def init_system(username, password, full_name):
    """
    Initialize the back-office: Master role and the first master user.

    Safe to run again; existing rows are kept.
    """
    click.echo("START Initializing PDV...")

    db.create_all()

    master = role_service.create_master_role()
    click.echo(f"PASS Master role: {master.name} (ID: {master.id})")

    existing = auth_service.get_user_by_username(username)
    if existing:
        click.echo(f"WARN  User '{existing.username}' already exists, skipping...")
    else:
        try:
            user = auth_service.create_user(
                username=username,
                password=password,
                full_name=full_name,
                role_id=master.id,
            )
        except PdvError as e:
            raise click.ClickException(f"Failed to create master user: {e.message}")
        click.echo(f"PASS Created master user: {user.username}")
        click.echo("\nSECURITY Change the master password after the first login.")

    click.echo("DONE PDV initialized.")


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

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """Internal user management commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password (max 8 characters)')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--role', 'role_name', default=None, help='Role name')
@with_appcontext
def create_user_cli(username, password, full_name, role_name):
    """Create an internal user."""
    role_id = None
    if role_name:
        role = db.session.query(InternalRole).filter(
            db.func.lower(InternalRole.name) == role_name.lower()
        ).first()
        if not role:
            raise click.ClickException(f"Role '{role_name}' not found")
        role_id = role.id

    try:
        user = auth_service.create_user(
            username=username,
            password=password,
            full_name=full_name,
            role_id=role_id,
        )
    except PdvError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.username} (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role and active status."""
    users = db.session.query(InternalUser).order_by(InternalUser.username).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<30} {'Active':<8} {'Role'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        role_str = user.role.name if user.role else "none"
        click.echo(f"{user.id:<5} {user.username:<20} {user.full_name:<30} {active_str:<8} {role_str}")

    click.echo("="*80 + "\n")


@click.group('sessions')
def sessions_group():
    """Session maintenance commands."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions():
    """Delete expired sessions."""
    count = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {count} expired session(s)")


@click.group('perms')
def perms_group():
    """Permission inspection and repair commands."""


def _find_role(role_name: str) -> InternalRole:
    role = db.session.query(InternalRole).filter(
        db.func.lower(InternalRole.name) == role_name.lower()
    ).first()
    if not role:
        raise click.ClickException(f"Role '{role_name}' not found")
    return role


@perms_group.command('list')
@click.option('--role', 'role_name', default=None, help='Show the stored flags for a role')
@with_appcontext
def list_permissions(role_name):
    """List the permission catalog, optionally with a role's flags."""
    flags = None
    if role_name:
        role = _find_role(role_name)
        if role.is_master:
            click.echo(f"{role.name} is the master role: every permission is granted.")
            return
        flags = permission_service.resolve_permissions(role.id)

    groups = get_permission_groups()
    for category in CATEGORY_ORDER:
        click.echo(f"\n{category}")
        for perm in groups.get(category, []):
            if flags is None:
                click.echo(f"  {perm['key']:<24} {perm['label']}")
            else:
                mark = "PASS" if flags.get(perm["key"]) else "----"
                click.echo(f"  {mark} {perm['key']:<24} {perm['label']}")
    click.echo("")


def _set_flag(role_name: str, key: str, allowed: bool) -> None:
    role = _find_role(role_name)
    try:
        permission_service.set_permissions(role.id, {key: allowed})
    except PdvError as e:
        raise click.ClickException(e.message)


@perms_group.command('grant')
@click.argument('role_name')
@click.argument('permission_key')
@with_appcontext
def grant_permission(role_name, permission_key):
    """Grant a permission to a role."""
    _set_flag(role_name, permission_key, True)
    click.echo(f"PASS Granted {permission_key} to {role_name}")


@perms_group.command('revoke')
@click.argument('role_name')
@click.argument('permission_key')
@with_appcontext
def revoke_permission(role_name, permission_key):
    """Revoke a permission from a role."""
    _set_flag(role_name, permission_key, False)
    click.echo(f"PASS Revoked {permission_key} from {role_name}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(perms_group)
