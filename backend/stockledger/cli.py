# Overview: Flask CLI command groups for database bootstrap and per-user inventory data.

# backend/stockledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create the storage table if it does not exist.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Per-user inventory data:
# - python -m flask inventory init --user alice [--no-defaults]
#   Initialize alice's scope (migrates un-scoped legacy data first).
# - python -m flask inventory export --user alice [--out alice.json]
#   Write all eight namespaces as one JSON document.
# - python -m flask inventory import --user alice alice.json
#   Overwrite the namespaces present in the file.
# - python -m flask inventory stats --user alice
#   Show stored bytes per namespace.
# - python -m flask inventory clear --user alice --yes
#   Delete every key of alice's scope.

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services.persistence_service import PersistenceGateway
from .services.key_value_store import SqlKeyValueStore
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (idempotent)."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA for every user!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask inventory init --user <id>' to seed a user.")


@click.group('inventory')
def inventory_group():
    """Per-user inventory data commands."""


def _gateway(user_id: str) -> PersistenceGateway:
    return PersistenceGateway(SqlKeyValueStore(), user_id)


@inventory_group.command('init')
@click.option('--user', 'user_id', required=True, help='User id (storage scope)')
@click.option('--defaults/--no-defaults', default=None, help='Seed the starter warehouse and product')
@with_appcontext
def init_inventory(user_id, defaults):
    """Initialize a user's scope; no-op if it is already initialized."""
    if defaults is None:
        defaults = current_app.config.get("SEED_DEFAULTS_ON_INIT", True)

    gateway = _gateway(user_id)
    if gateway.is_initialized():
        click.echo(f"PASS User {user_id} already initialized.")
        return

    if gateway.migrate_legacy():
        click.echo(f"PASS Migrated existing data into user {user_id}.")
        return

    gateway.initialize(seed_defaults=defaults)
    click.echo(f"PASS Initialized user {user_id} (defaults={'yes' if defaults else 'no'}).")


@inventory_group.command('export')
@click.option('--user', 'user_id', required=True, help='User id (storage scope)')
@click.option('--out', 'out_path', type=click.Path(dir_okay=False, writable=True), help='Output file (default stdout)')
@with_appcontext
def export_inventory(user_id, out_path):
    """Export all namespaces of a user as JSON."""
    payload = json.dumps(_gateway(user_id).export_bundle(), indent=2)
    if out_path:
        with open(out_path, "w", encoding="utf-8") as fh:
            fh.write(payload)
        click.echo(f"PASS Exported user {user_id} to {out_path}")
    else:
        click.echo(payload)


@inventory_group.command('import')
@click.option('--user', 'user_id', required=True, help='User id (storage scope)')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_inventory(user_id, path):
    """Import a JSON export into a user's scope (overwrites present namespaces)."""
    with open(path, "r", encoding="utf-8") as fh:
        try:
            bundle = json.load(fh)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"{path} is not valid JSON: {e}")

    try:
        written = _gateway(user_id).import_bundle(bundle)
    except ValidationError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Imported {len(written)} namespace(s) into user {user_id}: {', '.join(sorted(written))}")


@inventory_group.command('stats')
@click.option('--user', 'user_id', required=True, help='User id (storage scope)')
@with_appcontext
def inventory_stats(user_id):
    """Show storage usage of a user's scope."""
    stats = _gateway(user_id).storage_stats()
    click.echo(f"User {user_id}: {stats['item_count']} key(s), {stats['total_size']} bytes")
    for namespace, size in sorted(stats["breakdown"].items()):
        click.echo(f"  {namespace:<32} {size:>10}")


@inventory_group.command('clear')
@click.option('--user', 'user_id', required=True, help='User id (storage scope)')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def clear_inventory(user_id, yes):
    """DANGER: delete all data of one user."""
    if not yes:
        click.confirm(f"WARN This will DELETE ALL DATA for user {user_id}. Are you sure?", abort=True)

    _gateway(user_id).clear()
    click.echo(f"PASS Cleared user {user_id}.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(inventory_group)
