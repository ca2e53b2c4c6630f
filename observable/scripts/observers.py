"""CLI commands for inspecting the observer registry.

Usage:
    flask observers list Post                  # Every action, introspection order
    flask observers list Post --action insert
"""

from __future__ import annotations

from typing import Optional

import click
from flask import current_app
from flask.cli import with_appcontext

from observable.core.actions import Action


def _resolve_entity(name: str) -> Optional[type]:
    from observable.extensions import db

    for mapper in db.Model.registry.mappers:
        if mapper.class_.__name__ == name:
            return mapper.class_
    return None


@click.group("observers")
def observers_group():
    """Inspect registered observers."""


@observers_group.command("list")
@click.argument("entity")
@click.option("--action", "-a", type=click.Choice([a.value for a in Action]), default=None, help="Single action to list")
@with_appcontext
def list_observers_command(entity: str, action: str | None):
    """List observers registered for ENTITY (a model class name)."""
    entity_type = _resolve_entity(entity)
    if entity_type is None:
        raise click.ClickException(f"Unknown entity: {entity}")

    repo = current_app.extensions["observable"]
    if action is None:
        listing = repo.list_observers(entity_type)
    else:
        listing = {Action.coerce(action): repo.list_observers(entity_type, action)}

    for act, handles in listing.items():
        names = ", ".join(handle.name for handle in handles) or "-"
        click.echo(f"{act}: {names}")


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(observers_group)
