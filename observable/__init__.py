"""Observable repository: application factory and bootstrap."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import sqlalchemy as sa
from flask import Flask

from observable.config import config_by_name
from observable.extensions import db, init_extensions, observable


def _enable_sqlite_savepoints(engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINTs behave under pysqlite.

    The sqlite3 driver otherwise starts and ends transactions on its own,
    which breaks rolling back to a savepoint.
    """

    @sa.event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @sa.event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_app(config_name: Optional[str] = None, config_overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """Create and configure the application hosting the observable repository."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(
        __name__,
        instance_path=str(instance_root),
        instance_relative_config=True,
    )
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)
    if config_overrides:
        app.config.update(config_overrides)

    logging.getLogger("observable").setLevel(app.config.get("OBSERVABLE_LOG_LEVEL", "INFO"))

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    is_sqlite = db_uri.startswith("sqlite:")
    if db_uri.startswith("sqlite:///"):
        db_path = db_uri.replace("sqlite:///", "", 1)
        abs_path = Path(db_path) if Path(db_path).is_absolute() else project_root / db_path
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{abs_path}"

    init_extensions(app)

    if is_sqlite:
        with app.app_context():
            _enable_sqlite_savepoints(db.engine)

    from observable.scripts.observers import register_commands  # local import to avoid circulars

    register_commands(app)

    return app


__all__ = ["create_app", "db", "observable"]
