"""Shared extensions for the observable application."""

from flask_sqlalchemy import SQLAlchemy

from observable.repo import ObservableRepo

# Core persistence and the notifying repository built on it
db = SQLAlchemy(session_options={"expire_on_commit": False})
observable = ObservableRepo()


def init_extensions(app) -> None:
    """Initialize all extensions with the Flask app."""
    db.init_app(app)
    observable.init_app(app)
