import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from observable import create_app
from observable.extensions import db
from observable.tests import support


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, CLI)")


@pytest.fixture(autouse=True)
def _reset_calls():
    support.CALLS.clear()
    yield
    support.CALLS.clear()


@pytest.fixture()
def app():
    """
    Create a per-test app with a fresh in-memory database.

    init_app also resets the observer registry, so registrations never leak
    between tests.
    """
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    try:
        yield app
    finally:
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture()
def repo(app):
    return app.extensions["observable"]


@pytest.fixture()
def runner(app):
    return app.test_cli_runner()
