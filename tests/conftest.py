"""
Shared pytest fixtures for the BCP Wizard Backend test suite.

Provides:
    - app: Flask application (session-scoped, file-backed SQLite)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test app context + table recreate (autouse)
    - client: Flask test client (function-scoped)
    - plan: Pre-created ContinuityPlan
"""

import pytest

from bcp import create_app
from bcp.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app(tmp_path_factory):
    """Create the Flask application once per test session.

    The database is a real file so report worker threads, each with its
    own connection, read the rows the test just committed.
    """
    from bcp.config import TestingConfig
    db_file = tmp_path_factory.mktemp("db") / "bcp_test.db"
    TestingConfig.SQLALCHEMY_DATABASE_URI = f"sqlite:///{db_file}"
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        _db.create_all()
        yield
        _db.session.rollback()
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def plan():
    """A stored plan with no child rows."""
    from bcp.services import plan_store
    return plan_store.insert_plan({
        "name": "Treasury BCP",
        "business_unit": "Finance",
        "service_name": "Cash Management",
    })
