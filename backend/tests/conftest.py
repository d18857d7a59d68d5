"""
Pytest fixtures for weighbridge backend tests.

Provides an app bound to an in-memory SQLite database, a per-test clean
database, a test client and small factories for users, sessions, customers
and tickets.
"""

import httpx
import pytest

from weighbridge import create_app
from weighbridge.extensions import db
from weighbridge.models import Customer
from weighbridge.services import auth_service, session_service
from weighbridge.services.identity_service import IdentityClient

TEST_DEVICE_ID = "test-device-0001"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    env_file = tmp_path_factory.mktemp("env") / ".env"
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DEVICE_ID': TEST_DEVICE_ID,
        'DEVICE_ENV_FILE': str(env_file),
        'IDENTITY_SERVICE_URL': 'https://identity.test',
        'IDENTITY_SERVICE_KEY': 'service-key',
        'LOG_LEVEL': 'WARNING',
        'LOG_DIR': '',
        'FRONTEND_BUILD_DIR': '',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Clear all rows before each test, keep the schema."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def admin_user(db_session):
    return auth_service.create_user("admin", "admin-pass", name="Admin User", role="admin")


@pytest.fixture(scope='function')
def operator_user(db_session):
    return auth_service.create_user("operator", "operator-pass", name="Scale Operator")


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    session = session_service.create_session(admin_user)
    return auth_headers(session.id)


@pytest.fixture(scope='function')
def customer(db_session):
    c = Customer(name="ABC Logistics", company="ABC Inc.", email="contact@abclogistics.com")
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def identity_responses(app, monkeypatch):
    """
    Route identity service calls to a MockTransport.

    Tests append (status_code, json_body) tuples, or an httpx exception to
    simulate an unreachable service. Sent requests are kept in .requests.
    """
    responses = ScriptedResponses()
    client = IdentityClient(
        app.config['IDENTITY_SERVICE_URL'],
        app.config['IDENTITY_SERVICE_KEY'],
        transport=httpx.MockTransport(responses.handle),
    )
    monkeypatch.setitem(app.extensions, "identity_client", client)
    return responses


class ScriptedResponses(list):
    """Queue of canned answers for httpx.MockTransport."""

    def __init__(self):
        super().__init__()
        self.requests = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        status, body = outcome
        return httpx.Response(status, json=body)


@pytest.fixture(scope='function')
def operator_headers(operator_user):
    session = session_service.create_session(operator_user)
    return auth_headers(session.id)


@pytest.fixture(scope='function')
def make_ticket(client):
    """POST a ticket through the API and return the created JSON."""
    def _make(**payload):
        payload.setdefault("material", "Gravel")
        resp = client.post("/api/weigh-tickets", json=payload)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _make


def auth_headers(session_id: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {session_id}'}
