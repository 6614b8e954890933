import json
from datetime import timedelta

import azure.functions as func
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from config import Settings
from db import create_session_factory, init_db
from models import User, UserRole
from services.container import build_services, set_services
from services.storage_service import LocalFileStorage
from utils.clock import utcnow


class RecordingEmailSender:
    def __init__(self):
        self.outbox = []

    def send(self, to, subject, body, html_body=None):
        self.outbox.append((to, subject, body))


class FakeClock:
    def __init__(self):
        self.now = utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        reset_link_base="http://app.test/reset-password",
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return RecordingEmailSender()


@pytest.fixture
def services(settings, session_factory, mailer, clock):
    svc = build_services(
        settings,
        session_factory=session_factory,
        mailer=mailer,
        storage=LocalFileStorage(settings.upload_dir),
        clock=clock,
    )
    set_services(svc)
    yield svc
    set_services(None)


@pytest.fixture
def accounts(services):
    return services.accounts


def get_user(session_factory, email):
    with session_factory() as db:
        return db.query(User).filter(User.email == email).first()


@pytest.fixture
def make_user(session_factory):
    """Insert an account directly, skipping the OTP flow."""
    def _make(email="bob@x.com", password="pw", name="Bob", role=UserRole.USER, verified=True):
        with session_factory() as db:
            user = User(name=name, email=email, role=role, is_verified=verified, profile_pic="")
            user.set_password(password)
            db.add(user)
            db.commit()
            return user
    return _make


def make_request(method, url, body=None, token=None, headers=None, route_params=None):
    hdrs = {"Content-Type": "application/json"}
    if token:
        hdrs["Authorization"] = f"Bearer {token}"
    hdrs.update(headers or {})
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode()
    return func.HttpRequest(
        method=method,
        url=url,
        headers=hdrs,
        params={},
        route_params=route_params or {},
        body=body or b"",
    )


def call(fn, req):
    """Invoke a blueprint function the way the Functions host does."""
    return fn.build().get_user_function()(req)


def body_of(resp):
    return json.loads(resp.get_body())
