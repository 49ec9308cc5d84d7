"""Shared fixtures: in-memory SQLite, recorded side effects, seeded tenants."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hireos.config.database import Base, get_db
from hireos.context import AppContext, get_app_context
from hireos.main import app
from hireos.models import Account, AccountMember, Job, User
from hireos.services.crm_sync import CRMSync
from hireos.services.resume_pipeline import ResumeAnalyzer
from hireos.services.token import create_token


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingEmail:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_email(self, to, subject, html_body, reply_to=None, cc=None):
        if self.fail:
            raise RuntimeError("SES unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html_body, "reply_to": reply_to})
        return f"msg-{len(self.sent)}"


class RecordingSlack:
    def __init__(self):
        self.messages = []

    async def post_message(self, webhook_url, text):
        self.messages.append({"webhook_url": webhook_url, "text": text})


class RecordingCalendar:
    def __init__(self):
        self.events = []

    async def create_event(self, credentials, summary, start, attendee_email, description="", duration_minutes=30):
        self.events.append({"summary": summary, "start": start, "attendee": attendee_email})
        return f"evt-{len(self.events)}"


class RecordingWorkflow:
    def __init__(self):
        self.transitions = []

    async def candidate_status_changed(self, account_id, candidate_id, previous_status, new_status, actor_user_id=None):
        self.transitions.append((candidate_id, previous_status, new_status))
        return {"skipped": True}


@pytest.fixture
def ctx():
    return AppContext(
        email=RecordingEmail(),
        slack=RecordingSlack(),
        crm=CRMSync(),
        calendar=RecordingCalendar(),
        resume=ResumeAnalyzer(),
        workflow=RecordingWorkflow(),
        session_factory=TestingSessionLocal,
    )


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seed(db):
    """Two accounts: Acme (admin with calendar link, manager without) and Globex."""
    acme = Account(name="Acme")
    globex = Account(name="Globex")
    admin = User(
        username="ada",
        full_name="Ada Admin",
        email="ada@acme.io",
        calendar_link="https://calendly.com/ada/30min",
        calendar_provider="calendly",
    )
    manager = User(username="max", full_name="Max Manager", email="max@acme.io")
    outsider = User(
        username="olga",
        full_name="Olga Globex",
        email="olga@globex.io",
        calendar_link="https://cal.com/olga",
    )
    db.add_all([acme, globex, admin, manager, outsider])
    db.flush()

    db.add_all([
        AccountMember(account_id=acme.id, user_id=admin.id, role="admin"),
        AccountMember(account_id=acme.id, user_id=manager.id, role="hiringManager"),
        AccountMember(account_id=globex.id, user_id=outsider.id, role="admin"),
    ])
    job = Job(
        account_id=acme.id,
        title="Backend Engineer",
        type="Full-time",
        status="active",
        hi_people_link="https://app.hipeople.io/assess/backend",
    )
    globex_job = Job(account_id=globex.id, title="Backend Engineer", status="active")
    db.add_all([job, globex_job])
    db.commit()

    return {
        "acme": acme.id,
        "globex": globex.id,
        "admin": admin.id,
        "manager": manager.id,
        "outsider": outsider.id,
        "job": job.id,
        "globex_job": globex_job.id,
    }


@pytest.fixture
def client(db, ctx):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_app_context] = lambda: ctx
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_token({'sub': user_id})}"}


@pytest.fixture
def admin_headers(seed):
    return auth_headers(seed["admin"])


@pytest.fixture
def manager_headers(seed):
    return auth_headers(seed["manager"])


@pytest.fixture
def outsider_headers(seed):
    return auth_headers(seed["outsider"])


@pytest.fixture
def make_candidate(client, admin_headers, seed):
    def _make(name="Jane Doe", email="jane@acme-mail.com", headers=None, **extra):
        body = {"name": name, "email": email, "jobId": seed["job"], **extra}
        response = client.post("/api/candidates", json=body, headers=headers or admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
