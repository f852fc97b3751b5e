"""Pytest fixtures for Report Buddy tests."""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["FIREBASE_PROJECT_ID"] = "test-project"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["STRIPE_PRICE_ID"] = "price_basic"
os.environ["STRIPE_PRO_PRICE_ID"] = "price_pro"

from datetime import datetime, timedelta

import jwt
import pytest
from fastapi.testclient import TestClient

from report_buddy.core.identity import VerifiedIdentity, identity_verifier
from report_buddy.db.database import SessionLocal, drop_db, init_db
from report_buddy.db.models import Report, ReportType, User
from report_buddy.main import app
from report_buddy.services.bedrock_client import bedrock_client


class FakeLLM:
    """
    Stands in for BedrockClient.complete.

    Replies come from `route` rules (matched against the system prompt) first,
    then from the queue, then `default`. A queued Exception is raised.
    """

    def __init__(self):
        self.routes = []
        self.queue = []
        self.default = "OK"
        self.calls = []

    def route(self, marker, reply):
        self.routes.append((marker, reply))

    def push(self, *replies):
        self.queue.extend(replies)

    def __call__(self, system, messages, max_tokens=2000, temperature=0.3, model_id=None):
        self.calls.append({
            "system": system,
            "messages": [dict(m) for m in messages],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "model_id": model_id,
        })
        reply = None
        for marker, routed in self.routes:
            if marker in system:
                reply = routed
                break
        if reply is None:
            reply = self.queue.pop(0) if self.queue else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply


def _fake_verify(token):
    if token == "expired":
        raise jwt.ExpiredSignatureError("Signature has expired")
    if not token.startswith("token-"):
        raise jwt.InvalidTokenError("Not a test token")
    uid = token[len("token-"):]
    return VerifiedIdentity(uid=uid, email=f"{uid}@example.com", name=uid.title())


@pytest.fixture(autouse=True)
def database():
    init_db()
    yield
    drop_db()


@pytest.fixture(autouse=True)
def fake_identity(monkeypatch):
    monkeypatch.setattr(identity_verifier, "verify", _fake_verify)


@pytest.fixture
def llm(monkeypatch) -> FakeLLM:
    fake = FakeLLM()
    monkeypatch.setattr(bedrock_client, "complete", fake)
    return fake


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth(uid="alice"):
    return {"Authorization": f"Bearer token-{uid}"}


def signup(client, uid="alice"):
    resp = client.post("/api/auth/verify", headers=auth(uid))
    assert resp.status_code == 200, resp.text
    return resp.json()["user"]


def set_user(uid, **fields):
    session = SessionLocal()
    try:
        user = session.get(User, uid)
        for key, value in fields.items():
            setattr(user, key, value)
        session.commit()
    finally:
        session.close()


def get_user(uid):
    session = SessionLocal()
    try:
        user = session.get(User, uid)
        session.expunge(user)
        return user
    finally:
        session.close()


def expire_trial(uid="alice"):
    set_user(uid, subscription_status="trialing", trial_ends_at=datetime.utcnow() - timedelta(days=1))


def make_report(uid="alice", content="At 2200 hours I responded to a disturbance.", **fields):
    session = SessionLocal()
    try:
        report = Report(
            user_id=uid,
            report_type=fields.pop("report_type", ReportType.incident),
            title=fields.pop("title", "Disturbance"),
            generated_content=content,
            **fields,
        )
        session.add(report)
        session.commit()
        return report.id
    finally:
        session.close()
