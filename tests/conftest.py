"""
Shared test fixtures for the ScholarQuest backend.
Fakes for the session provider, router, Supabase client and emailer.
Zero network calls.
"""
import time
from types import SimpleNamespace

import jwt
import pytest

from scholarquest.config import config
from scholarquest.session_gate import Session
from scholarquest.services.email_service import ScholarQuestEmailer, EmailDeliveryError

JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"
WEBHOOK_SECRET = "test-webhook-secret"


# =============================================================================
# SESSION GATE FAKES
# =============================================================================

class FakeSubscription:
    def __init__(self):
        self.unsubscribed = False

    def unsubscribe(self):
        self.unsubscribed = True


class FakeSessionProvider:
    """Provider returning a fixed session (or raising) with a manual event stream."""

    def __init__(self, session=None, error=None):
        self.session = session if session is not None else Session.anonymous()
        self.error = error
        self.callbacks = []
        self.subscriptions = []
        self.sign_out_calls = 0

    def get_session(self):
        if self.error is not None:
            raise self.error
        return self.session

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)
        subscription = FakeSubscription()
        self.subscriptions.append(subscription)
        return subscription

    def sign_out(self):
        self.sign_out_calls += 1

    def emit(self, event, session=None):
        for callback in list(self.callbacks):
            callback(event, session)


class FakeRouter:
    def __init__(self, pathname):
        self.pathname = pathname
        self.navigations = []

    def navigate(self, path, replace=False):
        self.navigations.append((path, replace))


def make_session(role="student", verified=True):
    return Session(user_present=True, role=role, email_verified=verified)


@pytest.fixture
def student_session():
    return make_session("student", verified=True)


# =============================================================================
# SUPABASE FAKES
# =============================================================================

class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.filters = []
        self.is_single = False
        self.columns = None
        self.pending_insert = None

    def select(self, columns):
        self.columns = columns
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def single(self):
        self.is_single = True
        return self

    def insert(self, rows):
        self.pending_insert = rows
        return self

    def execute(self):
        if self.table_name in self.db.failing_tables:
            raise Exception(f"relation {self.table_name} unavailable")
        if self.pending_insert is not None:
            self.db.inserted.setdefault(self.table_name, []).extend(self.pending_insert)
            return SimpleNamespace(data=self.pending_insert)
        rows = [r for r in self.db.tables.get(self.table_name, [])
                if all(r.get(c) == v for c, v in self.filters)]
        if self.is_single:
            if len(rows) != 1:
                raise Exception("JSON object requested, multiple (or no) rows returned")
            return SimpleNamespace(data=rows[0])
        return SimpleNamespace(data=rows)


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        result = self.db.rpc_results.get(self.name)
        if isinstance(result, Exception):
            raise result
        return SimpleNamespace(data=result)


class FakeSupabase:
    def __init__(self, tables=None, failing_tables=(), rpc_results=None):
        self.tables = tables or {}
        self.failing_tables = set(failing_tables)
        self.inserted = {}
        self.rpc_results = rpc_results or {}
        self.rpc_calls = []

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        return FakeRpc(self, name, params)


@pytest.fixture
def class_db():
    """A class with two students who have email and one who does not."""
    return FakeSupabase(tables={
        "assignments": [{
            "id": "asg-1",
            "title": "Fractions Quest",
            "description": "Add and subtract fractions",
            "subject": "Math",
            "due_at": "2025-01-06T23:59:00+00:00",
            "xp_reward": 50,
            "coin_reward": 10,
        }],
        "classes": [{"id": "cls-1", "name": "Period 2 Math", "teacher_id": "tch-1"}],
        "profiles": [{"id": "tch-1", "full_name": "Ms. Rivera"}],
        "student_classes": [
            {"class_id": "cls-1", "student_id": "stu-1",
             "profiles": {"email": "alice@example.com", "full_name": "Alice Johnson"}},
            {"class_id": "cls-1", "student_id": "stu-2",
             "profiles": {"email": "ben@example.com", "full_name": "Ben Ortiz"}},
            {"class_id": "cls-1", "student_id": "stu-3",
             "profiles": {"email": None, "full_name": "Cara Lee"}},
        ],
    })


class FakeAuthAdmin:
    def __init__(self):
        self.signed_out_tokens = []

    def sign_out(self, token):
        self.signed_out_tokens.append(token)


class FakeAuthClient:
    """
    Stand-in for a Supabase client, keyed by access token.
    Like the real client, auth calls go through `client.auth` and
    `client.auth.admin`.
    """

    def __init__(self, users=None, error=None):
        self.users = users or {}
        self.error = error
        self.admin = FakeAuthAdmin()
        self.auth = self

    def get_user(self, token):
        if self.error is not None:
            raise self.error
        user = self.users.get(token)
        return SimpleNamespace(user=user) if user is not None else None


def make_user(role=None, verified=True):
    metadata = {"role": role} if role is not None else {}
    return SimpleNamespace(
        id="user-1",
        email="user@example.com",
        email_confirmed_at="2025-01-01T00:00:00Z" if verified else None,
        user_metadata=metadata,
    )


# =============================================================================
# EMAIL FAKES
# =============================================================================

class FakeEmailer(ScholarQuestEmailer):
    """Real message building, recorded delivery."""

    def __init__(self, fail=False):
        super().__init__(api_key="re_test", from_email="ScholarQuest <no-reply@scholar-quest.com>")
        self.fail = fail
        self.sent = []

    def send_batch(self, messages):
        if self.fail:
            raise EmailDeliveryError("Resend batch failed: 422")
        self.sent.extend(messages)
        return len(messages)


@pytest.fixture
def emailer():
    return FakeEmailer()


# =============================================================================
# FLASK APP
# =============================================================================

@pytest.fixture(autouse=True)
def _reset_diagram_cache():
    from scholarquest.services.diagram_cache import reset_diagram_cache
    reset_diagram_cache(max_entries=16)
    yield


@pytest.fixture
def app(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "supabase_jwt_secret", JWT_SECRET)
    monkeypatch.setattr(config, "notify_webhook_secret", WEBHOOK_SECRET)
    (tmp_path / "index.html").write_text("<html>ScholarQuest</html>")
    from scholarquest.app import create_app
    flask_app = create_app(static_folder=tmp_path)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def make_token(role="student", verified=True, expired=False, secret=JWT_SECRET):
    now = int(time.time())
    payload = {
        "sub": "user-1",
        "email": "user@example.com",
        "aud": "authenticated",
        "iat": now,
        "exp": now - 60 if expired else now + 3600,
        "user_metadata": {"role": role, "email_verified": verified},
    }
    if verified is None:
        del payload["user_metadata"]["email_verified"]
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer " + make_token()}


@pytest.fixture
def fake_auth_client(monkeypatch):
    """Patch the page gate's Supabase client with a token-keyed fake."""
    fake = FakeAuthClient()
    import scholarquest.session_providers as sp
    monkeypatch.setattr(sp, "get_supabase", lambda: fake)
    return fake
