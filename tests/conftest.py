"""Shared fixtures: an in-memory PocketBase stand-in and wired-up services."""

import itertools
import re
import sys
import threading
from pathlib import Path

import pytest

# Flat top-level packages live at the repo root
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import Settings
from core.exceptions import PBError
from services.api import TaskboardApi
from controller.session import SessionState


_CLAUSE = re.compile(r'^\s*(\w+)\s*(=|~)\s*(.+?)\s*$')


def _literal(raw):
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw.startswith('"') and raw.endswith('"'):
        return raw[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    try:
        return int(raw)
    except ValueError:
        return float(raw)


def _matches(record, filter_expr):
    if not filter_expr:
        return True
    for clause in filter_expr.split(" && "):
        m = _CLAUSE.match(clause)
        assert m, f"unsupported filter clause: {clause!r}"
        field, op, raw = m.groups()
        value = _literal(raw)
        actual = record.get(field)
        if op == "=":
            if actual != value:
                return False
        else:
            haystack = actual if isinstance(actual, list) else [actual]
            if not any(str(value).lower() in str(h).lower() for h in haystack if h is not None):
                return False
    return True


class FakeClient:
    """Implements the PocketBaseClient surface over dicts.

    ``fail(method, collection, ids=None)`` makes matching calls raise PBError;
    ``calls`` records every mutating call in order.
    """

    def __init__(self):
        self.collections = {}
        self.accounts = {}      # email -> account record (with password)
        self.token = ""
        self.user_id = ""
        self.record = None
        self.calls = []
        self._failures = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    # ---- test helpers ----
    def fail(self, method, collection=None, ids=None, status=500):
        self._failures.append((method, collection, set(ids) if ids else None, status))

    def clear_failures(self):
        self._failures = []

    def seed(self, collection, **record):
        record.setdefault("id", f"rec{next(self._ids)}")
        self.collections.setdefault(collection, {})[record["id"]] = dict(record)
        return record["id"]

    def records(self, collection):
        return list(self.collections.get(collection, {}).values())

    def add_account(self, email, password, name=""):
        account_id = f"usr{next(self._ids)}"
        self.accounts[email] = {"id": account_id, "email": email, "name": name, "password": password}
        return account_id

    def _check(self, method, collection=None, record_id=None):
        for m, c, ids, status in self._failures:
            if m == method and (c is None or c == collection) and (ids is None or record_id in ids):
                raise PBError(f"{method} {collection} failed: {status}", status=status)

    def _public(self, account):
        return {k: v for k, v in account.items() if k != "password"}

    def _authenticate(self, account):
        self.token = f"token-{account['id']}"
        self.user_id = account["id"]
        self.record = self._public(account)
        return self.record

    @property
    def is_authenticated(self):
        return bool(self.token)

    # ---- auth ----
    def create_account(self, email, password, name):
        self._check("create_account")
        if email in self.accounts:
            raise PBError("Create account failed: 400", status=400)
        self.add_account(email, password, name)
        return self._public(self.accounts[email])

    def login(self, identity, password):
        self._check("login")
        account = self.accounts.get(identity)
        if account is None or account["password"] != password:
            raise PBError("Login failed: 400", status=400)
        return self._authenticate(account)

    def logout(self):
        self._check("logout")
        self.token = ""
        self.user_id = ""
        self.record = None

    def auth_refresh(self):
        if not self.token:
            raise PBError("No active session", status=401)
        self._check("auth_refresh")
        return dict(self.record)

    def request_verification(self, email):
        self._check("request_verification")
        self.calls.append(("request_verification", None, email))

    def request_otp(self, email):
        self._check("request_otp")
        self.calls.append(("request_otp", None, email))
        return f"otp-{email}"

    def auth_with_otp(self, otp_id, code):
        self._check("auth_with_otp")
        email = otp_id[len("otp-"):]
        if email not in self.accounts or code != "123456":
            raise PBError("OTP login failed: 400", status=400)
        return self._authenticate(self.accounts[email])

    # ---- records ----
    def list_records(self, collection, *, filter=None, sort=None, per_page=200):
        self._check("list", collection)
        items = [dict(r) for r in self.records(collection) if _matches(r, filter)]
        if sort:
            key = sort.lstrip("-")
            items.sort(key=lambda r: r.get(key) or "", reverse=sort.startswith("-"))
        return items

    def get_record(self, collection, record_id):
        self._check("get", collection, record_id)
        try:
            return dict(self.collections[collection][record_id])
        except KeyError:
            raise PBError(f"Get {collection} failed: 404", status=404)

    def create_record(self, collection, payload):
        self._check("create", collection)
        with self._lock:
            record = dict(payload)
            record.setdefault("id", f"rec{next(self._ids)}")
            self.collections.setdefault(collection, {})[record["id"]] = record
            self.calls.append(("create", collection, record["id"]))
        return dict(record)

    def update_record(self, collection, record_id, **fields):
        self._check("update", collection, record_id)
        with self._lock:
            if record_id not in self.collections.get(collection, {}):
                raise PBError(f"Update {collection} failed: 404", status=404)
            self.collections[collection][record_id].update(fields)
            self.calls.append(("update", collection, record_id))
            return dict(self.collections[collection][record_id])

    def delete_record(self, collection, record_id):
        self._check("delete", collection, record_id)
        with self._lock:
            if record_id not in self.collections.get(collection, {}):
                raise PBError(f"Delete {collection} failed: 404", status=404)
            del self.collections[collection][record_id]
            self.calls.append(("delete", collection, record_id))


class Notices:
    """Collects (level, message) pairs in place of the toast bar."""

    def __init__(self):
        self.items = []

    def __call__(self, level, message):
        self.items.append((level, message))

    def of(self, level):
        return [m for lvl, m in self.items if lvl == level]


class Capture:
    """A ``then`` callback that remembers every call's arguments."""

    def __init__(self):
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args[0] if len(args) == 1 else args)

    @property
    def value(self):
        assert len(self.calls) == 1, f"expected one completion, got {self.calls!r}"
        return self.calls[0]


class DeferredRunner:
    """Queues work until ``run_all``, exposing the state between submit and completion."""

    def __init__(self):
        self.queue = []

    def submit(self, work, done):
        self.queue.append((work, done))

    def run_all(self):
        while self.queue:
            work, done = self.queue.pop(0)
            try:
                result = work()
            except PBError as e:
                done(None, e)
            else:
                done(result, None)


@pytest.fixture
def done():
    return Capture()


@pytest.fixture
def deferred():
    return DeferredRunner()


@pytest.fixture
def fake():
    return FakeClient()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        endpoint="http://pb.test",
        project_id="taskboard",
        database_id="main",
        projects_collection="projects",
        tasks_collection="tasks",
        users_collection="members",
        notifications_collection="notifications",
        session_file=str(tmp_path / "session.json"),
    )


@pytest.fixture
def api(fake, settings):
    return TaskboardApi(fake, settings)


@pytest.fixture
def notices():
    return Notices()


@pytest.fixture
def session(api, notices):
    return SessionState(api, notify=notices)


@pytest.fixture
def alice(fake):
    """A signed-in account that also appears in the user directory."""
    uid = fake.add_account("alice@example.com", "secret", "Alice Doe")
    fake.seed("members", id=uid, name="Alice Doe", email="alice@example.com")
    fake.login("alice@example.com", "secret")
    return uid


@pytest.fixture
def bob(fake):
    uid = fake.add_account("bob@example.com", "hunter2", "Bob Ray")
    fake.seed("members", id=uid, name="Bob Ray", email="bob@example.com")
    return uid
