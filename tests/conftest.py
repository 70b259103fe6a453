"""Shared fixtures: fake GitHub transport, stub generator, fake Supabase."""

import itertools
import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import pytest

from ghfolio.core.config import Settings

API = "https://api.github.com"


def repo(name, description, owner="octocat"):
    return {
        "name": name,
        "full_name": f"{owner}/{name}",
        "description": description,
        "html_url": f"https://github.com/{owner}/{name}",
    }


class FakeGitHub:
    """Serves `/user/repos` and `/repos/{full_name}/readme` from memory."""

    def __init__(self, repos=None, readmes=None, list_status=200, list_body=None):
        self.repos = repos or []
        self.readmes = readmes or {}
        self.list_status = list_status
        self.list_body = list_body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/user/repos":
            if self.list_status != 200:
                return httpx.Response(self.list_status, text=self.list_body or "forbidden")
            if self.list_body is not None:
                return httpx.Response(200, text=self.list_body)
            return httpx.Response(200, json=self.repos)
        if path.startswith("/repos/") and path.endswith("/readme"):
            full_name = path[len("/repos/"):-len("/readme")]
            if full_name in self.readmes:
                return httpx.Response(200, text=self.readmes[full_name])
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(404)

    def client(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self), base_url=API)


class CountingGenerator:
    """Deterministic generation service that counts its calls."""

    def __init__(self, reply=None, fail_on=()):
        self.calls = []
        self.reply = reply
        self.fail_on = set(fail_on)

    async def agenerate(self, readme):
        self.calls.append(readme)
        if readme in self.fail_on:
            raise RuntimeError("generation service unavailable")
        if self.reply is not None:
            return self.reply
        first_line = readme.splitlines()[0] if readme else ""
        return json.dumps({
            "text": f"Summary of: {first_line}",
            "deployedUrl": None,
            "techStack": ["Python", "httpx"],
        })


@pytest.fixture
def settings():
    return Settings(github_token="gh-test", openai_api_key="sk-test", admin_emails=("admin@example.com",))


@pytest.fixture
def generator():
    return CountingGenerator()


# ---- fake Supabase -------------------------------------------------------------

class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.limit_n = None
        self.on_conflict = None

    def select(self, _cols="*"):
        self.op = "select"
        return self

    def insert(self, row):
        self.op, self.payload = "insert", row
        return self

    def update(self, values):
        self.op, self.payload = "update", values
        return self

    def upsert(self, row, on_conflict=None):
        self.op, self.payload, self.on_conflict = "upsert", row, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, col, value):
        self.filters.append(lambda r: r.get(col) == value)
        return self

    def in_(self, col, values):
        values = list(values)
        self.filters.append(lambda r: r.get(col) in values)
        return self

    def order(self, col, desc=False):
        self.order_by = (col, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _match(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.db.calls.append((self.table, self.op))
        if self.db.fail_with is not None:
            raise self.db.fail_with
        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            row = dict(self.payload)
            row.setdefault("id", str(next(self.db.ids)))
            row.setdefault("created_at", self.db.next_timestamp())
            rows.append(row)
            return SimpleNamespace(data=[row])
        if self.op == "upsert":
            key = self.on_conflict
            for existing in rows:
                if existing.get(key) == self.payload.get(key):
                    existing.update(self.payload)
                    return SimpleNamespace(data=[existing])
            rows.append(dict(self.payload))
            return SimpleNamespace(data=[rows[-1]])
        matched = [r for r in rows if self._match(r)]
        if self.op == "update":
            for r in matched:
                r.update(self.payload)
            return SimpleNamespace(data=matched)
        if self.op == "delete":
            self.db.tables[self.table] = [r for r in rows if not self._match(r)]
            return SimpleNamespace(data=matched)
        if self.order_by:
            col, desc = self.order_by
            matched = sorted(matched, key=lambda r: r[col], reverse=desc)
        if self.limit_n is not None:
            matched = matched[: self.limit_n]
        return SimpleNamespace(data=[dict(r) for r in matched])


class FakeAuth:
    def __init__(self, users):
        self.users = users
        self.otp_requests = []

    def get_user(self, jwt=None):
        if jwt not in self.users:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(email=self.users[jwt]))

    def sign_in_with_otp(self, credentials):
        self.otp_requests.append(credentials)
        return SimpleNamespace(user=None, session=None)


class FakeSupabase:
    def __init__(self, users=None):
        self.tables = {}
        self.calls = []
        self.fail_with = None
        self.ids = itertools.count(1)
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)
        self.auth = FakeAuth(users or {})

    def next_timestamp(self):
        self._clock += timedelta(minutes=1)
        return self._clock.isoformat()

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def supabase():
    return FakeSupabase(users={
        "admin-token": "Admin@Example.com",
        "visitor-token": "visitor@example.com",
        "no-email-token": None,
    })
