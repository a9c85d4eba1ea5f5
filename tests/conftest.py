"""
Shared fixtures: an in-memory stand-in for the Motor database handle, a token
service with a fixed secret, and a TestClient wired to both.
"""
import copy
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from core.auth import get_password_hash
from core.tokens import TokenService, get_token_service
from database import get_db


# ─── In-memory collections ────────────────────────────────────

def _matches(doc, query):
    return all(doc.get(k) == v for k, v in (query or {}).items())


def _project(doc, projection):
    doc = copy.deepcopy(doc)
    if not projection:
        return doc
    included = [k for k, v in projection.items() if v and k != "_id"]
    if included:
        return {k: doc[k] for k in included if k in doc}
    for k, v in projection.items():
        if not v:
            doc.pop(k, None)
    return doc


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs = sorted(self._docs, key=lambda d: d.get(key) or "", reverse=direction < 0)
        return self

    def skip(self, n):
        self._docs = self._docs[n:]
        return self

    def limit(self, n):
        self._docs = self._docs[:n]
        return self

    async def to_list(self, length=None):
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    def __init__(self):
        self.docs = []

    async def find_one(self, query=None, projection=None):
        for doc in self.docs:
            if _matches(doc, query):
                return _project(doc, projection)
        return None

    def find(self, query=None, projection=None):
        return FakeCursor([_project(d, projection) for d in self.docs if _matches(d, query)])

    async def insert_one(self, doc):
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc.get("id"))

    async def insert_many(self, docs):
        for doc in docs:
            self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_ids=[d.get("id") for d in docs])

    async def _update(self, query, update, many, upsert=False):
        matched = 0
        for doc in self.docs:
            if _matches(doc, query):
                matched += 1
                doc.update(copy.deepcopy(update.get("$set", {})))
                if not many:
                    break
        upserted_id = None
        if not matched and upsert:
            doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            doc.update(copy.deepcopy(update.get("$setOnInsert", {})))
            doc.update(copy.deepcopy(update.get("$set", {})))
            self.docs.append(doc)
            upserted_id = doc.get("id")
        return SimpleNamespace(matched_count=matched, modified_count=matched, upserted_id=upserted_id)

    async def update_one(self, query, update, upsert=False):
        return await self._update(query, update, many=False, upsert=upsert)

    async def update_many(self, query, update):
        return await self._update(query, update, many=True)

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def count_documents(self, query=None):
        return sum(1 for d in self.docs if _matches(d, query))


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self._collections.setdefault(name, FakeCollection())

    def __getitem__(self, name):
        return getattr(self, name)


# ─── Fixtures ─────────────────────────────────────────────────

PASSWORD = "secret123"


@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(PASSWORD)


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def token_service():
    return TokenService("test-secret")


@pytest.fixture
def seeded_db(fake_db, password_hash):
    """One persisted admin, customer and supervisor, plus a project owned by the customer."""
    fake_db.users.docs.extend([
        {"id": "admin-1", "email": "admin@site.com", "user_name": "Admin", "role": "admin", "password": password_hash},
        {"id": "user-1", "email": "customer@site.com", "user_name": "Carol Customer", "role": "user", "password": password_hash},
    ])
    fake_db.supervisors.docs.append(
        {"id": "sup-1", "email": "sup@site.com", "full_name": "Sam Supervisor", "phone_number": "555-0100",
         "password": password_hash, "status": "Active"},
    )
    fake_db.projects.docs.append({"id": "proj-1", "name": "Lakeside Villa", "user_id": "user-1"})
    return fake_db


@pytest.fixture
def app(seeded_db, token_service):
    from server import app as fastapi_app
    fastapi_app.dependency_overrides[get_db] = lambda: seeded_db
    fastapi_app.dependency_overrides[get_token_service] = lambda: token_service
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(token_service):
    return bearer(token_service.issue_admin_token("admin@site.com"))


@pytest.fixture
def customer_headers(token_service):
    return bearer(token_service.issue_token("customer@site.com", "user"))


@pytest.fixture
def supervisor_headers(token_service):
    return bearer(token_service.issue_token("sup@site.com", "supervisor"))
