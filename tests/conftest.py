"""
Shared fixtures: an in-memory stand-in for the Motor database and
helpers for seeding users and signing requests.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import copy
import math
import operator
import re
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from civicapp.core import database
from civicapp.core.security import create_access_token
from civicapp.models.base import UserRole
from civicapp.models.user import User

_MISSING = object()

_COMPARISONS = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


def _resolve(value, parts):
    """Every value reachable along a dotted path, descending into lists"""
    if not parts:
        return [value]
    if isinstance(value, list):
        found = []
        for item in value:
            found.extend(_resolve(item, parts))
        return found or [_MISSING]
    if isinstance(value, dict) and parts[0] in value:
        return _resolve(value[parts[0]], parts[1:])
    return [_MISSING]


def _equals(candidate, expected):
    if expected is None:
        return candidate is _MISSING or candidate is None
    if isinstance(candidate, list) and not isinstance(expected, list):
        return expected in candidate
    return candidate == expected


def _within_sphere(candidate, spec):
    (lng, lat), radius = spec["$centerSphere"]
    if not isinstance(candidate, dict) or "coordinates" not in candidate:
        return False
    c_lng, c_lat = candidate["coordinates"]
    phi1, phi2 = math.radians(lat), math.radians(c_lat)
    d_phi = phi2 - phi1
    d_lambda = math.radians(c_lng - lng)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * math.asin(math.sqrt(a)) <= radius


def _matches_condition(candidates, condition):
    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        for op, arg in condition.items():
            if op == "$in":
                ok = any(_equals(c, v) for c in candidates for v in arg)
            elif op == "$ne":
                ok = not any(_equals(c, arg) for c in candidates)
            elif op == "$regex":
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                ok = any(isinstance(c, str) and re.search(arg, c, flags) for c in candidates)
            elif op == "$options":
                continue
            elif op == "$geoWithin":
                ok = any(_within_sphere(c, arg) for c in candidates)
            elif op in _COMPARISONS:
                ok = any(
                    c is not _MISSING and c is not None and _COMPARISONS[op](c, arg) for c in candidates
                )
            else:
                raise NotImplementedError(op)
            if not ok:
                return False
        return True
    return any(_equals(c, condition) for c in candidates)


def matches(doc, query):
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
            continue
        if not _matches_condition(_resolve(doc, key.split(".")), condition):
            return False
    return True


def _set_path(doc, path, value):
    parts = path.split(".")
    for part in parts[:-1]:
        doc = doc.setdefault(part, {})
    doc[parts[-1]] = value


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._skip = 0
        self._limit = 0

    def sort(self, keys, direction=None):
        if isinstance(keys, str):
            keys = [(keys, direction or 1)]
        for key, order in reversed(list(keys)):
            self._docs.sort(
                key=lambda d: (d.get(key) is not None, d.get(key) if d.get(key) is not None else 0),
                reverse=order == -1,
            )
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    def __aiter__(self):
        docs = self._docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        self._iter = iter(docs)
        return self

    async def __anext__(self):
        try:
            return copy.deepcopy(next(self._iter))
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """The slice of AsyncIOMotorCollection the repositories use"""
    def __init__(self, name):
        self.name = name
        self.documents = []
        self.indexes = []

    def _find(self, query):
        return [d for d in self.documents if matches(d, query)]

    def seed(self, doc):
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self.documents.append(doc)
        return doc["_id"]

    async def find_one(self, query):
        found = self._find(query)
        return copy.deepcopy(found[0]) if found else None

    def find(self, query=None):
        return FakeCursor(self._find(query or {}))

    async def count_documents(self, query):
        return len(self._find(query))

    async def insert_one(self, doc):
        return SimpleNamespace(inserted_id=self.seed(doc))

    async def replace_one(self, query, doc):
        for i, existing in enumerate(self.documents):
            if matches(existing, query):
                replacement = copy.deepcopy(doc)
                replacement["_id"] = existing["_id"]
                self.documents[i] = replacement
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def update_one(self, query, update):
        found = self._find(query)
        if not found:
            return SimpleNamespace(matched_count=0, modified_count=0)
        doc = found[0]
        for op, fields in update.items():
            for field, value in fields.items():
                if op == "$addToSet":
                    doc.setdefault(field, [])
                    if value not in doc[field]:
                        doc[field].append(value)
                elif op == "$pull":
                    doc[field] = [v for v in doc.get(field, []) if v != value]
                elif op == "$inc":
                    doc[field] = doc.get(field, 0) + value
                elif op == "$set":
                    _set_path(doc, field, value)
                else:
                    raise NotImplementedError(op)
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getitem__(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


@pytest.fixture(autouse=True)
def fake_db(monkeypatch):
    fake = FakeDatabase()
    monkeypatch.setattr(database.db, "db", fake)
    return fake


@pytest.fixture(autouse=True)
def quiet_bus(monkeypatch):
    """Each test gets an empty notification bus"""
    from civicapp.services import notifications
    monkeypatch.setattr(notifications.notification_bus, "_subscribers", set())
    return notifications.notification_bus


@pytest.fixture
def client():
    from civicapp.main import app
    return TestClient(app)


@pytest.fixture
def make_user(fake_db):
    """Seed a user and return (user_id, auth headers)"""
    def _make(name="Test User", role=UserRole.CITIZEN, is_active=True):
        user = User(
            name=name,
            email=f"{name.lower().replace(' ', '.')}.{ObjectId()}@example.com",
            role=role,
            is_active=is_active,
        )
        user_id = str(fake_db["users"].seed(user.to_mongo()))
        token = create_access_token({"sub": user_id})
        return user_id, {"Authorization": f"Bearer {token}"}
    return _make
