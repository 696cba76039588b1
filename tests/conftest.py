from __future__ import annotations

import copy
from contextlib import contextmanager
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import OperationFailure

import main as main_module
from app import config
from app.auth import get_requester_id
from app.dependencies import get_store
from app.services.recipe_store import RecipeStore


# In-memory stand-in for the slice of pymongo the store uses. Transactions
# snapshot every collection on start and restore it when the block raises.


def _matches(doc: dict, flt: dict) -> bool:
    for key, cond in flt.items():
        value = doc.get(key)
        if isinstance(cond, dict) and "$in" in cond:
            if value not in cond["$in"]:
                return False
        elif value != cond:
            return False
    return True


class FakeCollection:
    def __init__(self, db: "FakeDatabase"):
        self.db = db
        self.docs: dict[ObjectId, dict] = {}
        self.fail_on: set[str] = set()

    def _maybe_fail(self, op: str) -> None:
        if op in self.fail_on:
            raise OperationFailure(f"forced {op} failure")

    def find_one(self, flt, projection=None, session=None):
        self._maybe_fail("find_one")
        for doc in self.docs.values():
            if _matches(doc, flt):
                return copy.deepcopy(doc)
        return None

    def find(self, flt, session=None):
        self._maybe_fail("find")
        return [copy.deepcopy(d) for d in self.docs.values() if _matches(d, flt)]

    def insert_one(self, doc, session=None):
        self._maybe_fail("insert_one")
        doc.setdefault("_id", ObjectId())
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def _apply(self, flt, update):
        for doc in self.docs.values():
            if not _matches(doc, flt):
                continue
            for key, value in update.get("$set", {}).items():
                doc[key] = value
            for key, value in update.get("$push", {}).items():
                doc.setdefault(key, []).append(value)
            for key, value in update.get("$pull", {}).items():
                doc[key] = [v for v in doc.get(key, []) if v != value]
            return doc
        return None

    def update_one(self, flt, update, session=None):
        self._maybe_fail("update_one")
        if self._apply(flt, update) is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        return SimpleNamespace(matched_count=1, modified_count=1)

    def find_one_and_update(self, flt, update, return_document=None, session=None):
        # Only ReturnDocument.AFTER is used by the store
        self._maybe_fail("find_one_and_update")
        doc = self._apply(flt, update)
        return copy.deepcopy(doc) if doc is not None else None

    def delete_one(self, flt, session=None):
        self._maybe_fail("delete_one")
        for key, doc in list(self.docs.items()):
            if _matches(doc, flt):
                del self.docs[key]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    def __init__(self):
        self.recipes = FakeCollection(self)
        self.users = FakeCollection(self)

    def collections(self):
        return (self.recipes, self.users)


class FakeSession:
    def __init__(self, db: FakeDatabase):
        self.db = db

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    @contextmanager
    def start_transaction(self):
        snapshot = [copy.deepcopy(c.docs) for c in self.db.collections()]
        try:
            yield
        except BaseException:
            for coll, docs in zip(self.db.collections(), snapshot):
                coll.docs = docs
            raise


class FakeMongoClient:
    def __init__(self):
        self.database = FakeDatabase()

    def __getitem__(self, name):
        return self.database

    def start_session(self):
        return FakeSession(self.database)


@pytest.fixture
def mongo() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def db(mongo):
    return mongo.database


@pytest.fixture
def store(mongo) -> RecipeStore:
    return RecipeStore(mongo, "recipes_test")


@pytest.fixture
def make_user(db):
    def _make(name: str = "Max") -> str:
        res = db.users.insert_one({"name": name, "recipes": []})
        return str(res.inserted_id)

    return _make


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "a.png"
    path.write_bytes(b"\x89PNG")
    return str(path)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(target))
    return target


@pytest.fixture
def as_user():
    """Set the authenticated caller for subsequent requests."""
    app = main_module.app

    def _as(user_id: str) -> None:
        app.dependency_overrides[get_requester_id] = lambda: user_id

    yield _as
    app.dependency_overrides.pop(get_requester_id, None)


@pytest.fixture
def client(store, upload_dir):
    app = main_module.app
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
