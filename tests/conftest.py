import asyncio
import copy
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from devevents.api.deps import get_bookings_service, get_events_service
from devevents.db.repository.bookings import BookingsRepository
from devevents.db.repository.events import EventsRepository
from devevents.main import app
from devevents.services.bookings import BookingsService
from devevents.services.events import EventsService
from devevents.utils.s3 import StoredAsset

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def matches(document, query):
    for key, condition in query.items():
        value = document.get(key)
        if isinstance(condition, dict) and any(op.startswith("$") for op in condition):
            for op, argument in condition.items():
                if op == "$ne":
                    if value == argument:
                        return False
                elif op == "$in":
                    candidates = value if isinstance(value, list) else [value]
                    if not any(candidate in argument for candidate in candidates):
                        return False
                else:
                    raise NotImplementedError(op)
        elif value != condition:
            return False
    return True


class FakeCursor:
    def __init__(self, documents):
        self._documents = documents

    def sort(self, keys):
        for field, direction in reversed(keys):
            self._documents.sort(key=lambda doc: doc.get(field), reverse=direction < 0)
        return self

    def __aiter__(self):
        self._iter = iter(self._documents)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """
    In-memory stand-in for the subset of a Motor collection the repositories use.

    Every operation yields to the event loop once, like a network round-trip,
    so concurrent tasks interleave. ``unique`` lists field tuples enforced like
    unique indexes. ``fail_next_update``/``fail_next_insert`` raise once.
    """

    def __init__(self, unique=()):
        self.documents = []
        self.unique = [tuple(fields) for fields in unique]
        self.update_calls = 0
        self.insert_calls = 0
        self.fail_next_update = None
        self.fail_next_insert = None

    def seed(self, document):
        self.documents.append(copy.deepcopy(document))
        return document

    def get(self, document_id):
        for document in self.documents:
            if document["_id"] == document_id:
                return copy.deepcopy(document)
        return None

    def _check_unique(self, candidate):
        for fields in self.unique:
            for document in self.documents:
                if document["_id"] == candidate["_id"]:
                    continue
                if all(document.get(field) == candidate.get(field) for field in fields):
                    raise DuplicateKeyError(f"E11000 duplicate key error dup key: {fields}")

    async def find_one(self, query):
        await asyncio.sleep(0)
        for document in self.documents:
            if matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query):
        return FakeCursor([copy.deepcopy(doc) for doc in self.documents if matches(doc, query)])

    async def count_documents(self, query, limit=0):
        await asyncio.sleep(0)
        count = sum(1 for doc in self.documents if matches(doc, query))
        return min(count, limit) if limit else count

    async def insert_one(self, document):
        await asyncio.sleep(0)
        self.insert_calls += 1
        if self.fail_next_insert is not None:
            error, self.fail_next_insert = self.fail_next_insert, None
            raise error
        if any(doc["_id"] == document["_id"] for doc in self.documents):
            raise DuplicateKeyError("E11000 duplicate key error dup key: _id")
        self._check_unique(document)
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        await asyncio.sleep(0)
        self.update_calls += 1
        if self.fail_next_update is not None:
            error, self.fail_next_update = self.fail_next_update, None
            raise error
        for index, document in enumerate(self.documents):
            if not matches(document, query):
                continue
            before = copy.deepcopy(document)
            after = copy.deepcopy(document)
            after.update(update.get("$set", {}))
            for field, amount in update.get("$inc", {}).items():
                after[field] = after.get(field, 0) + amount
            self._check_unique(after)
            self.documents[index] = after
            return copy.deepcopy(after if return_document == ReturnDocument.AFTER else before)
        return None

    async def create_index(self, keys, **kwargs):
        return "_".join(field for field, _ in keys)


class FakeMediaStore:
    """Records uploads and deletes; set ``upload_error``/``delete_error`` to make calls fail."""

    def __init__(self):
        self.assets = {}
        self.uploads = []
        self.delete_calls = []
        self.upload_error = None
        self.delete_error = None
        self.upload_delay = 0
        self._counter = 0

    def seed(self, asset_id, data=PNG_BYTES):
        self.assets[asset_id] = data

    async def upload(self, data, content_type):
        await asyncio.sleep(self.upload_delay)
        if self.upload_error is not None:
            raise self.upload_error
        self._counter += 1
        asset_id = f"DevEvent/asset-{self._counter}"
        self.assets[asset_id] = data
        self.uploads.append(asset_id)
        return StoredAsset(url=f"https://media.test/{asset_id}", asset_id=asset_id)

    async def delete(self, asset_id):
        await asyncio.sleep(0)
        self.delete_calls.append(asset_id)
        if self.delete_error is not None:
            raise self.delete_error
        self.assets.pop(asset_id, None)


def event_document(**overrides):
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    document = {
        "_id": str(uuid4()),
        "slug": "react-summit-2025",
        "title": "React Summit 2025",
        "description": "The biggest React conference in West Africa.",
        "overview": "Two days of talks and workshops.",
        "venue": "Landmark Centre",
        "location": "Lagos, Nigeria",
        "date": "2025-11-07",
        "time": "09:00",
        "mode": "hybrid",
        "audience": "Frontend developers",
        "organizer": "React Lagos",
        "tags": ["react", "javascript"],
        "agenda": ["Keynote", "Workshops"],
        "image": "https://media.test/DevEvent/seed",
        "image_public_id": "DevEvent/seed",
        "version": 1,
        "created_at": now,
        "updated_at": now,
    }
    document.update(overrides)
    return document


@pytest.fixture
def events_collection():
    return FakeCollection(unique=[("slug",)])


@pytest.fixture
def bookings_collection():
    return FakeCollection(unique=[("event_id", "email")])


@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest.fixture
def events_repo(events_collection):
    return EventsRepository(events_collection)


@pytest.fixture
def bookings_repo(bookings_collection):
    return BookingsRepository(bookings_collection)


@pytest.fixture
def events_service(events_repo, bookings_repo, media_store):
    return EventsService(events_repo, bookings_repo, media_store, upload_timeout=5)


@pytest.fixture
def bookings_service(bookings_repo, events_repo):
    return BookingsService(bookings_repo, events_repo)


@pytest.fixture
def seed_event(events_collection, media_store):
    """Insert an event document (and its image) straight into the fakes."""

    def _seed(**overrides):
        document = event_document(**overrides)
        media_store.seed(document["image_public_id"])
        return events_collection.seed(document)

    return _seed


@pytest.fixture
def client(events_service, bookings_service):
    app.dependency_overrides[get_events_service] = lambda: events_service
    app.dependency_overrides[get_bookings_service] = lambda: bookings_service
    yield TestClient(app)
    app.dependency_overrides.clear()
