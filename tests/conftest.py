"""Pytest configuration and fixtures for product-sink tests."""

import json
from types import SimpleNamespace

import pytest
from faker import Faker

from product_sink.repository import MongoRepository


class FakeCollection:
    """In-memory stand-in for a pymongo collection (delete_one / update_one only)."""

    def __init__(self):
        self.docs = {}
        self.calls = []
        self.fail_with = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def delete_one(self, filter):
        self.calls.append(("delete_one", filter))
        self._maybe_fail()
        deleted = 1 if self.docs.pop(filter["_id"], None) is not None else 0
        return SimpleNamespace(deleted_count=deleted)

    def update_one(self, filter, update, upsert=False):
        self.calls.append(("update_one", filter, update, upsert))
        self._maybe_fail()
        _id = filter["_id"]
        matched = 1 if _id in self.docs else 0
        if not matched and not upsert:
            return SimpleNamespace(matched_count=0, upserted_id=None)
        doc = self.docs.setdefault(_id, {"_id": _id})
        doc.update(update["$set"])
        return SimpleNamespace(matched_count=matched, upserted_id=None if matched else _id)

    def find_one(self, filter):
        return self.docs.get(filter["_id"])


class FakeConsumer:
    """Serves queued records one per poll; stops the attached loop once drained."""

    def __init__(self, records=()):
        self.records = list(records)
        self.commits = []
        self.loop = None
        self.closed = False
        self.close_autocommit = None

    def subscription(self):
        return {"DBTestServer.public.product"}

    def poll(self, timeout_ms=0, max_records=None):
        if not self.records:
            if self.loop is not None:
                self.loop.stop()
            return {}
        record = self.records.pop(0)
        return {(record.topic, record.partition): [record]}

    def commit(self, offsets):
        self.commits.append(offsets)

    def committed_offsets(self):
        return [(tp.partition, meta.offset) for c in self.commits for tp, meta in c.items()]

    def close(self, autocommit=True):
        self.closed = True
        self.close_autocommit = autocommit


def make_record(key=None, value=None, offset=0, partition=0, topic="DBTestServer.public.product"):
    def _blob(obj):
        if obj is None or isinstance(obj, bytes):
            return obj
        return json.dumps(obj).encode("utf-8")

    return SimpleNamespace(
        topic=topic,
        partition=partition,
        offset=offset,
        timestamp=1700000000000,
        key=_blob(key),
        value=_blob(value),
    )


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def repo(collection):
    return MongoRepository(collection)


@pytest.fixture
def consumer():
    return FakeConsumer()


@pytest.fixture(autouse=True)
def seeded_faker():
    Faker.seed(1234)


@pytest.fixture
def product_row():
    """Wire-shaped product row as Debezium emits it."""
    return {
        "id": 5,
        "name": "Widget",
        "weight": {"scale": 2, "value": "AfQ="},  # 0x01F4 = 500
        "weight_uom_id": "kg",
        "unit_uom_id": "ea",
        "description": "A widget",
        "created_at": "2024-01-02T03:04:05Z",
        "updated_at": "2024-01-03T03:04:05.123456Z",
    }


@pytest.fixture
def record_factory():
    return make_record
