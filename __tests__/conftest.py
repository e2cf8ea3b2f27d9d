"""Pytest configuration and fixtures for the behaviour tracker.

Log files go to a temporary directory; nothing here needs Postgres or Redis.
"""

import fnmatch
import os
import tempfile

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="behaviour-logs-"))

import pytest  # noqa: E402

from src.services.behavior import (  # noqa: E402
    BehaviorCacheManager,
    QueryProcessor,
    ResultHighlighter,
    SearchEngine,
)


class FakeRedis:
    """In-memory stand-in for the redis.asyncio client methods the cache uses."""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                deleted += 1
        return deleted

    async def exists(self, key):
        return int(key in self.store)

    async def keys(self, pattern):
        return [key for key in self.store if fnmatch.fnmatch(key, pattern)]

    async def ping(self):
        return True


class FakeRecordLoader:
    """Serves fixed collections and counts how often it was asked."""

    def __init__(self, students=(), behavior_records=(), misdemeanors=()):
        self.collections = {
            "students": list(students),
            "behavior_records": list(behavior_records),
            "misdemeanors": list(misdemeanors),
        }
        self.calls = []

    async def load_collections(self, types):
        self.calls.append(set(types))
        return self.collections


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return BehaviorCacheManager(fake_redis, prefix="test")


@pytest.fixture
def students():
    return [
        {"id": "s1", "name": "Alice Smith", "student_id": "S001", "grade": "Form 2", "behavior_score": 3},
        {"id": "s2", "name": "Brian Otieno", "student_id": "S002", "grade": "Form 4", "behavior_score": 8},
        {"id": "s3", "name": "Alina Wanjiru", "student_id": "S003", "grade": "Form 1", "behavior_score": 0},
    ]


@pytest.fixture
def misdemeanors():
    return [
        {
            "id": "m1",
            "name": "Fighting",
            "location": "Main School",
            "category": "Violence",
            "severity_level": 3,
            "sanctions": {"1st": "Detention", "2nd": "Suspension", "3rd": "Expulsion hearing"},
        },
        {
            "id": "m2",
            "name": "Late for prep",
            "location": "Hostel",
            "category": "Punctuality",
            "severity_level": 1,
            "sanctions": {"1st": "Warning"},
        },
    ]


@pytest.fixture
def behavior_records(students, misdemeanors):
    return [
        {
            "id": "r1",
            "type": "incident",
            "student_id": "s2",
            "description": "fighting in hallway",
            "location": "Main School",
            "timestamp": "2024-03-10T08:30:00Z",
            "misdemeanor_id": "m1",
            "student": students[1],
            "misdemeanor": misdemeanors[0],
            "offense_number": 1,
            "sanction": "Detention",
            "status": "open",
        },
        {
            "id": "r2",
            "type": "merit",
            "student_id": "s1",
            "description": "Helped organise the hostel clean-up",
            "location": "Hostel",
            "timestamp": "2024-05-02T16:00:00+03:00",
            "student": students[0],
            "merit_tier": "Gold",
            "points": 3,
        },
    ]


@pytest.fixture
def record_loader(students, behavior_records, misdemeanors):
    return FakeRecordLoader(students, behavior_records, misdemeanors)


@pytest.fixture
def search_engine(cache, record_loader):
    return SearchEngine(cache, record_loader, QueryProcessor(cache), ResultHighlighter(cache))
