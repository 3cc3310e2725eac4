"""
PhishGuard Test Suite - Shared Pytest Fixtures

Provides a controllable clock, isolated settings, in-memory record stores
(empty and with a seeded item pool) and small row builders.

Usage:
    pytest tests/ -v
"""

import json
import random
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from phishguard.core.clock import Clock
from phishguard.core.config import Settings
from phishguard.core.errors import StoreUnavailable
from phishguard.services.assessment import AssessmentEngine
from phishguard.services.incidents import IncidentRecorder
from phishguard.services.rate_limit import RateLimitGuard
from phishguard.store.base import ASSESSMENT_SESSIONS, TEST_ITEMS
from phishguard.store.memory import MemoryRecordStore

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)
POOL_SIZE = 10


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class BrokenStore(MemoryRecordStore):
    """Store whose every operation fails, or only those on `tables`."""

    def __init__(self, tables=None, broken=None):
        super().__init__(tables)
        self.broken = broken

    def _check(self, table):
        if self.broken is None or table in self.broken:
            raise StoreUnavailable(f"{table} unavailable")

    async def insert(self, table, row):
        self._check(table)
        return await super().insert(table, row)

    async def select_where(self, table, where=None, order_by=None, descending=False, limit=None):
        self._check(table)
        return await super().select_where(table, where, order_by, descending, limit)

    async def update(self, table, where, patch):
        self._check(table)
        return await super().update(table, where, patch)

    async def delete(self, table, where):
        self._check(table)
        return await super().delete(table, where)


class FlakyStore(MemoryRecordStore):
    """Store whose first write matching `fails(op, table, values)` raises `error`."""

    def __init__(self, tables=None, fails=None, error=None):
        super().__init__(tables)
        self.fails = fails or (lambda op, table, values: False)
        self.error = error or StoreUnavailable("transient store failure")
        self.failures = 0

    def _maybe_fail(self, op, table, values):
        if not self.failures and self.fails(op, table, values):
            self.failures += 1
            raise self.error

    async def insert(self, table, row):
        self._maybe_fail("insert", table, row)
        return await super().insert(table, row)

    async def update(self, table, where, patch):
        self._maybe_fail("update", table, patch)
        return await super().update(table, where, patch)


def fails_on_advance(op, table, values):
    return op == "update" and table == ASSESSMENT_SESSIONS and "question_presented_at" in values


def make_item(item_id: str, is_phishing: bool = True, difficulty: str = "beginner", indicators=None) -> dict:
    return {
        "id": item_id,
        "title": f"Item {item_id}",
        "description": None,
        "image_url": f"https://cdn.example.test/{item_id}.png",
        "is_phishing": is_phishing,
        "explanation": f"Explanation for {item_id}",
        "difficulty_level": difficulty,
        "category": "email",
        "indicators_json": json.dumps(indicators if indicators is not None else [f"ioc-{item_id}"]),
    }


def make_incident(user_id: str, incident_type: str = "phishing_failure", latency=None, **extra) -> dict:
    row = {
        "id": extra.pop("id", str(uuid.uuid4())),
        "user_id": user_id,
        "incident_type": incident_type,
        "severity": "medium",
        "timestamp": T0,
        "ip_address": None,
        "user_agent": None,
        "geolocation_country": None,
        "time_to_decision_seconds": latency,
        "missed_iocs_json": "[]",
        "raw_event_json": "{}",
    }
    row.update(extra)
    return row


async def ground_truth(store, session_id: str) -> list[bool]:
    row = await store.select_one(ASSESSMENT_SESSIONS, {"id": session_id})
    return [q["is_phishing"] for q in json.loads(row["questions_json"])]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        rate_limit_attempts=5,
        rate_limit_window_minutes=15,
        default_question_count=5,
        default_time_limit_minutes=10,
    )


@pytest.fixture
def item_pool():
    # even ids phishing; the last two are advanced
    return [
        make_item(f"item-{i}", is_phishing=i % 2 == 0, difficulty="advanced" if i >= 8 else "beginner")
        for i in range(POOL_SIZE)
    ]


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def seeded_store(item_pool):
    return MemoryRecordStore({TEST_ITEMS: item_pool})


@pytest.fixture
def guard(store, clock, settings):
    return RateLimitGuard(store, IncidentRecorder(store, clock), clock, settings)


@pytest.fixture
def engine(seeded_store, clock, settings):
    return AssessmentEngine(
        seeded_store,
        IncidentRecorder(seeded_store, clock),
        clock,
        settings,
        rng=random.Random(7),
    )
