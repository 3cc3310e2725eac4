from phishguard.store.base import (
    ANSWER_RECORDS,
    ASSESSMENT_SESSIONS,
    ATTEMPT_WINDOWS,
    PROFILES,
    SECURITY_INCIDENTS,
    TEST_ITEMS,
    Gte,
    Lt,
    RecordStore,
)
from phishguard.store.memory import MemoryRecordStore

__all__ = [
    "ANSWER_RECORDS",
    "ASSESSMENT_SESSIONS",
    "ATTEMPT_WINDOWS",
    "PROFILES",
    "SECURITY_INCIDENTS",
    "TEST_ITEMS",
    "Gte",
    "Lt",
    "MemoryRecordStore",
    "RecordStore",
]
