"""Timed phishing-judgment assessment: Created -> InProgress -> Completed.

Every write to a session is conditional on the state that was read
(``is_completed = False`` plus the expected question number and answered
flag). A user action and an expiry sweep racing on the same session can
therefore never both apply, and a completed session is never written
again.

Scores use the full question count as the denominator. A run that times
out halfway keeps only what was answered and is not rescaled.
"""
import dataclasses
import json
import logging
import random
import uuid
from datetime import timedelta

from phishguard.core.clock import Clock, SystemClock
from phishguard.core.config import Settings, get_settings
from phishguard.core.errors import (
    InsufficientItems,
    InvalidTransition,
    QuestionAlreadyAnswered,
    SessionCompleted,
    SessionExpired,
    SessionNotFound,
    StoreUnavailable,
)
from phishguard.core.locks import KeyedLock
from phishguard.schemas.session import AnswerOutcomeSchema, QuestionOutSchema, SessionViewSchema
from phishguard.services.incidents import PHISHING_FAILURE, IncidentContext, IncidentRecorder
from phishguard.store.base import ANSWER_RECORDS, ASSESSMENT_SESSIONS, TEST_ITEMS, RecordStore

logger = logging.getLogger(__name__)

CREATED = "created"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"

PERFORMANCE_LEVELS = [
    (90, "Expert"),
    (80, "Advanced"),
    (70, "Good"),
    (60, "Fair"),
]

_session_locks = KeyedLock()


def score_percentage(correct: int, total: int) -> int:
    """round(100 * correct / total) with halves rounded up."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def performance_level(percentage: int) -> str:
    for threshold, label in PERFORMANCE_LEVELS:
        if percentage >= threshold:
            return label
    return "Needs Improvement"


def session_state(row: dict) -> str:
    if row["is_completed"]:
        return COMPLETED
    if row["current_question"] == 1 and not row["current_answered"]:
        return CREATED
    return IN_PROGRESS


def _snapshot(item: dict) -> dict:
    """Freeze the parts of a pool item the session needs."""
    return {
        "id": str(item["id"]),
        "title": item["title"],
        "description": item.get("description"),
        "image_url": item.get("image_url"),
        "is_phishing": bool(item["is_phishing"]),
        "explanation": item.get("explanation"),
        "difficulty_level": item.get("difficulty_level") or "beginner",
        "category": item.get("category"),
        "indicators": json.loads(item.get("indicators_json") or "[]"),
    }


class AssessmentEngine:
    def __init__(
        self,
        store: RecordStore,
        recorder: IncidentRecorder | None = None,
        clock: Clock | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.recorder = recorder or IncidentRecorder(store, self.clock)
        self.settings = settings or get_settings()
        self._rng = rng or random.Random()
        self._locks = locks or _session_locks

    # ---------- helpers ----------

    async def _load(self, session_id: str) -> dict:
        row = await self.store.select_one(ASSESSMENT_SESSIONS, {"id": session_id})
        if row is None:
            raise SessionNotFound(session_id)
        return row

    @staticmethod
    def _questions(row: dict) -> list[dict]:
        return json.loads(row["questions_json"])

    @staticmethod
    def _percentage(row: dict) -> int:
        return score_percentage(row["score"], row["total_questions"])

    @staticmethod
    def _deadline(row: dict):
        return row["started_at"] + timedelta(minutes=row["time_limit_minutes"])

    def _is_timed_out(self, row: dict, now) -> bool:
        return now > self._deadline(row)

    async def _complete(self, row: dict, now) -> bool:
        updated = await self.store.update(
            ASSESSMENT_SESSIONS,
            {"id": row["id"], "is_completed": False},
            {"is_completed": True, "completed_at": now},
        )
        return bool(updated)

    async def _conflict(self, session_id: str) -> Exception:
        """Explain a lost compare-and-set by re-reading the session."""
        row = await self._load(session_id)
        if row["is_completed"]:
            return SessionCompleted(session_id, self._percentage(row))
        return InvalidTransition(f"Session {session_id} changed concurrently")

    async def _unanswer(self, row: dict, score: int) -> None:
        """Roll back an answer whose record could not be written, so it can be resubmitted."""
        try:
            await self.store.update(
                ASSESSMENT_SESSIONS,
                {
                    "id": row["id"],
                    "is_completed": False,
                    "current_question": row["current_question"],
                    "current_answered": True,
                    "score": score,
                },
                {"score": row["score"], "current_answered": False},
            )
        except StoreUnavailable:
            logger.exception("Could not roll back answer to question %d of session %s",
                             row["current_question"], row["id"])

    async def _ensure_open(self, row: dict, now) -> None:
        if row["is_completed"]:
            raise SessionCompleted(row["id"], self._percentage(row))
        if self._is_timed_out(row, now):
            if await self._complete(row, now):
                logger.info("Session %s expired at question %d", row["id"], row["current_question"])
            raise SessionExpired(row["id"], self._percentage(row))

    # ---------- transitions ----------

    async def create(
        self,
        user_id: str,
        question_count: int | None = None,
        time_limit_minutes: int | None = None,
        session_type: str = "photo",
    ) -> str:
        """Start a session over `question_count` distinct random items; return its id."""
        if question_count is None:
            question_count = self.settings.default_question_count
        if time_limit_minutes is None:
            time_limit_minutes = self.settings.default_time_limit_minutes
        if question_count < 1 or time_limit_minutes < 1:
            raise ValueError("question_count and time_limit_minutes must be positive")

        items = await self.store.select_where(TEST_ITEMS)
        if len(items) < question_count:
            raise InsufficientItems(len(items), question_count)
        questions = [_snapshot(item) for item in self._rng.sample(items, question_count)]

        now = self.clock.now()
        session_id = str(uuid.uuid4())
        await self.store.insert(ASSESSMENT_SESSIONS, {
            "id": session_id,
            "user_id": user_id,
            "session_type": session_type,
            "total_questions": question_count,
            "current_question": 1,
            "score": 0,
            "started_at": now,
            "time_limit_minutes": time_limit_minutes,
            "questions_json": json.dumps(questions),
            "question_presented_at": now,
            "current_answered": False,
            "is_completed": False,
            "completed_at": None,
        })
        logger.info("Created session %s for user %s (%d questions, %d min)",
                    session_id, user_id, question_count, time_limit_minutes)
        return session_id

    async def answer(
        self,
        session_id: str,
        judgment: bool,
        context: IncidentContext | None = None,
    ) -> AnswerOutcomeSchema:
        """Judge the current question. A wrong judgment is logged as an incident before returning."""
        async with self._locks(session_id):
            now = self.clock.now()
            row = await self._load(session_id)
            await self._ensure_open(row, now)
            number = row["current_question"]
            if row["current_answered"]:
                raise QuestionAlreadyAnswered(session_id, number)

            item = self._questions(row)[number - 1]
            correct = judgment == item["is_phishing"]
            latency = max(0, int((now - row["question_presented_at"]).total_seconds()))
            score = row["score"] + (1 if correct else 0)

            updated = await self.store.update(
                ASSESSMENT_SESSIONS,
                {"id": session_id, "is_completed": False, "current_question": number, "current_answered": False},
                {"score": score, "current_answered": True},
            )
            if not updated:
                raise await self._conflict(session_id)

            try:
                await self.store.insert(ANSWER_RECORDS, {
                    "id": str(uuid.uuid4()),
                    "session_id": session_id,
                    "user_id": row["user_id"],
                    "item_id": item["id"],
                    "user_answer": judgment,
                    "is_correct": correct,
                    "time_taken_seconds": latency,
                    "question_number": number,
                    "created_at": now,
                })
            except StoreUnavailable:
                await self._unanswer(row, score)
                raise

            if not correct:
                base = context or IncidentContext()
                await self.recorder.record(row["user_id"], PHISHING_FAILURE, dataclasses.replace(
                    base,
                    decision_latency=latency,
                    missed_indicators=list(item.get("indicators") or []),
                    difficulty=item.get("difficulty_level"),
                    raw={
                        **base.raw,
                        "session_id": session_id,
                        "item_id": item["id"],
                        "question_number": number,
                        "user_answer": judgment,
                    },
                ))

        return AnswerOutcomeSchema(
            correct=correct,
            explanation=item.get("explanation"),
            is_final=number == row["total_questions"],
        )

    async def pending_outcome(self, session_id: str, judgment: bool) -> AnswerOutcomeSchema:
        """Outcome of the current question when it is answered but not yet advanced past.

        Lets a client resubmit after the advance step failed. Correctness
        comes from the stored answer record; without one, `judgment` is judged.
        """
        async with self._locks(session_id):
            row = await self._load(session_id)
            await self._ensure_open(row, self.clock.now())
            number = row["current_question"]
            if not row["current_answered"]:
                raise InvalidTransition(f"Question {number} of session {session_id} not answered yet")

            item = self._questions(row)[number - 1]
            record = await self.store.select_one(ANSWER_RECORDS, {"session_id": session_id, "question_number": number})
            correct = record["is_correct"] if record else judgment == item["is_phishing"]

        return AnswerOutcomeSchema(
            correct=correct,
            explanation=item.get("explanation"),
            is_final=number == row["total_questions"],
        )

    async def advance(self, session_id: str) -> str:
        """Move past the answered question; completes the session after the last one."""
        async with self._locks(session_id):
            now = self.clock.now()
            row = await self._load(session_id)
            await self._ensure_open(row, now)
            number = row["current_question"]
            if not row["current_answered"]:
                raise InvalidTransition(f"Question {number} of session {session_id} not answered yet")

            if number >= row["total_questions"]:
                if not await self._complete(row, now):
                    raise await self._conflict(session_id)
                logger.info("Session %s completed with %d/%d correct", session_id, row["score"], row["total_questions"])
                return COMPLETED

            updated = await self.store.update(
                ASSESSMENT_SESSIONS,
                {"id": session_id, "is_completed": False, "current_question": number, "current_answered": True},
                {"current_question": number + 1, "current_answered": False, "question_presented_at": now},
            )
            if not updated:
                raise await self._conflict(session_id)
            return IN_PROGRESS

    async def expire_if_timed_out(self, session_id: str) -> bool:
        """Complete the session if its time is up. True only for the call that expired it."""
        async with self._locks(session_id):
            now = self.clock.now()
            row = await self._load(session_id)
            if row["is_completed"] or not self._is_timed_out(row, now):
                return False
            expired = await self._complete(row, now)
        if expired:
            logger.info("Session %s expired at question %d", session_id, row["current_question"])
        return expired

    async def sweep_timed_out(self) -> int:
        now = self.clock.now()
        open_sessions = await self.store.select_where(ASSESSMENT_SESSIONS, {"is_completed": False})
        expired = 0
        for row in open_sessions:
            if self._is_timed_out(row, now) and await self.expire_if_timed_out(row["id"]):
                expired += 1
        return expired

    # ---------- reads ----------

    async def get(self, session_id: str) -> SessionViewSchema:
        await self.expire_if_timed_out(session_id)
        row = await self._load(session_id)
        now = self.clock.now()
        percentage = self._percentage(row)
        state = session_state(row)

        question = None
        remaining = 0
        if state != COMPLETED:
            remaining = max(0, int((self._deadline(row) - now).total_seconds()))
            item = self._questions(row)[row["current_question"] - 1]
            question = QuestionOutSchema(
                item_id=item["id"],
                number=row["current_question"],
                title=item["title"],
                description=item.get("description"),
                image_url=item.get("image_url"),
                category=item.get("category"),
                difficulty_level=item["difficulty_level"],
            )

        return SessionViewSchema(
            id=row["id"],
            user_id=row["user_id"],
            state=state,
            total_questions=row["total_questions"],
            current_question=row["current_question"],
            correct_count=row["score"],
            score_percentage=percentage,
            performance_level=performance_level(percentage),
            time_remaining_seconds=remaining,
            started_at=row["started_at"],
            completed_at=row.get("completed_at"),
            question=question,
        )
