"""
Assessment Session Tests

State machine transitions, scoring with a fixed denominator, time-limit
expiry, decision latency and the incidents raised on wrong answers.
"""

import asyncio
import json
import random

import pytest

from conftest import POOL_SIZE, BrokenStore, FlakyStore, fails_on_advance, ground_truth
from phishguard.core.errors import (
    InsufficientItems,
    InvalidTransition,
    QuestionAlreadyAnswered,
    SessionCompleted,
    SessionExpired,
    SessionNotFound,
    StoreUnavailable,
)
from phishguard.services.assessment import (
    COMPLETED,
    CREATED,
    IN_PROGRESS,
    AssessmentEngine,
    performance_level,
    score_percentage,
)
from phishguard.services.incidents import IncidentContext, IncidentRecorder
from phishguard.store.base import ANSWER_RECORDS, ASSESSMENT_SESSIONS, SECURITY_INCIDENTS, TEST_ITEMS
from phishguard.store.memory import MemoryRecordStore

USER = "user-alice"


async def play(engine, session_id, pattern):
    """Answer questions in order; pattern[i] True means answer question i correctly."""
    truth = await ground_truth(engine.store, session_id)
    for i, want_correct in enumerate(pattern):
        judgment = truth[i] if want_correct else not truth[i]
        outcome = await engine.answer(session_id, judgment)
        assert outcome.correct is want_correct
        await engine.advance(session_id)


class TestScorePercentage:
    @pytest.mark.parametrize("correct,total,expected", [
        (0, 5, 0),
        (5, 5, 100),
        (3, 4, 75),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 rounds up
        (3, 8, 38),  # 37.5 rounds up
    ])
    def test_rounds_half_up(self, correct, total, expected):
        assert score_percentage(correct, total) == expected

    def test_always_within_bounds(self):
        for total in range(1, 30):
            for correct in range(total + 1):
                assert 0 <= score_percentage(correct, total) <= 100

    @pytest.mark.parametrize("percentage,level", [
        (100, "Expert"), (90, "Expert"), (89, "Advanced"), (80, "Advanced"),
        (70, "Good"), (60, "Fair"), (59, "Needs Improvement"), (0, "Needs Improvement"),
    ])
    def test_performance_levels(self, percentage, level):
        assert performance_level(percentage) == level


class TestCreate:
    @pytest.mark.asyncio
    async def test_selects_distinct_items(self, engine, seeded_store):
        session_id = await engine.create(USER, question_count=POOL_SIZE, time_limit_minutes=10)
        row = await seeded_store.select_one(ASSESSMENT_SESSIONS, {"id": session_id})
        ids = [q["id"] for q in json.loads(row["questions_json"])]
        assert len(ids) == POOL_SIZE
        assert len(set(ids)) == POOL_SIZE

    @pytest.mark.asyncio
    async def test_new_session_starts_at_first_question(self, engine):
        session_id = await engine.create(USER, question_count=4, time_limit_minutes=10)
        view = await engine.get(session_id)
        assert view.state == CREATED
        assert view.current_question == 1
        assert view.correct_count == 0
        assert view.total_questions == 4
        assert view.time_remaining_seconds == 600
        assert view.question is not None
        assert "is_phishing" not in view.question.model_dump()

    @pytest.mark.asyncio
    async def test_defaults_come_from_settings(self, engine):
        view = await engine.get(await engine.create(USER))
        assert view.total_questions == 5
        assert view.time_remaining_seconds == 10 * 60

    @pytest.mark.asyncio
    async def test_insufficient_items(self, engine):
        with pytest.raises(InsufficientItems) as exc:
            await engine.create(USER, question_count=POOL_SIZE + 1, time_limit_minutes=10)
        assert exc.value.available == POOL_SIZE
        assert exc.value.requested == POOL_SIZE + 1

    @pytest.mark.asyncio
    async def test_empty_pool(self, store, clock, settings):
        engine = AssessmentEngine(store, clock=clock, settings=settings)
        with pytest.raises(InsufficientItems):
            await engine.create(USER, question_count=1, time_limit_minutes=5)

    @pytest.mark.asyncio
    async def test_rejects_non_positive_arguments(self, engine):
        with pytest.raises(ValueError):
            await engine.create(USER, question_count=0, time_limit_minutes=5)
        with pytest.raises(ValueError):
            await engine.create(USER, question_count=3, time_limit_minutes=0)


class TestAnswering:
    @pytest.mark.asyncio
    async def test_all_correct_scores_100(self, engine):
        session_id = await engine.create(USER, question_count=5, time_limit_minutes=10)
        await play(engine, session_id, [True] * 5)
        view = await engine.get(session_id)
        assert view.state == COMPLETED
        assert view.score_percentage == 100
        assert view.performance_level == "Expert"
        assert view.completed_at is not None

    @pytest.mark.asyncio
    async def test_all_wrong_scores_0_and_logs_each_miss(self, engine, seeded_store):
        session_id = await engine.create(USER, question_count=5, time_limit_minutes=10)
        await play(engine, session_id, [False] * 5)
        view = await engine.get(session_id)
        assert view.score_percentage == 0
        assert seeded_store.count(SECURITY_INCIDENTS, {"incident_type": "phishing_failure", "user_id": USER}) == 5

    @pytest.mark.asyncio
    async def test_mixed_answers(self, engine, seeded_store):
        session_id = await engine.create(USER, question_count=4, time_limit_minutes=10)
        await play(engine, session_id, [True, False, True, True])
        view = await engine.get(session_id)
        assert view.correct_count == 3
        assert view.score_percentage == 75
        assert seeded_store.count(ANSWER_RECORDS, {"session_id": session_id}) == 4
        assert seeded_store.count(SECURITY_INCIDENTS) == 1

    @pytest.mark.asyncio
    async def test_answer_returns_explanation_and_final_flag(self, engine):
        session_id = await engine.create(USER, question_count=2, time_limit_minutes=10)
        truth = await ground_truth(engine.store, session_id)

        first = await engine.answer(session_id, truth[0])
        assert first.is_final is False
        assert first.explanation.startswith("Explanation for item-")
        assert await engine.advance(session_id) == IN_PROGRESS

        last = await engine.answer(session_id, truth[1])
        assert last.is_final is True
        assert await engine.advance(session_id) == COMPLETED

    @pytest.mark.asyncio
    async def test_state_moves_to_in_progress_after_first_answer(self, engine):
        session_id = await engine.create(USER, question_count=3, time_limit_minutes=10)
        await engine.answer(session_id, True)
        assert (await engine.get(session_id)).state == IN_PROGRESS

    @pytest.mark.asyncio
    async def test_cannot_answer_same_question_twice(self, engine):
        session_id = await engine.create(USER, question_count=3, time_limit_minutes=10)
        await engine.answer(session_id, True)
        with pytest.raises(InvalidTransition):
            await engine.answer(session_id, False)

    @pytest.mark.asyncio
    async def test_cannot_advance_unanswered_question(self, engine):
        session_id = await engine.create(USER, question_count=3, time_limit_minutes=10)
        with pytest.raises(InvalidTransition):
            await engine.advance(session_id)

    @pytest.mark.asyncio
    async def test_completed_session_rejects_answers(self, engine):
        session_id = await engine.create(USER, question_count=2, time_limit_minutes=10)
        await play(engine, session_id, [True, False])
        with pytest.raises(SessionCompleted) as exc:
            await engine.answer(session_id, True)
        assert exc.value.score_percentage == 50
        with pytest.raises(SessionCompleted):
            await engine.advance(session_id)

    @pytest.mark.asyncio
    async def test_unknown_session(self, engine):
        with pytest.raises(SessionNotFound):
            await engine.answer("missing", True)
        with pytest.raises(SessionNotFound):
            await engine.get("missing")

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_answers_apply_once(self, engine, seeded_store):
        session_id = await engine.create(USER, question_count=3, time_limit_minutes=10)
        results = await asyncio.gather(
            engine.answer(session_id, True),
            engine.answer(session_id, True),
            return_exceptions=True,
        )
        assert sum(1 for r in results if isinstance(r, InvalidTransition)) == 1
        assert seeded_store.count(ANSWER_RECORDS, {"session_id": session_id}) == 1


class TestLatencyAndIncidents:
    @pytest.mark.asyncio
    async def test_latency_measured_from_presentation(self, engine, clock, seeded_store):
        session_id = await engine.create(USER, question_count=2, time_limit_minutes=10)
        truth = await ground_truth(seeded_store, session_id)

        clock.advance(seconds=7)
        await engine.answer(session_id, truth[0])
        clock.advance(seconds=30)  # reading the explanation does not count
        await engine.advance(session_id)
        clock.advance(seconds=2)
        await engine.answer(session_id, not truth[1])

        records = await seeded_store.select_where(ANSWER_RECORDS, {"session_id": session_id}, order_by="question_number")
        assert [r["time_taken_seconds"] for r in records] == [7, 2]
        assert [r["question_number"] for r in records] == [1, 2]

        incident = (await seeded_store.select_where(SECURITY_INCIDENTS))[0]
        assert incident["time_to_decision_seconds"] == 2

    @pytest.mark.asyncio
    async def test_incident_carries_item_indicators_and_context(self, engine, seeded_store):
        session_id = await engine.create(USER, question_count=1, time_limit_minutes=10)
        row = await seeded_store.select_one(ASSESSMENT_SESSIONS, {"id": session_id})
        item = json.loads(row["questions_json"])[0]

        context = IncidentContext(ip_address="192.0.2.10", user_agent="pytest-agent")
        await engine.answer(session_id, not item["is_phishing"], context)

        incident = (await seeded_store.select_where(SECURITY_INCIDENTS))[0]
        assert incident["user_id"] == USER
        assert incident["ip_address"] == "192.0.2.10"
        assert incident["user_agent"] == "pytest-agent"
        assert json.loads(incident["missed_iocs_json"]) == item["indicators"]
        raw = json.loads(incident["raw_event_json"])
        assert raw["session_id"] == session_id
        assert raw["item_id"] == item["id"]

    @pytest.mark.asyncio
    async def test_severity_follows_item_difficulty(self, clock, settings, item_pool):
        pool = [dict(i, difficulty_level="advanced" if n == 0 else "beginner") for n, i in enumerate(item_pool[:2])]
        store = MemoryRecordStore({TEST_ITEMS: pool})
        engine = AssessmentEngine(store, clock=clock, settings=settings, rng=random.Random(1))
        session_id = await engine.create(USER, question_count=2, time_limit_minutes=10)
        await play(engine, session_id, [False, False])

        by_item = {}
        for inc in store.dump(SECURITY_INCIDENTS):
            by_item[json.loads(inc["raw_event_json"])["item_id"]] = inc["severity"]
        assert by_item == {pool[0]["id"]: "high", pool[1]["id"]: "medium"}

    @pytest.mark.asyncio
    async def test_incident_failure_does_not_fail_answer(self, clock, settings, item_pool):
        store = BrokenStore({TEST_ITEMS: item_pool}, broken={SECURITY_INCIDENTS})
        engine = AssessmentEngine(store, IncidentRecorder(store, clock), clock, settings)
        session_id = await engine.create(USER, question_count=1, time_limit_minutes=10)
        truth = await ground_truth(store, session_id)

        outcome = await engine.answer(session_id, not truth[0])
        assert outcome.correct is False
        assert store.count(ANSWER_RECORDS) == 1
        assert await engine.advance(session_id) == COMPLETED

    @pytest.mark.asyncio
    async def test_unexpected_incident_error_does_not_fail_answer(self, clock, settings, item_pool):
        store = FlakyStore(
            {TEST_ITEMS: item_pool},
            fails=lambda op, table, values: table == SECURITY_INCIDENTS,
            error=ConnectionError("incident sink down"),
        )
        engine = AssessmentEngine(store, clock=clock, settings=settings)
        session_id = await engine.create(USER, question_count=2, time_limit_minutes=10)
        truth = await ground_truth(store, session_id)

        outcome = await engine.answer(session_id, not truth[0])
        assert outcome.correct is False
        assert await engine.advance(session_id) == IN_PROGRESS
        assert (await engine.get(session_id)).current_question == 2


class TestStoreFailures:
    @pytest.fixture
    def flaky(self, item_pool):
        return FlakyStore({TEST_ITEMS: item_pool}, fails=fails_on_advance)

    @pytest.mark.asyncio
    async def test_failed_advance_can_be_resumed(self, flaky, clock, settings):
        engine = AssessmentEngine(flaky, clock=clock, settings=settings, rng=random.Random(5))
        session_id = await engine.create(USER, question_count=3, time_limit_minutes=10)
        truth = await ground_truth(flaky, session_id)

        first = await engine.answer(session_id, truth[0])
        with pytest.raises(StoreUnavailable):
            await engine.advance(session_id)

        with pytest.raises(QuestionAlreadyAnswered):
            await engine.answer(session_id, not truth[0])
        resumed = await engine.pending_outcome(session_id, not truth[0])
        assert resumed.correct is first.correct is True
        assert resumed.explanation == first.explanation

        assert await engine.advance(session_id) == IN_PROGRESS
        view = await engine.get(session_id)
        assert view.current_question == 2
        assert view.correct_count == 1
        assert flaky.count(ANSWER_RECORDS) == 1

    @pytest.mark.asyncio
    async def test_failed_answer_record_rolls_the_answer_back(self, clock, settings, item_pool):
        store = FlakyStore({TEST_ITEMS: item_pool}, fails=lambda op, table, values: table == ANSWER_RECORDS)
        engine = AssessmentEngine(store, clock=clock, settings=settings)
        session_id = await engine.create(USER, question_count=2, time_limit_minutes=10)
        truth = await ground_truth(store, session_id)

        with pytest.raises(StoreUnavailable):
            await engine.answer(session_id, truth[0])
        row = await store.select_one(ASSESSMENT_SESSIONS, {"id": session_id})
        assert row["current_answered"] is False
        assert row["score"] == 0

        outcome = await engine.answer(session_id, truth[0])
        assert outcome.correct is True
        assert store.count(ANSWER_RECORDS) == 1
        assert (await engine.get(session_id)).correct_count == 1

    @pytest.mark.asyncio
    async def test_pending_outcome_needs_an_answered_question(self, engine):
        session_id = await engine.create(USER, question_count=2, time_limit_minutes=10)
        with pytest.raises(InvalidTransition):
            await engine.pending_outcome(session_id, True)


class TestExpiry:
    @pytest.mark.asyncio
    async def test_timeout_freezes_score_with_full_denominator(self, engine, clock):
        session_id = await engine.create(USER, question_count=5, time_limit_minutes=10)
        await play(engine, session_id, [True, True])

        clock.advance(minutes=10, seconds=1)
        with pytest.raises(SessionExpired) as exc:
            await engine.answer(session_id, True)
        assert exc.value.score_percentage == 40

        view = await engine.get(session_id)
        assert view.state == COMPLETED
        assert view.correct_count == 2
        assert view.score_percentage == 40
        assert view.time_remaining_seconds == 0
        assert view.question is None

        with pytest.raises(SessionCompleted):
            await engine.answer(session_id, True)

    @pytest.mark.asyncio
    async def test_exactly_at_limit_is_still_open(self, engine, clock):
        session_id = await engine.create(USER, question_count=2, time_limit_minutes=10)
        clock.advance(minutes=10)
        await engine.answer(session_id, True)
        assert (await engine.get(session_id)).state == IN_PROGRESS

    @pytest.mark.asyncio
    async def test_expire_if_timed_out_is_idempotent(self, engine, clock, seeded_store):
        session_id = await engine.create(USER, question_count=3, time_limit_minutes=5)
        assert await engine.expire_if_timed_out(session_id) is False

        clock.advance(minutes=6)
        assert await engine.expire_if_timed_out(session_id) is True
        row = await seeded_store.select_one(ASSESSMENT_SESSIONS, {"id": session_id})
        completed_at = row["completed_at"]

        clock.advance(minutes=1)
        assert await engine.expire_if_timed_out(session_id) is False
        row = await seeded_store.select_one(ASSESSMENT_SESSIONS, {"id": session_id})
        assert row["completed_at"] == completed_at

    @pytest.mark.asyncio
    async def test_get_expires_lazily(self, engine, clock):
        session_id = await engine.create(USER, question_count=3, time_limit_minutes=5)
        clock.advance(minutes=5, seconds=30)
        view = await engine.get(session_id)
        assert view.state == COMPLETED
        assert view.score_percentage == 0

    @pytest.mark.asyncio
    async def test_advance_after_timeout_is_rejected(self, engine, clock):
        session_id = await engine.create(USER, question_count=3, time_limit_minutes=5)
        await engine.answer(session_id, True)
        clock.advance(minutes=6)
        with pytest.raises(SessionExpired):
            await engine.advance(session_id)

    @pytest.mark.asyncio
    async def test_sweep_completes_only_timed_out_sessions(self, engine, clock):
        old = await engine.create(USER, question_count=2, time_limit_minutes=5)
        clock.advance(minutes=4)
        fresh = await engine.create("user-bob", question_count=2, time_limit_minutes=5)
        clock.advance(minutes=2)

        assert await engine.sweep_timed_out() == 1
        assert (await engine.get(old)).state == COMPLETED
        assert (await engine.get(fresh)).state == CREATED
        assert await engine.sweep_timed_out() == 0

    @pytest.mark.asyncio
    async def test_sweep_racing_answer_leaves_one_outcome(self, engine, clock):
        session_id = await engine.create(USER, question_count=2, time_limit_minutes=5)
        clock.advance(minutes=6)
        results = await asyncio.gather(
            engine.sweep_timed_out(),
            engine.answer(session_id, True),
            return_exceptions=True,
        )
        assert isinstance(results[1], (SessionExpired, SessionCompleted))
        view = await engine.get(session_id)
        assert view.state == COMPLETED
        assert view.correct_count == 0
