"""Assessment session routes: create, view, submit answer."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from phishguard.core.errors import (
    InsufficientItems,
    InvalidTransition,
    QuestionAlreadyAnswered,
    SessionClosed,
    SessionExpired,
    SessionNotFound,
    StoreUnavailable,
)
from phishguard.routers.deps import get_assessment_engine, incident_context
from phishguard.schemas.session import (
    AnswerResultSchema,
    AnswerSubmitSchema,
    SessionClosedSchema,
    SessionCreatedSchema,
    SessionCreateSchema,
    SessionViewSchema,
)
from phishguard.services.assessment import COMPLETED, AssessmentEngine

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def _closed(e: SessionClosed) -> JSONResponse:
    body = SessionClosedSchema(code=e.code, detail=str(e), score_percentage=e.score_percentage)
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump())


@router.post("", response_model=SessionCreatedSchema, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreateSchema,
    engine: Annotated[AssessmentEngine, Depends(get_assessment_engine)],
):
    """Start a timed assessment for a user."""
    try:
        session_id = await engine.create(body.user_id, body.question_count, body.time_limit_minutes)
    except InsufficientItems as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": e.code, "available": e.available, "requested": e.requested},
        )
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Session store unavailable")
    return SessionCreatedSchema(session_id=session_id)


@router.get("/{session_id}", response_model=SessionViewSchema)
async def get_session(
    session_id: str,
    engine: Annotated[AssessmentEngine, Depends(get_assessment_engine)],
):
    """Current state, question and remaining time; expires the session if time is up."""
    try:
        return await engine.get(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Session store unavailable")


@router.post("/{session_id}/answers", response_model=AnswerResultSchema)
async def submit_answer(
    request: Request,
    session_id: str,
    body: AnswerSubmitSchema,
    engine: Annotated[AssessmentEngine, Depends(get_assessment_engine)],
):
    """Judge the current question and move on to the next one.

    Resubmitting after a failed move-on finishes that step instead of
    answering again.
    """
    try:
        try:
            outcome = await engine.answer(session_id, body.judgment, incident_context(request))
        except QuestionAlreadyAnswered:
            outcome = await engine.pending_outcome(session_id, body.judgment)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    except SessionClosed as e:
        return _closed(e)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Session store unavailable")

    try:
        state = await engine.advance(session_id)
    except SessionExpired:
        # answer was in time, the limit ran out right after
        state = COMPLETED
    except (SessionClosed, InvalidTransition) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Session store unavailable")

    return AnswerResultSchema(
        correct=outcome.correct,
        explanation=outcome.explanation,
        session_complete=state == COMPLETED,
    )
