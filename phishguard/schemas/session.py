"""Pydantic schemas for assessment sessions and answers."""
from datetime import datetime

from pydantic import BaseModel, Field


class SessionCreateSchema(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    question_count: int | None = Field(default=None, ge=1)
    time_limit_minutes: int | None = Field(default=None, ge=1)


class SessionCreatedSchema(BaseModel):
    session_id: str


class AnswerSubmitSchema(BaseModel):
    judgment: bool  # True = "this is phishing"


class AnswerOutcomeSchema(BaseModel):
    correct: bool
    explanation: str | None = None
    is_final: bool = False


class AnswerResultSchema(BaseModel):
    correct: bool
    explanation: str | None = None
    session_complete: bool


class QuestionOutSchema(BaseModel):
    """A question as shown to the user; ground truth is withheld."""

    item_id: str
    number: int
    title: str
    description: str | None = None
    image_url: str | None = None
    category: str | None = None
    difficulty_level: str


class SessionViewSchema(BaseModel):
    id: str
    user_id: str
    state: str  # created | in_progress | completed
    total_questions: int
    current_question: int
    correct_count: int
    score_percentage: int
    performance_level: str
    time_remaining_seconds: int
    started_at: datetime
    completed_at: datetime | None = None
    question: QuestionOutSchema | None = None


class SessionClosedSchema(BaseModel):
    code: str
    detail: str
    score_percentage: int
