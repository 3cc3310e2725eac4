"""AssessmentSession model: one timed run of the phishing judgment test."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from phishguard.db.session import Base


class AssessmentSession(Base):
    __tablename__ = "assessment_sessions"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    session_type = Column(String(32), nullable=False, default="photo")
    total_questions = Column(Integer, nullable=False)
    current_question = Column(Integer, nullable=False, default=1)  # 1-based
    score = Column(Integer, nullable=False, default=0)  # correct answers so far
    started_at = Column(DateTime(timezone=True), nullable=False)
    time_limit_minutes = Column(Integer, nullable=False)
    # ordered JSON snapshot of the selected test items
    questions_json = Column(Text, nullable=False)
    question_presented_at = Column(DateTime(timezone=True), nullable=False)
    current_answered = Column(Boolean, nullable=False, default=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
