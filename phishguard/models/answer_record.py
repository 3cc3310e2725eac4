"""AnswerRecord model: one judgment on one question of a session. Append-only."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from phishguard.db.session import Base


class AnswerRecord(Base):
    __tablename__ = "answer_records"

    id = Column(String(36), primary_key=True)
    # weak reference: no FK so records outlive pruned sessions
    session_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    item_id = Column(String(64), nullable=False)
    user_answer = Column(Boolean, nullable=False)  # True = "phishing"
    is_correct = Column(Boolean, nullable=False)
    time_taken_seconds = Column(Integer, nullable=False)
    question_number = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
