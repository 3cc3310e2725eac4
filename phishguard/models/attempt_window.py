"""AttemptWindow model: failed login attempts for one identifier in one rate-limit window."""
from sqlalchemy import Column, DateTime, Integer, String

from phishguard.db.session import Base


class AttemptWindow(Base):
    __tablename__ = "attempt_windows"

    id = Column(String(36), primary_key=True)
    identifier = Column(String(64), nullable=False, index=True)  # client IP
    endpoint = Column(String(32), nullable=False, default="auth")
    attempt_count = Column(Integer, nullable=False, default=1)  # >= 1 while the row exists
    first_attempt_at = Column(DateTime(timezone=True), nullable=False, index=True)
    last_attempt_at = Column(DateTime(timezone=True), nullable=False)
