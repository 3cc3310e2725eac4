"""Domain errors raised by the engine services; routers map them to HTTP."""


class PhishGuardError(Exception):
    code = "error"


class StoreUnavailable(PhishGuardError):
    """The record store could not be read or written."""

    code = "store_unavailable"


class RateLimited(PhishGuardError):
    code = "rate_limited"

    def __init__(self, identifier: str, retry_after_seconds: int):
        super().__init__(f"Too many login attempts from {identifier}")
        self.identifier = identifier
        self.retry_after_seconds = retry_after_seconds


class InsufficientItems(PhishGuardError):
    code = "insufficient_items"

    def __init__(self, available: int, requested: int):
        super().__init__(f"Item pool has {available} items, {requested} requested")
        self.available = available
        self.requested = requested


class SessionNotFound(PhishGuardError):
    code = "session_not_found"

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionClosed(PhishGuardError):
    """Base for sessions that no longer accept answers; carries the frozen score."""

    def __init__(self, session_id: str, score_percentage: int):
        super().__init__(f"Session {session_id} is closed ({self.code})")
        self.session_id = session_id
        self.score_percentage = score_percentage


class SessionCompleted(SessionClosed):
    code = "session_completed"


class SessionExpired(SessionClosed):
    code = "session_expired"


class InvalidTransition(PhishGuardError):
    """Operation not valid in the session's current state (e.g. answering twice)."""

    code = "invalid_transition"


class QuestionAlreadyAnswered(InvalidTransition):
    """The current question was answered but the session has not moved past it."""

    code = "already_answered"

    def __init__(self, session_id: str, question_number: int):
        super().__init__(f"Question {question_number} of session {session_id} already answered")
        self.session_id = session_id
        self.question_number = question_number
