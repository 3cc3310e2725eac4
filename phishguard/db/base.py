"""SQLAlchemy declarative base and model imports for Alembic."""
from phishguard.db.session import Base

# Import all models so Alembic and the record store can see them
from phishguard.models.answer_record import AnswerRecord  # noqa: F401
from phishguard.models.assessment_session import AssessmentSession  # noqa: F401
from phishguard.models.attempt_window import AttemptWindow  # noqa: F401
from phishguard.models.profile import Profile  # noqa: F401
from phishguard.models.security_incident import SecurityIncident  # noqa: F401
from phishguard.models.test_item import TestItem  # noqa: F401

__all__ = ["Base", "AnswerRecord", "AssessmentSession", "AttemptWindow", "Profile", "SecurityIncident", "TestItem"]
