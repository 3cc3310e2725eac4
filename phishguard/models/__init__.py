from phishguard.models.answer_record import AnswerRecord
from phishguard.models.assessment_session import AssessmentSession
from phishguard.models.attempt_window import AttemptWindow
from phishguard.models.profile import Profile
from phishguard.models.security_incident import SecurityIncident
from phishguard.models.test_item import TestItem

__all__ = [
    "AnswerRecord",
    "AssessmentSession",
    "AttemptWindow",
    "Profile",
    "SecurityIncident",
    "TestItem",
]
