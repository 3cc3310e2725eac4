from phishguard.schemas.dashboard import (
    DashboardSummarySchema,
    HeatmapOutSchema,
    IncidentOutSchema,
    UserRiskScoreSchema,
)
from phishguard.schemas.rate_limit import LoginIdentifierSchema, RateLimitStatusSchema
from phishguard.schemas.session import (
    AnswerOutcomeSchema,
    AnswerResultSchema,
    AnswerSubmitSchema,
    QuestionOutSchema,
    SessionClosedSchema,
    SessionCreatedSchema,
    SessionCreateSchema,
    SessionViewSchema,
)

__all__ = [
    "AnswerOutcomeSchema",
    "AnswerResultSchema",
    "AnswerSubmitSchema",
    "DashboardSummarySchema",
    "HeatmapOutSchema",
    "IncidentOutSchema",
    "LoginIdentifierSchema",
    "QuestionOutSchema",
    "RateLimitStatusSchema",
    "SessionClosedSchema",
    "SessionCreatedSchema",
    "SessionCreateSchema",
    "SessionViewSchema",
    "UserRiskScoreSchema",
]
