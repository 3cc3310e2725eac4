from phishguard.services.assessment import AssessmentEngine
from phishguard.services.dashboard import DashboardService
from phishguard.services.incidents import IncidentRecorder
from phishguard.services.rate_limit import RateLimitGuard
from phishguard.services.scoring import compute_risk_scores, risk_tier
from phishguard.services.seeding import seed_items

__all__ = [
    "AssessmentEngine",
    "DashboardService",
    "IncidentRecorder",
    "RateLimitGuard",
    "compute_risk_scores",
    "risk_tier",
    "seed_items",
]
