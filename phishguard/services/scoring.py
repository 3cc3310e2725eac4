"""Per-user risk score and tier from incident history; organization-level rollups."""
from typing import Any, Iterable, Mapping

from phishguard.schemas.dashboard import DashboardSummarySchema, UserRiskScoreSchema
from phishguard.services.incidents import PHISHING_FAILURE

# Risk score: start 50; +10 per phishing failure; +15 if avg decision < 3s; clamp 0..100
BASE_RISK_SCORE = 50
FAILURE_WEIGHT = 10
FAST_DECISION_PENALTY = 15
FAST_DECISION_THRESHOLD_SECONDS = 3.0
DEFAULT_LATENCY_SECONDS = 10.0
MIN_SCORE = 0
MAX_SCORE = 100

# (exclusive lower bound, tier), highest first
RISK_TIERS = [
    (80, "critical"),
    (60, "high"),
    (30, "medium"),
]
RISK_LEVELS = ("low", "medium", "high", "critical")
AT_RISK_LEVELS = ("high", "critical")
SEVERE_INCIDENT_SEVERITIES = ("high", "critical")


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def clamp_score(value: int) -> int:
    """Clamp to 0..100."""
    return max(MIN_SCORE, min(MAX_SCORE, value))


def risk_tier(risk_score: int) -> str:
    """Return risk level from risk score (0-100)."""
    for lower, tier in RISK_TIERS:
        if risk_score > lower:
            return tier
    return "low"


def compute_risk_scores(
    incidents: Iterable[Any],
    display_names: Mapping[str, str | None] | None = None,
    *,
    base_score: int = BASE_RISK_SCORE,
    failure_weight: int = FAILURE_WEIGHT,
    fast_penalty: int = FAST_DECISION_PENALTY,
    fast_threshold: float = FAST_DECISION_THRESHOLD_SECONDS,
    default_latency: float = DEFAULT_LATENCY_SECONDS,
) -> list[UserRiskScoreSchema]:
    """Group incidents by user and score each user.

    Incidents may be mappings (store rows) or objects with the same attribute
    names. Users come out in order of first appearance.
    """
    display_names = display_names or {}
    per_user: dict[str, dict[str, float]] = {}
    for incident in incidents:
        user_id = _field(incident, "user_id")
        acc = per_user.setdefault(user_id, {"incidents": 0, "failures": 0, "total_time": 0.0, "count": 0})
        acc["incidents"] += 1
        if _field(incident, "incident_type") == PHISHING_FAILURE:
            acc["failures"] += 1
        latency = _field(incident, "time_to_decision_seconds")
        if latency is not None:
            acc["total_time"] += latency
            acc["count"] += 1

    scores = []
    for user_id, acc in per_user.items():
        avg_time = acc["total_time"] / acc["count"] if acc["count"] else default_latency
        raw = base_score + acc["failures"] * failure_weight + (fast_penalty if avg_time < fast_threshold else 0)
        score = clamp_score(int(raw))
        scores.append(UserRiskScoreSchema(
            user_id=user_id,
            full_name=display_names.get(user_id),
            total_incidents=int(acc["incidents"]),
            phishing_failures=int(acc["failures"]),
            avg_decision_time=avg_time,
            risk_score=score,
            risk_level=risk_tier(score),
        ))
    return scores


def tier_distribution(scores: Iterable[UserRiskScoreSchema]) -> dict[str, int]:
    """Count users per risk level; every level is present."""
    distribution = {level: 0 for level in reversed(RISK_LEVELS)}
    for s in scores:
        distribution[s.risk_level] += 1
    return distribution


def organization_summary(incidents: list[Any], scores: list[UserRiskScoreSchema]) -> DashboardSummarySchema:
    """Headline numbers for the dashboard.

    Average decision time is taken over all incidents, counting those
    without a latency as 0 seconds.
    """
    total = len(incidents)
    severe = sum(1 for i in incidents if _field(i, "severity") in SEVERE_INCIDENT_SEVERITIES)
    at_risk = sum(1 for s in scores if s.risk_level in AT_RISK_LEVELS)
    total_time = sum(_field(i, "time_to_decision_seconds") or 0 for i in incidents)
    avg_time = total_time / (total or 1)
    return DashboardSummarySchema(
        total_incidents=total,
        critical_incidents=severe,
        users_at_risk=at_risk,
        avg_decision_time=int(avg_time + 0.5),
    )
