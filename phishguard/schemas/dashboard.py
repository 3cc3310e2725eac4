"""Pydantic schemas for the admin incident dashboard."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class IncidentOutSchema(BaseModel):
    id: str
    user_id: str
    user_name: str | None = None
    incident_type: str
    severity: str
    timestamp: datetime
    ip_address: str | None = None
    user_agent: str | None = None
    geolocation_country: str | None = None
    time_to_decision_seconds: int | None = None
    missed_iocs: list[str] = []
    raw_event_data: dict[str, Any] = {}


class UserRiskScoreSchema(BaseModel):
    user_id: str
    full_name: str | None = None
    total_incidents: int
    phishing_failures: int
    avg_decision_time: float
    risk_score: int
    risk_level: str


class HeatmapOutSchema(BaseModel):
    users: list[UserRiskScoreSchema]
    distribution: dict[str, int]


class DashboardSummarySchema(BaseModel):
    total_incidents: int
    critical_incidents: int  # severity high or critical
    users_at_risk: int  # risk level high or critical
    avg_decision_time: int
