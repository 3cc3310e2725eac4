"""Incident recorder: turns missed phishing cues and brute-force lockouts into audit records.

Recording is best-effort. Any store error is logged and swallowed so the
answer submission or login that triggered it still completes.
"""
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from phishguard.core.clock import Clock, SystemClock
from phishguard.store.base import SECURITY_INCIDENTS, RecordStore

logger = logging.getLogger(__name__)

PHISHING_FAILURE = "phishing_failure"
BRUTE_FORCE = "brute_force"
INCIDENT_TYPES = (PHISHING_FAILURE, BRUTE_FORCE)

# owner of incidents not tied to a signed-in user (e.g. login lockouts)
SYSTEM_USER_ID = "00000000-0000-0000-0000-000000000000"


@dataclass
class IncidentContext:
    ip_address: str | None = None
    user_agent: str | None = None
    country: str | None = None
    decision_latency: int | None = None
    missed_indicators: list[str] = field(default_factory=list)
    difficulty: str | None = None  # difficulty of the item that was missed
    raw: dict[str, Any] = field(default_factory=dict)


def classify_severity(incident_type: str, difficulty: str | None = None) -> str:
    """Missing an advanced cue is a stronger signal than missing a beginner one."""
    if incident_type == BRUTE_FORCE:
        return "high"
    if incident_type == PHISHING_FAILURE:
        return "high" if difficulty == "advanced" else "medium"
    raise ValueError(f"Unknown incident type: {incident_type}")


class IncidentRecorder:
    def __init__(self, store: RecordStore, clock: Clock | None = None) -> None:
        self.store = store
        self.clock = clock or SystemClock()

    async def record(self, user_id: str, incident_type: str, context: IncidentContext | None = None) -> str | None:
        """Append one incident; return its id, or None if it could not be stored."""
        context = context or IncidentContext()
        severity = classify_severity(incident_type, context.difficulty)
        incident_id = str(uuid.uuid4())
        row = {
            "id": incident_id,
            "user_id": user_id,
            "incident_type": incident_type,
            "severity": severity,
            "timestamp": self.clock.now(),
            "ip_address": context.ip_address,
            "user_agent": context.user_agent,
            "geolocation_country": context.country,
            "time_to_decision_seconds": context.decision_latency,
            "missed_iocs_json": json.dumps(list(context.missed_indicators)),
            "raw_event_json": json.dumps(context.raw, default=str),
        }
        try:
            await self.store.insert(SECURITY_INCIDENTS, row)
        except Exception:
            logger.exception("Dropped %s incident for user %s", incident_type, user_id)
            return None
        logger.info("Recorded %s incident %s (severity=%s, user=%s)", incident_type, incident_id, severity, user_id)
        return incident_id
