"""SecurityIncident model: append-only audit record of a security-relevant event."""
from sqlalchemy import Column, DateTime, Integer, String, Text

from phishguard.db.session import Base


class SecurityIncident(Base):
    __tablename__ = "security_incidents"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    incident_type = Column(String(32), nullable=False)  # phishing_failure | brute_force
    severity = Column(String(16), nullable=False)  # low | medium | high | critical
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    ip_address = Column(String(64), nullable=True, index=True)
    user_agent = Column(String(512), nullable=True)
    geolocation_country = Column(String(64), nullable=True)
    time_to_decision_seconds = Column(Integer, nullable=True)
    # JSON array of indicator ids the user missed
    missed_iocs_json = Column(Text, nullable=False, default="[]")
    raw_event_json = Column(Text, nullable=False, default="{}")
