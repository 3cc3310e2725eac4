"""Read-only views for the admin incident dashboard: timeline, heatmap, summary, CSV."""
import csv
import io
import json

from phishguard.core.config import Settings, get_settings
from phishguard.schemas.dashboard import DashboardSummarySchema, HeatmapOutSchema, IncidentOutSchema
from phishguard.services.scoring import compute_risk_scores, organization_summary, tier_distribution
from phishguard.store.base import PROFILES, SECURITY_INCIDENTS, RecordStore

CSV_HEADER = ["Timestamp", "User ID", "Incident Type", "Severity", "IP Address", "Decision Time (s)", "Missed IoCs"]


def _incident_out(row: dict, names: dict[str, str | None]) -> IncidentOutSchema:
    missed = json.loads(row.get("missed_iocs_json") or "[]")
    raw = json.loads(row.get("raw_event_json") or "{}")
    return IncidentOutSchema(
        id=row["id"],
        user_id=row["user_id"],
        user_name=names.get(row["user_id"]),
        incident_type=row["incident_type"],
        severity=row.get("severity") or "medium",
        timestamp=row["timestamp"],
        ip_address=row.get("ip_address"),
        user_agent=row.get("user_agent"),
        geolocation_country=row.get("geolocation_country"),
        time_to_decision_seconds=row.get("time_to_decision_seconds"),
        missed_iocs=[str(m) for m in missed] if isinstance(missed, list) else [],
        raw_event_data=raw if isinstance(raw, dict) else {},
    )


class DashboardService:
    def __init__(self, store: RecordStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    async def _display_names(self) -> dict[str, str | None]:
        profiles = await self.store.select_where(PROFILES)
        return {p["user_id"]: p.get("full_name") for p in profiles}

    async def _all_incidents(self) -> list[dict]:
        return await self.store.select_where(SECURITY_INCIDENTS, order_by="timestamp", descending=True)

    def _risk_scores(self, incidents: list[dict], names: dict[str, str | None]):
        s = self.settings
        return compute_risk_scores(
            incidents,
            names,
            base_score=s.risk_base_score,
            failure_weight=s.risk_failure_weight,
            fast_penalty=s.risk_fast_decision_penalty,
            fast_threshold=s.risk_fast_decision_threshold_seconds,
            default_latency=s.risk_default_latency_seconds,
        )

    async def timeline(self, limit: int | None = None) -> list[IncidentOutSchema]:
        """Newest incidents first, with the subject's display name."""
        limit = limit or self.settings.timeline_default_limit
        rows = await self.store.select_where(SECURITY_INCIDENTS, order_by="timestamp", descending=True, limit=limit)
        names = await self._display_names()
        return [_incident_out(r, names) for r in rows]

    async def heatmap(self) -> HeatmapOutSchema:
        incidents = await self._all_incidents()
        scores = self._risk_scores(incidents, await self._display_names())
        # stable sort keeps first-seen order among equal scores
        scores.sort(key=lambda s: s.risk_score, reverse=True)
        return HeatmapOutSchema(users=scores, distribution=tier_distribution(scores))

    async def summary(self) -> DashboardSummarySchema:
        incidents = await self._all_incidents()
        scores = self._risk_scores(incidents, {})
        return organization_summary(incidents, scores)

    async def export_csv(self, limit: int | None = None) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for i in await self.timeline(limit):
            writer.writerow([
                i.timestamp.isoformat(),
                i.user_id,
                i.incident_type,
                i.severity,
                i.ip_address or "",
                "" if i.time_to_decision_seconds is None else i.time_to_decision_seconds,
                ";".join(i.missed_iocs),
            ])
        return buf.getvalue()
