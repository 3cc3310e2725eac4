"""Admin dashboard routes: incident timeline, risk heatmap, summary, CSV export."""
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from phishguard.core.errors import StoreUnavailable
from phishguard.routers.deps import get_dashboard, require_admin
from phishguard.schemas.dashboard import DashboardSummarySchema, HeatmapOutSchema, IncidentOutSchema
from phishguard.services.dashboard import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"], dependencies=[Depends(require_admin)])


@router.get("/timeline", response_model=list[IncidentOutSchema])
async def timeline(
    dashboard: Annotated[DashboardService, Depends(get_dashboard)],
    limit: Annotated[int | None, Query(ge=1, le=1000)] = None,
):
    """Newest incidents first."""
    try:
        return await dashboard.timeline(limit)
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Incident store unavailable")


@router.get("/heatmap", response_model=HeatmapOutSchema)
async def heatmap(dashboard: Annotated[DashboardService, Depends(get_dashboard)]):
    """Users by risk score (highest first) and the tier distribution."""
    try:
        return await dashboard.heatmap()
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Incident store unavailable")


@router.get("/summary", response_model=DashboardSummarySchema)
async def summary(dashboard: Annotated[DashboardService, Depends(get_dashboard)]):
    try:
        return await dashboard.summary()
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Incident store unavailable")


@router.get("/incidents.csv")
async def export_incidents(
    dashboard: Annotated[DashboardService, Depends(get_dashboard)],
    limit: Annotated[int | None, Query(ge=1, le=1000)] = None,
):
    try:
        content = await dashboard.export_csv(limit)
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Incident store unavailable")
    filename = f"security-incidents-{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
