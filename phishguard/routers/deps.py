"""Shared router dependencies: store, clock, services, client context, admin guard."""
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from phishguard.core.clock import Clock
from phishguard.core.security import is_admin_token
from phishguard.services.assessment import AssessmentEngine
from phishguard.services.dashboard import DashboardService
from phishguard.services.incidents import IncidentContext, IncidentRecorder
from phishguard.services.rate_limit import RateLimitGuard
from phishguard.store.base import RecordStore

bearer = HTTPBearer(auto_error=False)


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_recorder(
    store: Annotated[RecordStore, Depends(get_store)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> IncidentRecorder:
    return IncidentRecorder(store, clock)


def get_rate_limit_guard(
    store: Annotated[RecordStore, Depends(get_store)],
    clock: Annotated[Clock, Depends(get_clock)],
    recorder: Annotated[IncidentRecorder, Depends(get_recorder)],
) -> RateLimitGuard:
    return RateLimitGuard(store, recorder, clock)


def get_assessment_engine(
    store: Annotated[RecordStore, Depends(get_store)],
    clock: Annotated[Clock, Depends(get_clock)],
    recorder: Annotated[IncidentRecorder, Depends(get_recorder)],
) -> AssessmentEngine:
    return AssessmentEngine(store, recorder, clock)


def get_dashboard(store: Annotated[RecordStore, Depends(get_store)]) -> DashboardService:
    return DashboardService(store)


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "127.0.0.1"


def incident_context(request: Request) -> IncidentContext:
    return IncidentContext(
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
) -> None:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if not is_admin_token(credentials.credentials):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator privileges required")
