"""Login guard routes: check / record failure / reset for a client identifier.

Authentication itself happens elsewhere; these endpoints sit in front of it.
A guard that cannot reach its store fails closed.
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from phishguard.core.errors import RateLimited, StoreUnavailable
from phishguard.routers.deps import client_ip, get_rate_limit_guard
from phishguard.schemas.rate_limit import LoginIdentifierSchema, RateLimitStatusSchema
from phishguard.services.rate_limit import RateLimitGuard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _identifier(request: Request, body: LoginIdentifierSchema) -> str:
    return (body.identifier or "").strip() or client_ip(request)


@router.post("/check-login", response_model=RateLimitStatusSchema)
async def check_login(
    request: Request,
    body: LoginIdentifierSchema,
    guard: Annotated[RateLimitGuard, Depends(get_rate_limit_guard)],
):
    """Whether a login attempt may proceed; 429 while locked out."""
    identifier = _identifier(request, body)
    try:
        return await guard.enforce(identifier)
    except RateLimited as e:
        blocked = RateLimitStatusSchema(allowed=False, remaining_attempts=0, retry_after_seconds=e.retry_after_seconds)
        minutes = -(-e.retry_after_seconds // 60)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={**blocked.model_dump(), "message": f"Account locked. Try again in {minutes} minutes."},
            headers={"Retry-After": str(e.retry_after_seconds)},
        )
    except StoreUnavailable:
        logger.error("Rate limit check unavailable for %s; blocking", identifier)
        blocked = RateLimitStatusSchema(allowed=False, remaining_attempts=0, retry_after_seconds=0)
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=blocked.model_dump())


@router.post("/record-login-failure")
async def record_login_failure(
    request: Request,
    body: LoginIdentifierSchema,
    guard: Annotated[RateLimitGuard, Depends(get_rate_limit_guard)],
):
    """Count a failed login for the identifier."""
    try:
        await guard.record_failure(_identifier(request, body))
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Rate limit store unavailable")
    return {}


@router.post("/reset-login")
async def reset_login(
    request: Request,
    body: LoginIdentifierSchema,
    guard: Annotated[RateLimitGuard, Depends(get_rate_limit_guard)],
):
    """Clear the identifier's counter after a successful login."""
    try:
        await guard.reset(_identifier(request, body))
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Rate limit store unavailable")
    return {}
