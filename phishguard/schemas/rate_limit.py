"""Pydantic schemas for the login brute-force guard."""
from pydantic import BaseModel, Field


class RateLimitStatusSchema(BaseModel):
    allowed: bool
    remaining_attempts: int = Field(ge=0)
    retry_after_seconds: int = Field(default=0, ge=0)


class LoginIdentifierSchema(BaseModel):
    # client IP; taken from the request when omitted
    identifier: str | None = Field(default=None, max_length=64)
