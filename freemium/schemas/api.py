"""Pydantic schemas for the HTTP API."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from freemium.schemas.quota import PremiumRecord, UsageEvent
from freemium.services.usage_ledger import QuotaStatus


class QuotaStatusResponse(BaseModel):
    """Whether a user may perform another action right now."""

    allowed: bool = Field(..., description="True when the action may proceed.")
    remaining: int | None = Field(
        ..., description="Actions left in the rolling window; null means unlimited."
    )
    is_premium: bool = Field(..., description="True when a valid premium grant applies.")
    limit: int | None = Field(
        ..., description="Actions allowed per rolling window; null means unlimited."
    )

    @classmethod
    def from_status(cls, status: QuotaStatus) -> "QuotaStatusResponse":
        return cls(
            allowed=status.allowed,
            remaining=status.remaining,
            is_premium=status.is_premium,
            limit=status.limit,
        )


class RecordUsageResponse(BaseModel):
    recorded: bool = Field(
        True,
        description="Always true: recording is best-effort and failures are not reported.",
    )


class UsageHistoryResponse(BaseModel):
    events: List[UsageEvent] = Field(default_factory=list, description="Stored events, oldest first.")
    count: int = Field(0, description="Number of stored events (not only the current window).")


class GrantPremiumRequest(BaseModel):
    duration_days: int | None = Field(
        default=None,
        ge=1,
        description="Days of premium access; the configured default (365) when omitted.",
    )


class GrantPremiumResponse(BaseModel):
    granted: bool


class RevokePremiumResponse(BaseModel):
    revoked: bool


class PremiumStatusResponse(BaseModel):
    is_premium: bool = Field(..., description="True when a valid, unexpired grant exists.")
    record: PremiumRecord | None = Field(
        default=None, description="The active grant, when the user is premium."
    )
