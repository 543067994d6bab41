from __future__ import annotations

from dataclasses import replace
from typing import Annotated

from fastapi import APIRouter, Depends, status

from freemium.core.auth import verify_api_key
from freemium.core.errors import QuotaExceededError
from freemium.core.store import get_usage_ledger
from freemium.schemas.api import QuotaStatusResponse, RecordUsageResponse, UsageHistoryResponse
from freemium.services.usage_ledger import UsageLedger

router = APIRouter(
    prefix="/users/{user_id}",
    tags=["Usage"],
    dependencies=[Depends(verify_api_key)],
)

Ledger = Annotated[UsageLedger, Depends(get_usage_ledger)]


@router.get("/quota", response_model=QuotaStatusResponse)
async def get_quota(user_id: str, ledger: Ledger) -> QuotaStatusResponse:
    """Report whether the user may perform another action.

    Does not consume anything. During a store outage this reports the full
    free allowance rather than blocking the user.
    """
    result = await ledger.check_limit(user_id)
    return QuotaStatusResponse.from_status(result)


@router.post(
    "/usage",
    response_model=RecordUsageResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def record_usage(user_id: str, ledger: Ledger) -> RecordUsageResponse:
    """Record one action for the user (best-effort)."""
    await ledger.record_usage(user_id)
    return RecordUsageResponse()


@router.post("/usage/consume", response_model=QuotaStatusResponse)
async def consume(user_id: str, ledger: Ledger) -> QuotaStatusResponse:
    """Check the quota and, when allowed, record one action.

    Raises:
        QuotaExceededError: 429 when a free user has used up the window.
    """
    result = await ledger.check_limit(user_id)
    if not result.allowed:
        raise QuotaExceededError(
            code="quota_exceeded",
            message="Free usage limit reached. Try again later or upgrade to premium.",
            details={"limit": result.limit or 0, "remaining": 0},
        )

    await ledger.record_usage(user_id)

    if result.remaining is not None:
        remaining = result.remaining - 1
        result = replace(result, remaining=remaining, allowed=remaining > 0)
    return QuotaStatusResponse.from_status(result)


@router.get("/usage", response_model=UsageHistoryResponse)
async def usage_history(user_id: str, ledger: Ledger) -> UsageHistoryResponse:
    """List every stored event for the user, including ones outside the window."""
    events = await ledger.usage_history(user_id)
    return UsageHistoryResponse(events=events, count=len(events))
