from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from freemium.core.auth import verify_api_key
from freemium.core.errors import StoreAccessError
from freemium.core.store import get_entitlement_store
from freemium.schemas.api import (
    GrantPremiumRequest,
    GrantPremiumResponse,
    PremiumStatusResponse,
    RevokePremiumResponse,
)
from freemium.services.entitlements import EntitlementStore

router = APIRouter(
    prefix="/users/{user_id}/premium",
    tags=["Premium"],
    dependencies=[Depends(verify_api_key)],
)

Entitlements = Annotated[EntitlementStore, Depends(get_entitlement_store)]


@router.get("", response_model=PremiumStatusResponse)
async def get_premium(user_id: str, entitlements: Entitlements) -> PremiumStatusResponse:
    """Premium status for the user. Reading an expired grant removes it."""
    if not await entitlements.is_premium(user_id):
        return PremiumStatusResponse(is_premium=False)

    record = await entitlements.get_record(user_id)
    return PremiumStatusResponse(is_premium=True, record=record)


@router.put("", response_model=GrantPremiumResponse)
async def grant_premium(
    user_id: str,
    entitlements: Entitlements,
    body: GrantPremiumRequest | None = None,
) -> GrantPremiumResponse:
    """Grant premium starting now, replacing any existing grant.

    Called by the payment flow once a purchase settles.

    Raises:
        StoreAccessError: 503 when the grant could not be written; the
            caller should retry.
    """
    duration_days = body.duration_days if body else None
    if not await entitlements.grant_premium(user_id, duration_days):
        raise StoreAccessError(
            "Premium grant was not applied. Retry later.",
            operation="put",
        )
    return GrantPremiumResponse(granted=True)


@router.delete("", response_model=RevokePremiumResponse)
async def revoke_premium(user_id: str, entitlements: Entitlements) -> RevokePremiumResponse:
    """Remove premium for the user. Succeeds when there was nothing to remove."""
    if not await entitlements.revoke_premium(user_id):
        raise StoreAccessError(
            "Premium revocation was not applied. Retry later.",
            operation="delete",
        )
    return RevokePremiumResponse(revoked=True)
