"""Premium entitlement records.

A premium grant is a single JSON record per user. Expiry is lazy: the record
is only checked (and cleaned up) when someone asks whether the user is
premium. The store keeps each record a few days past its expiry so that
read path gets a chance to observe and delete it.

Failure policy:
- ``is_premium`` fails closed (False) so a store outage never grants
  unlimited use.
- ``grant_premium`` / ``revoke_premium`` return False when the store write
  did not happen; callers retry or alert.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from freemium.adapters.kv.base import AbstractKeyValueStore
from freemium.core.clock import SECONDS_PER_DAY, Clock, now_ms
from freemium.core.errors import StoreAccessError
from freemium.core.logging import hash_user_id
from freemium.schemas.quota import PremiumRecord

logger = logging.getLogger(__name__)

DEFAULT_DURATION_DAYS = 365
DEFAULT_GRACE_DAYS = 7


def premium_key(user_id: str) -> str:
    return f"premium:{user_id}"


class EntitlementStore:
    """Reads and mutates premium status for users."""

    def __init__(
        self,
        store: AbstractKeyValueStore,
        *,
        default_duration_days: int = DEFAULT_DURATION_DAYS,
        grace_days: int = DEFAULT_GRACE_DAYS,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize the entitlement store.

        Args:
            store: Key-value store holding ``premium:{userId}`` records.
            default_duration_days: Grant length when none is given.
            grace_days: Extra days the store retains a record past expiry.
            clock: Time source returning epoch milliseconds.

        Raises:
            ValueError: If durations are invalid.
        """
        if default_duration_days < 1:
            raise ValueError("default_duration_days must be >= 1")
        if grace_days < 0:
            raise ValueError("grace_days must be >= 0")

        self._store = store
        self._default_duration_days = default_duration_days
        self._grace_days = grace_days
        self._clock = clock

    async def _load_record(self, user_id: str) -> PremiumRecord | None:
        data = await self._store.get_json(premium_key(user_id))
        if not data:
            return None
        return PremiumRecord.model_validate(data)

    async def get_record(self, user_id: str) -> PremiumRecord | None:
        """Return the stored grant as-is (expired or not), None on absence or failure."""
        try:
            return await self._load_record(user_id)
        except (StoreAccessError, ValidationError) as exc:
            logger.warning(
                "premium.read_failed",
                extra={
                    "user_hash": hash_user_id(user_id),
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return None

    async def is_premium(self, user_id: str) -> bool:
        """Whether the user currently holds a valid premium grant.

        An expired record is deleted as a side effect. Any store or decoding
        failure yields False.
        """
        user_hash = hash_user_id(user_id)
        try:
            record = await self._load_record(user_id)
            if record is None:
                return False

            if record.is_expired(self._clock()):
                await self._store.delete(premium_key(user_id))
                logger.info(
                    "premium.expired",
                    extra={"user_hash": user_hash, "expires_at": record.expires_at},
                )
                return False

            return True
        except (StoreAccessError, ValidationError) as exc:
            logger.error(
                "premium.check_failed",
                extra={
                    "user_hash": user_hash,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return False

    async def grant_premium(self, user_id: str, duration_days: int | None = None) -> bool:
        """Grant premium for ``duration_days`` starting now.

        A new grant replaces any existing one; remaining time is not carried
        over.

        Args:
            user_id: Opaque user identifier.
            duration_days: Calendar days of entitlement (defaults to the
                store's configured default).

        Returns:
            True when the record was written, False on store failure.

        Raises:
            ValueError: If duration_days is not a positive integer.
        """
        days = self._default_duration_days if duration_days is None else duration_days
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValueError("duration_days must be a positive integer")

        record = PremiumRecord.issue(user_id, now=self._clock(), duration_days=days)
        ttl_seconds = (days + self._grace_days) * SECONDS_PER_DAY
        user_hash = hash_user_id(user_id)

        try:
            await self._store.put_json(
                premium_key(user_id),
                record.to_wire(),
                expiration_ttl=ttl_seconds,
            )
        except StoreAccessError as exc:
            logger.error(
                "premium.grant_failed",
                extra={"user_hash": user_hash, "error_code": exc.code, "error_msg": exc.message},
            )
            return False

        logger.info(
            "premium.granted",
            extra={
                "user_hash": user_hash,
                "duration_days": days,
                "expires_at": record.expires_at,
                "ttl_s": ttl_seconds,
            },
        )
        return True

    async def revoke_premium(self, user_id: str) -> bool:
        """Remove any premium grant. Revoking a non-premium user succeeds."""
        user_hash = hash_user_id(user_id)
        try:
            await self._store.delete(premium_key(user_id))
        except StoreAccessError as exc:
            logger.error(
                "premium.revoke_failed",
                extra={"user_hash": user_hash, "error_code": exc.code, "error_msg": exc.message},
            )
            return False

        logger.info("premium.revoked", extra={"user_hash": user_hash})
        return True
