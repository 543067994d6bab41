"""Rolling-window usage ledger for free users.

Each user has one JSON list of ``{"timestamp": <epoch ms>}`` entries under
``usage:{userId}``, appended to in chronological order. A check counts the
entries younger than the window; old entries are never pruned here and
disappear when the store's TTL (reset on every write) runs out.

Premium users short-circuit the count entirely.

Failure policy:
- ``check_limit`` fails open: a store outage should not block the service.
- ``record_usage`` is best-effort and never reports failure.

The read-modify-write in ``record_usage`` is not atomic; two concurrent
recordings for the same user can lose one event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from freemium.adapters.kv.base import AbstractKeyValueStore
from freemium.core.clock import MS_PER_SECOND, Clock, now_ms
from freemium.core.errors import StoreAccessError
from freemium.core.logging import hash_user_id
from freemium.schemas.quota import UsageEvent, UsageLog
from freemium.services.entitlements import EntitlementStore

logger = logging.getLogger(__name__)

DEFAULT_FREE_LIMIT = 3
DEFAULT_WINDOW_SECONDS = 24 * 60 * 60
DEFAULT_RETENTION_SECONDS = 48 * 60 * 60


def usage_key(user_id: str) -> str:
    return f"usage:{user_id}"


@dataclass(frozen=True)
class QuotaStatus:
    """Result of a quota check.

    Attributes:
        allowed: Whether the user may perform another action now.
        remaining: Actions left in the current window, None when unlimited.
        is_premium: Whether a valid premium grant short-circuited the check.
        limit: Per-window allowance, None when unlimited.
    """

    allowed: bool
    remaining: int | None
    is_premium: bool
    limit: int | None

    @property
    def unlimited(self) -> bool:
        return self.remaining is None


class UsageLedger:
    """Counts and records actions per user over a rolling window."""

    def __init__(
        self,
        store: AbstractKeyValueStore,
        entitlements: EntitlementStore | None = None,
        *,
        limit: int = DEFAULT_FREE_LIMIT,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        retention_seconds: int = DEFAULT_RETENTION_SECONDS,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize the ledger.

        Args:
            store: Key-value store holding ``usage:{userId}`` lists.
            entitlements: Premium lookup consulted before counting. Built
                over the same store when omitted.
            limit: Free actions per window.
            window_seconds: Length of the rolling window.
            retention_seconds: Store TTL for a user's list, reset on write.
            clock: Time source returning epoch milliseconds.

        Raises:
            ValueError: If limit or durations are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if retention_seconds < window_seconds:
            raise ValueError("retention_seconds must be >= window_seconds")

        self._store = store
        self._entitlements = entitlements or EntitlementStore(store, clock=clock)
        self._limit = limit
        self._window_ms = window_seconds * MS_PER_SECOND
        self._retention_seconds = retention_seconds
        self._clock = clock

    @property
    def entitlements(self) -> EntitlementStore:
        return self._entitlements

    async def _load_events(self, user_id: str) -> list[UsageEvent]:
        data = await self._store.get_json(usage_key(user_id))
        if not data:
            return []
        return UsageLog.validate_python(data)

    async def _load_salvageable_events(self, user_id: str) -> list[UsageEvent]:
        """Read the stored log keeping every entry that still validates.

        Used on the write path so one corrupt entry does not erase the
        valid entries stored alongside it.

        Raises:
            StoreAccessError: If the store read fails.
        """
        data = await self._store.get_json(usage_key(user_id))
        if not data:
            return []
        if not isinstance(data, list):
            logger.warning(
                "usage.log_malformed",
                extra={"user_hash": hash_user_id(user_id), "payload_type": type(data).__name__},
            )
            return []

        events: list[UsageEvent] = []
        for entry in data:
            try:
                events.append(UsageEvent.model_validate(entry))
            except ValidationError:
                continue

        dropped = len(data) - len(events)
        if dropped:
            logger.warning(
                "usage.entries_dropped",
                extra={"user_hash": hash_user_id(user_id), "dropped_events": dropped},
            )
        return events

    def _fail_open(self) -> QuotaStatus:
        return QuotaStatus(allowed=True, remaining=self._limit, is_premium=False, limit=self._limit)

    async def check_limit(self, user_id: str) -> QuotaStatus:
        """Decide whether the user may perform another action.

        Events exactly ``window_seconds`` old no longer count.

        Returns:
            QuotaStatus for the user. On store failure, a permissive status
            with the full allowance remaining.
        """
        user_hash = hash_user_id(user_id)
        try:
            if await self._entitlements.is_premium(user_id):
                return QuotaStatus(allowed=True, remaining=None, is_premium=True, limit=None)

            events = await self._load_events(user_id)
        except (StoreAccessError, ValidationError) as exc:
            logger.error(
                "usage.check_failed",
                extra={
                    "user_hash": user_hash,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return self._fail_open()

        now = self._clock()
        used = sum(1 for event in events if now - event.timestamp < self._window_ms)
        status = QuotaStatus(
            allowed=used < self._limit,
            remaining=max(0, self._limit - used),
            is_premium=False,
            limit=self._limit,
        )

        logger.info(
            "usage.checked" if status.allowed else "usage.limit_reached",
            extra={
                "user_hash": user_hash,
                "used": used,
                "limit": self._limit,
                "remaining": status.remaining,
            },
        )
        return status

    async def record_usage(self, user_id: str) -> None:
        """Append one event stamped now. Best-effort: failures are only logged."""
        user_hash = hash_user_id(user_id)
        try:
            events = await self._load_salvageable_events(user_id)
        except StoreAccessError as exc:
            # Start a fresh list rather than dropping this event
            logger.warning(
                "usage.load_failed",
                extra={
                    "user_hash": user_hash,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            events = []

        events.append(UsageEvent(timestamp=self._clock()))

        try:
            await self._store.put_json(
                usage_key(user_id),
                [event.model_dump() for event in events],
                expiration_ttl=self._retention_seconds,
            )
        except StoreAccessError as exc:
            logger.error(
                "usage.record_failed",
                extra={"user_hash": user_hash, "error_code": exc.code, "error_msg": exc.message},
            )
            return

        logger.info(
            "usage.recorded",
            extra={"user_hash": user_hash, "stored_events": len(events)},
        )

    async def usage_history(self, user_id: str) -> list[UsageEvent]:
        """All stored events for the user, oldest first (empty on failure)."""
        try:
            return await self._load_events(user_id)
        except (StoreAccessError, ValidationError) as exc:
            logger.warning(
                "usage.load_failed",
                extra={
                    "user_hash": hash_user_id(user_id),
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return []
