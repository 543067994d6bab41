"""Pydantic models for the values persisted in the key-value store.

Field names are camelCase on the wire (``activatedAt``, ``expiresAt``...)
for compatibility with records written by other clients of the same keys.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from freemium.core.clock import MS_PER_DAY


class UsageEvent(BaseModel):
    """One consumed action."""

    timestamp: int = Field(..., description="Epoch milliseconds when the action was recorded.")

    model_config = ConfigDict(frozen=True)


UsageLog = TypeAdapter(list[UsageEvent])


class PremiumRecord(BaseModel):
    """A time-bounded premium entitlement stored under ``premium:{userId}``.

    Only ``expiresAt`` drives the entitlement check; a record without it is
    treated as a grant that never lapses.
    """

    user_id: str | None = Field(default=None, description="Owner of the grant.")
    activated_at: int | None = Field(default=None, description="Epoch ms when granted.")
    expires_at: int | None = Field(default=None, description="Epoch ms when the grant lapses.")
    duration_days: int | None = Field(default=None, description="Granted length in days.")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        frozen=True,
    )

    @classmethod
    def issue(cls, user_id: str, *, now: int, duration_days: int) -> "PremiumRecord":
        """Build a fresh grant starting at ``now``."""
        return cls(
            user_id=user_id,
            activated_at=now,
            expires_at=now + duration_days * MS_PER_DAY,
            duration_days=duration_days,
        )

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
