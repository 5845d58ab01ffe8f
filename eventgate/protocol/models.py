"""eventgate event data models."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IdentityComparison(StrEnum):
    """How two identity tokens are decided to name the same occurrence."""

    ORDINAL = "ordinal"
    CASEFOLD = "casefold"

    def key(self, identity: str) -> str:
        """Return the key under which an identity is remembered."""
        if self is IdentityComparison.CASEFOLD:
            return identity.casefold()
        return identity


class Event(BaseModel):
    """A single timestamped occurrence offered for admission.

    The identity is not checked for emptiness here: whether an event is
    admissible is decided by the buffer receiving it.
    """

    model_config = ConfigDict(frozen=True)

    identity: str = Field(..., description="Token naming one logical occurrence")
    timestamp: datetime = Field(..., description="Occurrence instant")
    payload: Any = Field(None, description="Opaque associated data")

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        """Interpret naive timestamps as UTC so all instants compare."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v
