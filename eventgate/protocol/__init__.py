"""eventgate event models."""

from eventgate.protocol.models import Event, IdentityComparison

__all__ = [
    "Event",
    "IdentityComparison",
]
