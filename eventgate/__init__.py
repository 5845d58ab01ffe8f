"""eventgate: exactly-once, watermark-ordered admission of event batches."""

from eventgate.core.exceptions import EventGateError, InvalidInputError
from eventgate.protocol import Event, IdentityComparison
from eventgate.streaming import (
    AdmissionBuffer,
    AdmissionStats,
    SynchronizedAdmissionBuffer,
    create_buffer,
)

__all__ = [
    "AdmissionBuffer",
    "AdmissionStats",
    "Event",
    "EventGateError",
    "IdentityComparison",
    "InvalidInputError",
    "SynchronizedAdmissionBuffer",
    "create_buffer",
]
