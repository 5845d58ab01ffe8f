"""eventgate admission module.

Provides the watermark admission buffer, its thread-safe wrapper, and batch
and sequence validation.
"""

from eventgate.streaming.buffer import AdmissionBuffer, AdmissionStats
from eventgate.streaming.factory import create_buffer
from eventgate.streaming.sync import SynchronizedAdmissionBuffer
from eventgate.streaming.validation import (
    AdmissibleEvent,
    AdmissionOrderError,
    validate_admitted_sequence,
    validate_batch,
)

__all__ = [
    "AdmissibleEvent",
    "AdmissionBuffer",
    "AdmissionOrderError",
    "AdmissionStats",
    "SynchronizedAdmissionBuffer",
    "create_buffer",
    "validate_admitted_sequence",
    "validate_batch",
]
