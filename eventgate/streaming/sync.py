"""Thread-safe wrapper around AdmissionBuffer."""

import threading
from collections.abc import Iterable
from typing import Any, Generic

from eventgate.protocol import IdentityComparison
from eventgate.streaming.buffer import AdmissionBuffer, AdmissionStats, E


class SynchronizedAdmissionBuffer(Generic[E]):
    """AdmissionBuffer whose calls are serialized behind one lock.

    Each ``admit`` reads the watermark, walks the batch and commits while
    holding the lock, so calls from different threads never interleave.
    """

    def __init__(
        self,
        buffer: AdmissionBuffer[E] | None = None,
        identity_comparison: IdentityComparison | str = IdentityComparison.ORDINAL,
    ) -> None:
        """Initialize the synchronized buffer.

        Args:
            buffer: Buffer to guard (creates a new one if None).
            identity_comparison: Comparison mode for a newly created buffer.
        """
        if buffer is None:
            buffer = AdmissionBuffer(identity_comparison)
        self._buffer: AdmissionBuffer[E] = buffer
        self._lock = threading.Lock()

    @property
    def buffer(self) -> AdmissionBuffer[E]:
        """Return the wrapped buffer."""
        return self._buffer

    @property
    def watermark(self) -> Any:
        """Return the timestamp of the last admitted event, or None."""
        with self._lock:
            return self._buffer.watermark

    def current_watermark(self) -> Any:
        """Return the current watermark, or None if nothing was admitted."""
        return self.watermark

    @property
    def identity_comparison(self) -> IdentityComparison:
        """Return the identity comparison mode."""
        return self._buffer.identity_comparison

    @property
    def admitted_count(self) -> int:
        """Return the number of identities admitted so far."""
        with self._lock:
            return self._buffer.admitted_count

    @property
    def stats(self) -> AdmissionStats:
        """Return a snapshot of the admission counters."""
        with self._lock:
            return self._buffer.stats

    def is_admitted(self, identity: str) -> bool:
        """Check whether an identity has ever been admitted."""
        with self._lock:
            return self._buffer.is_admitted(identity)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._buffer

    def admit(self, batch: Iterable[E] | None) -> list[E]:
        """Admit a batch while holding the lock.

        See ``AdmissionBuffer.admit``.
        """
        with self._lock:
            return self._buffer.admit(batch)
