"""Watermark admission buffer for unordered event batches."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from eventgate.core.exceptions import InvalidInputError
from eventgate.protocol import IdentityComparison
from eventgate.streaming.validation import AdmissibleEvent, validate_batch

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=AdmissibleEvent)


@dataclass(frozen=True)
class AdmissionStats:
    """Counters accumulated over the lifetime of a buffer."""

    batches: int = 0
    received: int = 0
    admitted: int = 0
    duplicates: int = 0
    outdated: int = 0


def _admission_order(event: AdmissibleEvent) -> tuple[Any, str]:
    # Ties on timestamp break on the raw identity, compared code point by
    # code point, so the outcome never depends on batch order.
    return (event.timestamp, event.identity)


class AdmissionBuffer(Generic[E]):
    """Exactly-once, watermark-ordered admission of timestamped events.

    Holds a watermark (the timestamp of the most recently admitted event,
    or None before the first admission) and the set of identities ever
    admitted. Each call to ``admit`` returns the events of a batch that may
    be processed now, in strictly increasing timestamp order:

    - An identity is admitted at most once over the buffer's lifetime.
    - An event is admitted only if its timestamp is strictly greater than
      the watermark; admitting it moves the watermark to its timestamp.

    The admitted-identity set is never evicted and grows without bound.

    Not thread-safe: a buffer serves a single logical consumer. Wrap it in
    ``SynchronizedAdmissionBuffer`` when several threads share one.
    """

    def __init__(
        self,
        identity_comparison: IdentityComparison | str = IdentityComparison.ORDINAL,
    ) -> None:
        """Initialize the admission buffer.

        Args:
            identity_comparison: How identities are matched against the
                admitted set. Ordering ties always break on the raw identity.
        """
        self._identity_comparison = IdentityComparison(identity_comparison)
        self._admitted: set[str] = set()
        self._watermark: Any = None
        self._stats = AdmissionStats()

    @property
    def watermark(self) -> Any:
        """Return the timestamp of the last admitted event, or None."""
        return self._watermark

    def current_watermark(self) -> Any:
        """Return the current watermark, or None if nothing was admitted."""
        return self._watermark

    @property
    def identity_comparison(self) -> IdentityComparison:
        """Return the identity comparison mode."""
        return self._identity_comparison

    @property
    def admitted_count(self) -> int:
        """Return the number of identities admitted so far."""
        return len(self._admitted)

    @property
    def stats(self) -> AdmissionStats:
        """Return a snapshot of the admission counters."""
        return self._stats

    def is_admitted(self, identity: str) -> bool:
        """Check whether an identity has ever been admitted.

        Args:
            identity: Identity token to look up.

        Returns:
            True if an event with this identity was returned by ``admit``.
        """
        return self._identity_comparison.key(identity) in self._admitted

    def __contains__(self, identity: object) -> bool:
        return isinstance(identity, str) and self.is_admitted(identity)

    def admit(self, batch: Iterable[E] | None) -> list[E]:
        """Return the events of a batch that are admitted now.

        Events already admitted in an earlier call, repeated within the
        batch, or not newer than the watermark are dropped silently. The
        batch is validated as a whole first; on error nothing changes.

        Candidates are considered by ``(timestamp, identity)``. Copies that
        share both are not told apart by payload: the one offered first in
        the batch is returned.

        Args:
            batch: Events in any order, possibly with duplicates.

        Returns:
            Admitted events, strictly increasing by timestamp.

        Raises:
            InvalidInputError: If the batch is missing or any event lacks a
                non-empty identity.
        """
        try:
            events = validate_batch(batch)
        except InvalidInputError as e:
            logger.warning("Rejected admission batch: %s", e)
            raise

        key = self._identity_comparison.key
        candidates = [e for e in events if key(e.identity) not in self._admitted]
        candidates.sort(key=_admission_order)

        admitted: list[E] = []
        admitted_keys: set[str] = set()
        watermark = self._watermark
        outdated = 0

        for event in candidates:
            event_key = key(event.identity)
            # Admitted earlier in this walk
            if event_key in admitted_keys:
                continue

            if watermark is not None and event.timestamp <= watermark:
                outdated += 1
                continue

            admitted.append(event)
            admitted_keys.add(event_key)
            watermark = event.timestamp

        # Commit only once the whole walk has succeeded.
        self._admitted.update(admitted_keys)
        self._watermark = watermark

        duplicates = len(events) - len(admitted) - outdated
        self._stats = AdmissionStats(
            batches=self._stats.batches + 1,
            received=self._stats.received + len(events),
            admitted=self._stats.admitted + len(admitted),
            duplicates=self._stats.duplicates + duplicates,
            outdated=self._stats.outdated + outdated,
        )

        logger.debug(
            "Admitted %d of %d events (%d duplicate, %d outdated), watermark=%s",
            len(admitted),
            len(events),
            duplicates,
            outdated,
            watermark,
        )
        return admitted
