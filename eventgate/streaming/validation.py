"""Batch validation and admitted-sequence auditing."""

from collections.abc import Iterable
from typing import Any, Protocol

from eventgate.core.exceptions import EventGateError, InvalidInputError
from eventgate.protocol import IdentityComparison


class AdmissibleEvent(Protocol):
    """Anything the admission buffer can decide on.

    ``Event`` is the concrete model, but any object exposing an identity
    string and a timestamp comparable with the other timestamps works.
    """

    @property
    def identity(self) -> str: ...

    @property
    def timestamp(self) -> Any: ...


class AdmissionOrderError(EventGateError):
    """Violation found when auditing an admitted sequence."""

    def __init__(
        self,
        message: str,
        event: AdmissibleEvent | None = None,
        previous: AdmissibleEvent | None = None,
    ) -> None:
        """Initialize admission order error.

        Args:
            message: Error message.
            event: The event that broke the ordering or uniqueness rule.
            previous: The earlier event it conflicts with, if any.
        """
        super().__init__(message)
        self.event = event
        self.previous = previous


def validate_batch(batch: Iterable[AdmissibleEvent] | None) -> list[AdmissibleEvent]:
    """Materialize a batch and check every event carries a usable identity.

    The whole batch is inspected before anything is returned, so a caller
    that mutates state only afterwards never observes a partial batch.

    Args:
        batch: Events offered for admission, in any order.

    Returns:
        The batch as a list, in its original order.

    Raises:
        InvalidInputError: If the batch is missing or not iterable, or an
            event lacks a non-empty identity or a timestamp.
    """
    if batch is None:
        raise InvalidInputError("Batch must not be None")

    try:
        events = list(batch)
    except TypeError as e:
        raise InvalidInputError(
            f"Batch must be an iterable of events, got {type(batch).__name__}"
        ) from e

    for index, event in enumerate(events):
        identity = getattr(event, "identity", None)
        if not isinstance(identity, str) or not identity.strip():
            raise InvalidInputError(
                "identity must be a non-empty string",
                index=index,
                event=event,
            )
        if getattr(event, "timestamp", None) is None:
            raise InvalidInputError(
                "timestamp is missing",
                index=index,
                event=event,
            )

    return events


def validate_admitted_sequence(
    events: list[AdmissibleEvent],
    watermark: Any = None,
    identity_comparison: IdentityComparison = IdentityComparison.ORDINAL,
) -> list[AdmissionOrderError]:
    """Audit a sequence of admitted events and return all violations.

    Checks the two guarantees of an admitted stream: timestamps strictly
    increase (starting above ``watermark`` when given) and no identity
    appears twice. Unlike ``validate_batch`` nothing is raised.

    Args:
        events: Concatenated admitted results, in call order.
        watermark: Watermark in force before the first event, if any.
        identity_comparison: How identities are compared for uniqueness.

    Returns:
        List of AdmissionOrderError for every violation found.
    """
    errors: list[AdmissionOrderError] = []
    seen: dict[str, AdmissibleEvent] = {}
    previous: AdmissibleEvent | None = None

    for event in events:
        if previous is not None:
            if event.timestamp <= previous.timestamp:
                errors.append(
                    AdmissionOrderError(
                        f"Timestamp {event.timestamp} of '{event.identity}' does "
                        f"not exceed {previous.timestamp} of '{previous.identity}'",
                        event=event,
                        previous=previous,
                    )
                )
        elif watermark is not None and event.timestamp <= watermark:
            errors.append(
                AdmissionOrderError(
                    f"Timestamp {event.timestamp} of '{event.identity}' does "
                    f"not exceed watermark {watermark}",
                    event=event,
                )
            )

        key = identity_comparison.key(event.identity)
        if key in seen:
            errors.append(
                AdmissionOrderError(
                    f"Duplicate identity: '{event.identity}'",
                    event=event,
                    previous=seen[key],
                )
            )
        else:
            seen[key] = event

        previous = event

    return errors
