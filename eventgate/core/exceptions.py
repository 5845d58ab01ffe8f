"""eventgate exceptions."""

from typing import Any


class EventGateError(Exception):
    """Base exception for all eventgate errors."""


class InvalidInputError(EventGateError):
    """A batch handed to the admission buffer violates the call contract.

    Raised for a missing or non-iterable batch and for any event without a
    usable identity. Raising it guarantees the buffer state is untouched.
    """

    def __init__(
        self,
        message: str,
        index: int | None = None,
        event: Any = None,
    ):
        self.message = message
        self.index = index
        self.event = event

        if index is not None:
            full_message = f"Event {index}: {message}"
        else:
            full_message = message

        super().__init__(full_message)
