"""Error types raised while analysing content.

Every failure is an :class:`AnalysisError` tagged with an :class:`ErrorKind`,
so callers can branch on ``exc.kind`` (or catch a specific subclass) instead
of matching on message text.  ``exc.message`` keeps the human-readable text
for display.
"""

import copy
from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories of an analysis call."""

    INVALID_INPUT = "invalid_input"
    TRANSPORT = "transport"
    RETRY_EXHAUSTED = "retry_exhausted"
    MALFORMED_RESPONSE = "malformed_response"
    DEADLINE_EXCEEDED = "deadline_exceeded"


class AnalysisError(Exception):
    """Base class for every analysis failure.

    Attributes:
        kind: The :class:`ErrorKind` tag of this failure.
        message: Human-readable description.
    """

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def with_prefix(self, prefix: str) -> "AnalysisError":
        """Return a copy of this error whose message starts with *prefix*.

        The copy keeps the concrete type and every extra attribute
        (``status_code``, ``attempts``), only the message changes.
        """
        wrapped = copy.copy(self)
        wrapped.message = f"{prefix}{self.message}"
        wrapped.args = (wrapped.message,)
        return wrapped


class InvalidInputError(AnalysisError):
    """Missing API key, missing content, or unknown content type."""

    kind = ErrorKind.INVALID_INPUT


class TransportError(AnalysisError):
    """The HTTP call failed or returned a non-success status.

    Attributes:
        status_code: HTTP status of the failing response, ``None`` when the
            request never got a response (connection error, timeout).
    """

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RetryExhaustedError(TransportError):
    """A retryable status persisted through every allowed attempt."""

    kind = ErrorKind.RETRY_EXHAUSTED

    def __init__(
        self,
        message: str = "Max retries reached",
        *,
        status_code: int | None = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.attempts = attempts


class DeadlineExceededError(TransportError):
    """The caller-supplied deadline elapsed before a response arrived."""

    kind = ErrorKind.DEADLINE_EXCEEDED


class MalformedResponseError(AnalysisError):
    """Success status, but the body lacks ``choices[0].message.content``."""

    kind = ErrorKind.MALFORMED_RESPONSE
