"""
Attempt outcomes, failure classification, and the provider error hierarchy.

One HTTP attempt against the provider yields exactly one tagged outcome:

  Success           → 2xx with a JSON body
  RetriableFailure  → 400/401/403/429 or any 5xx; another credential may work
  FatalFailure      → any other status, a transport error, or a 2xx body
                      that is not JSON; retrying with another key won't help

Retriable failures are plain values folded by the executor.  Only
exhaustion and fatal conditions become exceptions.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Union

from config.model_params import RATE_LIMIT_STATUS, RETRIABLE_STATUSES


# ---------------------------------------------------------------------------
# Error categories
# ---------------------------------------------------------------------------

class FailureCategory:
    """
    Category constants attached to every failed attempt.

    Used for log lines and diagnostics; the retry decision itself depends
    only on the status code (see :func:`is_retriable_status`).
    """

    AUTH_REJECTED = "auth_rejected"
    RATE_LIMIT = "rate_limit_exceeded"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    TRANSPORT_ERROR = "transport_error"
    INVALID_RESPONSE = "invalid_response"

    @staticmethod
    def for_status(status: int) -> str:
        """Map an HTTP status code to its failure category."""
        if status == RATE_LIMIT_STATUS:
            return FailureCategory.RATE_LIMIT
        if status >= 500:
            return FailureCategory.SERVER_ERROR
        if status in RETRIABLE_STATUSES:
            return FailureCategory.AUTH_REJECTED
        return FailureCategory.CLIENT_ERROR


def is_retriable_status(status: int) -> bool:
    """
    Decide whether a failed status should move on to the next credential.

    Args:
        status: HTTP status code of a non-2xx response.

    Returns:
        ``True`` for 400, 401, 403, 429 and every 5xx.
    """
    return status in RETRIABLE_STATUSES or status >= 500


# ---------------------------------------------------------------------------
# Attempt outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Success:
    response: dict[str, Any]
    status: int = 200


@dataclass(frozen=True)
class RetriableFailure:
    status: int
    category: str
    message: str = ""


@dataclass(frozen=True)
class FatalFailure:
    status: int | None
    category: str
    message: str = ""


AttemptOutcome = Union[Success, RetriableFailure, FatalFailure]


def classify_status(status: int, body: Any, message: str = "") -> AttemptOutcome:
    """
    Turn an HTTP status and decoded body into an attempt outcome.

    Args:
        status: HTTP status code.
        body: Decoded JSON body, or ``None`` when the body was not JSON.
        message: Short diagnostic text (usually a body excerpt).

    Returns:
        :class:`Success`, :class:`RetriableFailure` or :class:`FatalFailure`.
    """
    if 200 <= status < 300:
        if not isinstance(body, dict):
            return FatalFailure(status, FailureCategory.INVALID_RESPONSE,
                                message or "Response body is not a JSON object")
        return Success(body, status)

    category = FailureCategory.for_status(status)
    if is_retriable_status(status):
        return RetriableFailure(status, category, message)
    return FatalFailure(status, category, message)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ProviderError(Exception):
    """Base class for every failure surfaced by the API client."""


class ConfigurationError(ProviderError):
    """No usable credential (or other required setting); never retried."""


class FatalProviderError(ProviderError):
    """
    A non-retriable attempt failure, raised without trying further keys.

    Attributes:
        failure: The :class:`FatalFailure` that caused it.
    """

    def __init__(self, failure: FatalFailure):
        status = f"status {failure.status}" if failure.status is not None else "no status"
        super().__init__(f"{failure.category} ({status}): {failure.message}")
        self.failure = failure


class DeadlineExceeded(FatalProviderError):
    """The caller's deadline expired before the operation could finish."""

    def __init__(self, message: str = "Deadline exceeded"):
        super().__init__(FatalFailure(None, FailureCategory.TRANSPORT_ERROR, message))


class AllCredentialsExhausted(ProviderError):
    """
    Every credential in the pool returned a retriable failure.

    Attributes:
        failures: One :class:`RetriableFailure` per credential tried, in order.
    """

    def __init__(self, failures: list[RetriableFailure]):
        self.failures = list(failures)
        last = self.last_failure
        detail = f"last status {last.status} [{last.category}]" if last else "no attempts"
        super().__init__(f"All {len(self.failures)} API keys failed ({detail}).")

    @property
    def last_failure(self) -> RetriableFailure | None:
        return self.failures[-1] if self.failures else None

    @property
    def rate_limited(self) -> bool:
        """True when every credential answered with HTTP 429."""
        return bool(self.failures) and all(
            f.status == RATE_LIMIT_STATUS for f in self.failures
        )


class AllModelsExhausted(ProviderError):
    """
    No model in the fallback list produced text.

    Attributes:
        last_error: Last underlying exception, or ``None`` when every model
            answered successfully but without text.
        attempted: Model identifiers tried, in order.
    """

    def __init__(self, last_error: Exception | None, attempted: list[str]):
        self.last_error = last_error
        self.attempted = list(attempted)
        reason = str(last_error) if last_error else "empty responses"
        super().__init__(
            f"All models and keys failed to generate content "
            f"({len(self.attempted)} models tried; last error: {reason})."
        )


class TranscriptionError(ProviderError):
    """The speech-to-text provider call failed."""


# ---------------------------------------------------------------------------
# Backoff helpers
# ---------------------------------------------------------------------------

def remaining_time(deadline: float | None) -> float | None:
    """Seconds left before a ``time.monotonic()`` deadline, or ``None``."""
    if deadline is None:
        return None
    return deadline - time.monotonic()


def bounded_timeout(timeout: float, deadline: float | None) -> float:
    """
    Clip a per-attempt timeout to the caller's deadline.

    Raises:
        DeadlineExceeded: No time is left.
    """
    left = remaining_time(deadline)
    if left is None:
        return timeout
    if left <= 0:
        raise DeadlineExceeded()
    return min(timeout, left)


def cooldown(seconds: float, deadline: float | None = None) -> None:
    """
    Sleep before moving on to the next model, never past the deadline.

    Raises:
        DeadlineExceeded: The deadline expires during (or before) the pause.
    """
    left = remaining_time(deadline)
    if left is not None and left <= seconds:
        if left > 0:
            time.sleep(left)
        raise DeadlineExceeded("Deadline exceeded during rate-limit cooldown")
    time.sleep(seconds)
