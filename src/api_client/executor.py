"""
Request construction and credential-failover execution.

Design notes:
- The credential travels in the URL query string (``?key=``), so every
  diagnostic string built from a URL or a transport exception is passed
  through :func:`redact` before it reaches a log line or an exception.
- :func:`execute_request` folds tagged outcomes from :func:`attempt_request`
  instead of catching ``requests.HTTPError``; retry policy lives in
  :mod:`.retry`, not in exception types.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import requests

from config.model_params import PARAM_MAPPING, REQUEST_TIMEOUT_SECONDS

from .config import GEMINI_API_BASE
from .credentials import mask_credential, require_credentials
from .retry import (
    AllCredentialsExhausted,
    AttemptOutcome,
    FailureCategory,
    FatalFailure,
    FatalProviderError,
    RetriableFailure,
    Success,
    bounded_timeout,
    classify_status,
)

logger = logging.getLogger(__name__)

# Body excerpt length kept in failure messages
_MESSAGE_CHARS = 300


# ---------------------------------------------------------------------------
# Request values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Attachment:
    """Inline binary part: base64 payload plus its MIME type."""

    mime_type: str
    data: str


@dataclass(frozen=True)
class RequestSpec:
    """
    One logical request: a JSON payload and a ``credential → URL`` builder.

    Built fresh for each operation and never shared between requests.
    """

    payload: dict[str, Any]
    build_url: Callable[[str], str]


# ---------------------------------------------------------------------------
# Parameter handling
# ---------------------------------------------------------------------------

def filter_params(universal_params: dict) -> dict:
    """
    Translate universal parameter names to Gemini ``generationConfig`` names.

    Parameters that map to ``None`` (or are unknown) are omitted.

    Args:
        universal_params: Dict of universal parameter names → values.

    Returns:
        Dict with provider-specific names, unsupported params dropped.
    """
    return {
        provider_name: value
        for universal_name, value in universal_params.items()
        if (provider_name := PARAM_MAPPING.get(universal_name)) is not None
    }


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------

def build_request_payload(
    prompt: str,
    params: dict,
    attachment: Attachment | None = None,
) -> dict:
    """
    Construct the ``generateContent`` request body.

    Args:
        prompt: Prompt text, passed through untouched.
        params: Universal generation parameters (see ``config.model_params``).
        attachment: Optional inline image/audio part.

    Returns:
        Dict suitable for the ``json=`` argument of ``requests.post()``.
    """
    parts: list[dict] = [{"text": prompt}]
    if attachment is not None:
        parts.append({
            "inline_data": {
                "mime_type": attachment.mime_type,
                "data": attachment.data,
            }
        })
    return {
        "contents": [{"parts": parts}],
        "generationConfig": filter_params(params),
    }


def build_generate_url(model: str, api_base: str = GEMINI_API_BASE) -> Callable[[str], str]:
    """
    Return a builder mapping a credential to the model's endpoint URL.

    Args:
        model: Model identifier, e.g. ``'gemini-2.5-flash'``.
        api_base: Provider base URL (``.../v1beta``).

    Returns:
        ``credential → '<base>/models/<model>:generateContent?key=<credential>'``.
    """
    endpoint = f"{api_base.rstrip('/')}/models/{model}:generateContent"

    def build(credential: str) -> str:
        return f"{endpoint}?key={credential}"

    return build


def redact(text: str, credential: str) -> str:
    """Replace every occurrence of ``credential`` in ``text`` with its mask."""
    if not credential:
        return text
    return text.replace(credential, mask_credential(credential))


# ---------------------------------------------------------------------------
# Single attempt
# ---------------------------------------------------------------------------

def attempt_request(url: str, payload: dict, timeout: float) -> AttemptOutcome:
    """
    Perform one blocking POST and classify the result.

    Transport-level failures (DNS, timeout, connection reset) are returned
    as :class:`FatalFailure` rather than raised.

    Args:
        url: Fully formed destination URL (includes the credential).
        payload: JSON request body.
        timeout: Request timeout in seconds.

    Returns:
        A tagged :data:`AttemptOutcome`.
    """
    try:
        response = requests.post(
            url,
            headers={"Content-Type": "application/json"},
            json=payload,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        return FatalFailure(None, FailureCategory.TRANSPORT_ERROR,
                            f"{type(exc).__name__}: {exc}")

    try:
        body = response.json()
    except ValueError:
        body = None

    message = ""
    if not 200 <= response.status_code < 300:
        message = (response.text or "")[:_MESSAGE_CHARS]
    return classify_status(response.status_code, body, message)


# ---------------------------------------------------------------------------
# Credential failover
# ---------------------------------------------------------------------------

def execute_request(
    pool: tuple[str, ...],
    spec: RequestSpec,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
    deadline: float | None = None,
) -> dict:
    """
    Deliver ``spec`` using each credential of ``pool`` in order.

    Retriable failures are logged with the masked credential and the next
    credential is tried.  A fatal failure is raised at once and remaining
    credentials are left untouched.

    Args:
        pool: Credential pool from :func:`credentials.load_credentials`.
        spec: Payload and URL builder.
        timeout: Per-attempt timeout in seconds.
        deadline: Optional ``time.monotonic()`` deadline for the whole call.

    Returns:
        Decoded JSON response of the first successful attempt.

    Raises:
        ConfigurationError: ``pool`` is empty.
        FatalProviderError: A non-retriable status or transport error.
        DeadlineExceeded: ``deadline`` passed before an attempt could start.
        AllCredentialsExhausted: Every credential failed retriably.
    """
    require_credentials(pool)
    failures: list[RetriableFailure] = []

    for credential in pool:
        attempt_timeout = bounded_timeout(timeout, deadline)
        outcome = attempt_request(spec.build_url(credential), spec.payload, attempt_timeout)

        if isinstance(outcome, Success):
            return outcome.response

        if isinstance(outcome, RetriableFailure):
            outcome = RetriableFailure(
                outcome.status, outcome.category, redact(outcome.message, credential)
            )
            failures.append(outcome)
            logger.warning(
                "Attempt with key %s failed (Status %s, %s). Switching key...",
                mask_credential(credential), outcome.status, outcome.category,
            )
            continue

        fatal = FatalFailure(outcome.status, outcome.category,
                             redact(outcome.message, credential))
        logger.warning(
            "Request with key %s failed with non-retriable error: %s",
            mask_credential(credential), fatal.status or fatal.message,
        )
        raise FatalProviderError(fatal)

    raise AllCredentialsExhausted(failures)
