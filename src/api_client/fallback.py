"""
Model fallback orchestration on top of the credential-failover executor.

For each model in preference order the executor tries every credential;
the first model that yields non-empty text wins and no further model is
contacted.  When every credential was rate-limited for a model, a fixed
cooldown separates it from the next model so that a shared quota is not
hit again immediately.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from config.model_params import (
    RATE_LIMIT_COOLDOWN_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
    TEXT_PARAMS,
)

from .config import GEMINI_API_BASE
from .credentials import require_credentials
from .executor import (
    Attachment,
    RequestSpec,
    build_generate_url,
    build_request_payload,
    execute_request,
)
from .retry import (
    AllCredentialsExhausted,
    AllModelsExhausted,
    ConfigurationError,
    DeadlineExceeded,
    ProviderError,
    cooldown,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """Text produced by the first successful model."""

    text: str
    model: str
    models_tried: int


def extract_response_content(response_json: dict) -> str | None:
    """
    Extract ``candidates[0].content.parts[0].text`` from a Gemini response.

    Args:
        response_json: Decoded ``generateContent`` response.

    Returns:
        The text, or ``None`` when the path is missing or not a string
        (e.g. a safety-blocked candidate without parts).
    """
    try:
        text = response_json["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


def generate_content(
    models: Sequence[str],
    prompt: str,
    pool: tuple[str, ...],
    params: dict | None = None,
    attachment: Attachment | None = None,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
    cooldown_seconds: float = RATE_LIMIT_COOLDOWN_SECONDS,
    deadline: float | None = None,
    api_base: str = GEMINI_API_BASE,
) -> GenerationResult:
    """
    Generate text with ``prompt``, falling back across ``models``.

    ``prompt`` is treated as opaque text; the voice flow passes transcribed
    speech through the same call.

    Args:
        models: Model identifiers, preferred first.
        prompt: Prompt text.
        pool: Credential pool.
        params: Universal generation parameters (defaults to ``TEXT_PARAMS``).
        attachment: Optional inline image part sent with every model.
        timeout: Per-attempt timeout in seconds.
        cooldown_seconds: Pause after a model was rate-limited on every key.
        deadline: Optional ``time.monotonic()`` deadline for the whole call.
        api_base: Provider base URL.

    Returns:
        :class:`GenerationResult` for the first non-empty text.

    Raises:
        ConfigurationError: ``pool`` is empty.
        DeadlineExceeded: ``deadline`` passed.
        AllModelsExhausted: No model produced text.
    """
    require_credentials(pool)
    payload = build_request_payload(prompt, params or TEXT_PARAMS, attachment)

    last_error: Exception | None = None
    attempted: list[str] = []

    for model in models:
        attempted.append(model)
        logger.info("Trying model: %s...", model)
        spec = RequestSpec(payload=payload, build_url=build_generate_url(model, api_base))

        try:
            response = execute_request(pool, spec, timeout=timeout, deadline=deadline)
        except (ConfigurationError, DeadlineExceeded):
            raise
        except ProviderError as exc:
            last_error = exc
            logger.warning("Model %s failed across all keys: %s", model, exc)
            if isinstance(exc, AllCredentialsExhausted) and exc.rate_limited:
                logger.info("Every key rate-limited; waiting %.1fs...", cooldown_seconds)
                cooldown(cooldown_seconds, deadline)
            continue

        text = extract_response_content(response)
        if text and text.strip():
            logger.info("Success with %s", model)
            return GenerationResult(text=text, model=model, models_tried=len(attempted))

        logger.warning("Model %s returned no text; trying next model.", model)

    raise AllModelsExhausted(last_error, attempted)
