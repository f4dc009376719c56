"""
Speech-to-text calls against the Groq transcription endpoint.
"""

from __future__ import annotations

import base64
import binascii
import logging

import requests

from config.api_config import (
    TRANSCRIPTION_CONTENT_TYPE,
    TRANSCRIPTION_ENDPOINT,
    TRANSCRIPTION_FILENAME,
    TRANSCRIPTION_MODEL,
)
from config.model_params import TRANSCRIPTION_TIMEOUT_SECONDS

from .retry import ConfigurationError, TranscriptionError

logger = logging.getLogger(__name__)


def decode_audio(audio: str) -> bytes:
    """
    Decode base64 audio, accepting an optional ``data:...;base64,`` prefix.

    Raises:
        ValueError: The payload is not valid base64.
    """
    data = audio.split(",", 1)[1] if "," in audio else audio
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Audio payload is not valid base64: {exc}") from exc


def transcribe_audio(
    audio: bytes,
    api_key: str | None,
    model: str = TRANSCRIPTION_MODEL,
    endpoint: str = TRANSCRIPTION_ENDPOINT,
    timeout: float = TRANSCRIPTION_TIMEOUT_SECONDS,
) -> str:
    """
    Upload audio bytes and return the transcribed text.

    Args:
        audio: Raw audio bytes (webm by default).
        api_key: Transcription provider key.
        model: Transcription model name.
        endpoint: Transcription endpoint URL.
        timeout: Request timeout in seconds.

    Returns:
        Transcribed text, stripped (may be empty for silence).

    Raises:
        ConfigurationError: ``api_key`` is missing.
        TranscriptionError: Transport failure, non-2xx status, or a body
            without a ``text`` field.
    """
    if not api_key:
        raise ConfigurationError("GROQ_API_KEY missing on server")

    logger.info("Sending audio to Groq for transcription...")
    try:
        response = requests.post(
            endpoint,
            headers={"Authorization": f"Bearer {api_key}"},
            files={"file": (TRANSCRIPTION_FILENAME, audio, TRANSCRIPTION_CONTENT_TYPE)},
            data={"model": model, "response_format": "json"},
            timeout=timeout,
        )
        response.raise_for_status()
        body = response.json()
    except requests.RequestException as exc:
        raise TranscriptionError(f"Transcription failed: {exc}") from exc
    except ValueError as exc:
        raise TranscriptionError("Transcription response is not JSON") from exc

    text = body.get("text") if isinstance(body, dict) else None
    if not isinstance(text, str):
        raise TranscriptionError("Transcription response has no 'text' field")

    logger.info("Transcription: %r", text)
    return text.strip()
