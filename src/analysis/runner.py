"""
Sample analysis, report generation and voice chat flows.

Each flow builds a prompt, runs it through the model fallback orchestrator
with the credentials carried by :class:`Settings`, and shapes the result for
the service layer.

Usage:
    from src.api_client import load_settings
    from src.analysis.runner import analyze_sample

    settings = load_settings()
    analysis = analyze_sample(image_data_url, "beach.jpg", None, "sandy", settings)
"""

from __future__ import annotations

import logging
import random
from datetime import datetime

from config.model_params import TEXT_PARAMS, VISION_PARAMS, VOICE_PARAMS
from src.api_client.config import Settings
from src.api_client.executor import Attachment
from src.api_client.fallback import generate_content
from src.api_client.parser import interpret_response, recompute_aggregates
from src.api_client.retry import AllModelsExhausted, DeadlineExceeded, ProviderError
from src.api_client.transcription import decode_audio, transcribe_audio

from .config import (
    DEFAULT_IMAGE_MIME,
    DEFAULT_QUALITY,
    FALLBACK_DETAILS,
    GRAIN_SIZE_MIDPOINTS,
    VOICE_NOT_UNDERSTOOD,
)
from .grains import classify_size, classify_sorting, dominant_size, placeholder_grain_counts
from .prompts import build_analysis_prompt, build_report_prompt, format_details, local_report
from .soil import lookup_soil_details

logger = logging.getLogger(__name__)


def split_data_url(image: str) -> tuple[str, str]:
    """
    Split a ``data:<mime>;base64,<data>`` URL into ``(mime, data)``.

    A bare base64 string is returned with the default image MIME type.
    """
    if "," not in image:
        return DEFAULT_IMAGE_MIME, image
    header, data = image.split(",", 1)
    mime = DEFAULT_IMAGE_MIME
    if header.startswith("data:"):
        mime = header[len("data:"):].split(";", 1)[0] or DEFAULT_IMAGE_MIME
    return mime, data


def _generation_kwargs(settings: Settings, deadline: float | None) -> dict:
    return {
        "timeout": settings.request_timeout,
        "cooldown_seconds": settings.rate_limit_cooldown,
        "deadline": deadline,
        "api_base": settings.api_base,
    }


# ---------------------------------------------------------------------------
# Image analysis
# ---------------------------------------------------------------------------

def analyze_sample(
    image: str,
    filename: str | None,
    location: str | None,
    soil_type: str | None,
    settings: Settings,
    rng: random.Random | None = None,
    deadline: float | None = None,
) -> dict:
    """
    Analyze one sample image.

    Grain counts start as placeholders and may be replaced by a valid
    model-reported histogram; totals and averages are always recomputed.
    When every model fails, the placeholder analysis is returned with the
    static fallback details text.

    Args:
        image: Image as a data URL or bare base64 string.
        filename: Original file name (prompt metadata only).
        location: User-supplied location; wins over the estimated one.
        soil_type: User-supplied soil type.
        settings: Process settings (credentials, model list, timeouts).
        rng: RNG for placeholder counts.
        deadline: Optional ``time.monotonic()`` deadline.

    Returns:
        Analysis dict consumed by the UI.

    Raises:
        ConfigurationError: No Gemini credentials are configured.
    """
    mime_type, data = split_data_url(image)
    defaults = {
        "soilType": soil_type or None,
        "estimatedLocation": None,
        "coordinates": None,
        "likelyLocations": [],
        "keyFeatures": None,
        "analysisText": None,
        "details": None,
        "grainCounts": placeholder_grain_counts(rng),
    }

    model_used = None
    try:
        generation = generate_content(
            settings.vision_models,
            build_analysis_prompt(location, filename, soil_type),
            settings.credentials,
            params=VISION_PARAMS,
            attachment=Attachment(mime_type=mime_type, data=data),
            **_generation_kwargs(settings, deadline),
        )
    except (AllModelsExhausted, DeadlineExceeded) as exc:
        logger.error("Gemini vision call failed across all keys: %s", exc)
        result = dict(defaults, details=FALLBACK_DETAILS, parseMethod=None)
    else:
        model_used = generation.model
        result = interpret_response(generation.text, defaults)
        if result["parseMethod"] == "json":
            result["details"] = format_details(
                result.get("keyFeatures"),
                result.get("analysisText") or result.get("details"),
            )
        elif not result.get("details"):
            result["details"] = FALLBACK_DETAILS

    recompute_aggregates(result, GRAIN_SIZE_MIDPOINTS)
    counts = result["grainCounts"]

    return {
        "image": image,
        "filename": filename,
        "totalGrains": result["totalGrains"],
        "averageSize": result["averageSize"],
        "sizeClass": classify_size(result["averageSize"] or None),
        "dominantSize": dominant_size(counts),
        "sorting": classify_sorting(counts),
        "quality": DEFAULT_QUALITY,
        "grainSizes": result["grainSizes"],
        "grainCounts": counts,
        "details": result["details"],
        "soilType": result.get("soilType"),
        "likelyLocations": result.get("likelyLocations") or [],
        "soilDetails": lookup_soil_details(soil_type) or lookup_soil_details(result.get("soilType")),
        "timestamp": datetime.now().isoformat(),
        "location": location or result.get("estimatedLocation"),
        "coordinates": result.get("coordinates"),
        "model": model_used,
        "parseMethod": result.get("parseMethod"),
    }


# ---------------------------------------------------------------------------
# Text flows
# ---------------------------------------------------------------------------

def answer_prompt(prompt: str, settings: Settings, deadline: float | None = None) -> str:
    """
    Free prompt through the text model list.

    Raises:
        ConfigurationError, AllModelsExhausted, DeadlineExceeded
    """
    generation = generate_content(
        settings.text_models,
        prompt,
        settings.credentials,
        params=TEXT_PARAMS,
        **_generation_kwargs(settings, deadline),
    )
    return generation.text


def generate_report(
    analysis: dict,
    settings: Settings,
    deadline: float | None = None,
) -> tuple[str, str]:
    """
    Detailed report for an analysis, falling back to a local summary.

    Returns:
        Tuple of ``(report_text, source)`` where source is ``'model'`` or
        ``'local'``.
    """
    try:
        return answer_prompt(build_report_prompt(analysis), settings, deadline), "model"
    except ProviderError as exc:
        logger.warning("Report generation failed, using local report: %s", exc)
        return local_report(analysis), "local"


def voice_chat(audio: str, settings: Settings, deadline: float | None = None) -> dict:
    """
    Transcribe base64 audio and answer the transcript.

    Returns:
        ``{"transcription": str, "reply": str}``; an empty transcript gets a
        canned reply without contacting the text models.

    Raises:
        ValueError: ``audio`` is not valid base64.
        ConfigurationError: A required provider key is missing.
        TranscriptionError: The speech-to-text call failed.
        AllModelsExhausted, DeadlineExceeded: No model answered.
    """
    transcription = transcribe_audio(decode_audio(audio), settings.transcription_key)
    if not transcription:
        return {"transcription": "", "reply": VOICE_NOT_UNDERSTOOD}

    generation = generate_content(
        settings.text_models,
        transcription,
        settings.credentials,
        params=VOICE_PARAMS,
        **_generation_kwargs(settings, deadline),
    )
    return {"transcription": transcription, "reply": generation.text}
