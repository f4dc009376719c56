"""
Generation parameters, failure classification and execution constants.

Imported by src/api_client and src/analysis; values are not duplicated there.

Notes:
- Parameters are written with universal names and translated to Gemini's
  camelCase names by PARAM_MAPPING; unsupported names map to None and are
  dropped from the request.
- The provider answers an invalid key with 400 ("API key not valid"), so
  400 is in RETRIABLE_STATUSES alongside 401/403/429.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Generation parameters per flow
# ---------------------------------------------------------------------------

TEXT_PARAMS: dict[str, int | float] = {
    "temperature": 0.7,
    "max_tokens": 2048,
}

# Lower temperature for more stable JSON
VISION_PARAMS: dict[str, int | float | str] = {
    "temperature": 0.3,
    "max_tokens": 2000,
}

VOICE_PARAMS: dict[str, int | float] = dict(TEXT_PARAMS)

# ---------------------------------------------------------------------------
# Universal → Gemini parameter names (None → omitted)
# ---------------------------------------------------------------------------

PARAM_MAPPING: dict[str, str | None] = {
    "temperature":        "temperature",
    "max_tokens":         "maxOutputTokens",
    "top_p":              "topP",
    "response_mime_type": "responseMimeType",
    "frequency_penalty":  None,   # not supported
    "presence_penalty":   None,   # not supported
}

# ---------------------------------------------------------------------------
# Failure classification
# ---------------------------------------------------------------------------

# Key- or capacity-related statuses: try the next credential.  Any 5xx is
# also retriable (checked separately).
RETRIABLE_STATUSES: frozenset[int] = frozenset({400, 401, 403, 429})
RATE_LIMIT_STATUS: int = 429

# ---------------------------------------------------------------------------
# Execution constants
# ---------------------------------------------------------------------------

# Per-attempt HTTP timeout; bounds a single unresponsive credential
REQUEST_TIMEOUT_SECONDS: float = 30.0

# Pause before the next model once every credential was rate-limited
RATE_LIMIT_COOLDOWN_SECONDS: float = 2.0

TRANSCRIPTION_TIMEOUT_SECONDS: float = 60.0

# Upper bound for one inbound request across all models and keys
REQUEST_DEADLINE_SECONDS: float = 120.0

# Free-text fallback excerpt length when model output is not JSON
FALLBACK_EXCERPT_CHARS: int = 4000

# ---------------------------------------------------------------------------
# Grain histogram
# ---------------------------------------------------------------------------

# Bucket midpoints in µm; grain count histograms must match this arity
GRAIN_SIZE_MIDPOINTS: list[int] = [100, 200, 300, 400, 500]
PLACEHOLDER_COUNT_RANGE: tuple[int, int] = (10, 69)
