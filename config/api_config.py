"""
Provider endpoint and credential configuration.

Imported by src/api_client/config.py and the speech-to-text client.

ENVIRONMENT VARIABLES READ:
    GEMINI_API_KEY             - primary Gemini key(s); may hold a delimited list
    GEMINI_API_KEY_SECONDARY   - additional Gemini key(s)
    GENERATIVE_API_KEY         - legacy name, merged into the same pool
    GROQ_API_KEY               - speech-to-text provider key
    PORT / HOST                - service bind address
    SGM_DATA_FILE              - flat-file record store location
    SGM_ADMIN_USER / SGM_ADMIN_PASSWORD - admin login (disabled when unset)
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Generative provider (Gemini)
# ---------------------------------------------------------------------------

GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"

# Order matters: it defines the failover sequence after deduplication.
CREDENTIAL_ENV_VARS: tuple[str, ...] = (
    "GEMINI_API_KEY",
    "GEMINI_API_KEY_SECONDARY",
    "GENERATIVE_API_KEY",
)

# Characters separating several keys stored in a single variable
CREDENTIAL_DELIMITERS: str = ",;|"

# Fastest / cheapest first.  Verify availability against the provider's
# model list when rotating keys to a new project.
TEXT_MODELS: tuple[str, ...] = (
    "gemini-flash-latest",
    "gemini-2.0-flash",
    "gemini-2.5-flash",
    "gemini-2.0-flash-lite",
    "gemini-pro-latest",
)

VISION_MODELS: tuple[str, ...] = (
    "gemini-2.5-flash",
    "gemini-flash-latest",
    "gemini-2.0-flash",
)

# ---------------------------------------------------------------------------
# Speech-to-text provider (Groq, OpenAI-compatible transcription endpoint)
# ---------------------------------------------------------------------------

TRANSCRIPTION_ENDPOINT: str = "https://api.groq.com/openai/v1/audio/transcriptions"
TRANSCRIPTION_MODEL: str = "distil-whisper-large-v3-en"
TRANSCRIPTION_KEY_ENV: str = "GROQ_API_KEY"
TRANSCRIPTION_FILENAME: str = "input.webm"
TRANSCRIPTION_CONTENT_TYPE: str = "audio/webm"

# ---------------------------------------------------------------------------
# Inbound service defaults
# ---------------------------------------------------------------------------

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8000
