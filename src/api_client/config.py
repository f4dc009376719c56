"""
Runtime settings, path constants and re-exported provider configuration.

Static values live in the root ``config`` package; this module adds what is
only known at process start (credentials, bind address, data file) and
bundles it into a :class:`Settings` object.

Design notes:
- Settings are built once by :func:`load_settings` and passed explicitly to
  the service and the analysis runner.  Nothing here reads the environment
  at call time.
- A missing Gemini credential is a startup warning, not an error; calls
  then fail fast with ``ConfigurationError``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from config.api_config import (
    CREDENTIAL_ENV_VARS,
    DEFAULT_HOST,
    DEFAULT_PORT,
    GEMINI_API_BASE,
    TEXT_MODELS,
    TRANSCRIPTION_KEY_ENV,
    VISION_MODELS,
)
from config.model_params import (
    RATE_LIMIT_COOLDOWN_SECONDS,
    REQUEST_DEADLINE_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)

from .credentials import load_credentials

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Resolve from this file: src/api_client/config.py → src/api_client → src → root
PROJECT_ROOT = Path(__file__).resolve().parents[2]

DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_DATA_FILE = DATA_DIR / "data.json"
ENV_FILE = PROJECT_ROOT / ".env"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    """Immutable process configuration, safe to share across requests."""

    credentials: tuple[str, ...] = ()
    transcription_key: str | None = None
    text_models: tuple[str, ...] = TEXT_MODELS
    vision_models: tuple[str, ...] = VISION_MODELS
    api_base: str = GEMINI_API_BASE
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    rate_limit_cooldown: float = RATE_LIMIT_COOLDOWN_SECONDS
    request_deadline: float = REQUEST_DEADLINE_SECONDS
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    data_file: Path = field(default=DEFAULT_DATA_FILE)
    admin_user: str | None = None
    admin_password: str | None = None

    @property
    def admin_enabled(self) -> bool:
        return bool(self.admin_user and self.admin_password)


def load_settings(
    environ: Mapping[str, str] | None = None,
    env_file: Path | None = ENV_FILE,
) -> Settings:
    """
    Build :class:`Settings` from the process environment.

    When ``environ`` is omitted, ``.env`` at the project root is loaded first
    (existing variables win) and ``os.environ`` is read.

    Args:
        environ: Mapping to read instead of ``os.environ`` (tests).
        env_file: ``.env`` file loaded when reading the real environment.

    Returns:
        Frozen :class:`Settings` instance.

    Raises:
        ValueError: ``PORT`` is set but is not an integer.
    """
    if environ is None:
        if env_file is not None and env_file.exists():
            load_dotenv(env_file, override=False)
        environ = os.environ

    credentials = load_credentials(environ.get(name) for name in CREDENTIAL_ENV_VARS)
    logger.info("Loaded %d unique API keys.", len(credentials))
    if not credentials:
        logger.warning(
            "No valid Gemini API key found in %s. Requests will fail.",
            ", ".join(CREDENTIAL_ENV_VARS),
        )

    port_raw = environ.get("PORT")
    try:
        port = int(port_raw) if port_raw else DEFAULT_PORT
    except ValueError:
        raise ValueError(f"PORT must be an integer, got '{port_raw}'.") from None

    data_file = environ.get("SGM_DATA_FILE")

    return Settings(
        credentials=credentials,
        transcription_key=(environ.get(TRANSCRIPTION_KEY_ENV) or "").strip() or None,
        host=environ.get("HOST") or DEFAULT_HOST,
        port=port,
        data_file=Path(data_file) if data_file else DEFAULT_DATA_FILE,
        admin_user=environ.get("SGM_ADMIN_USER") or None,
        admin_password=environ.get("SGM_ADMIN_PASSWORD") or None,
    )
