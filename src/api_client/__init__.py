"""
src/api_client - resilient generative-API invocation layer.

Module layout
-------------
config.py         - Settings dataclass, load_settings(), path constants
credentials.py    - credential pool loading and masking
retry.py          - attempt outcomes, status classification, error hierarchy
executor.py       - request construction, single attempts, credential failover
fallback.py       - model fallback orchestration, response text extraction
parser.py         - JSON extraction from model text, field merging, aggregates
transcription.py  - speech-to-text provider client

Public interface
----------------
Load configuration once at startup:
    settings = load_settings()

Generate text across models and keys:
    generate_content(settings.text_models, prompt, settings.credentials)

Interpret model text over defaults:
    interpret_response(raw_text, defaults)
    recompute_aggregates(result)
"""

from .config import Settings, load_settings
from .credentials import load_credentials, mask_credential
from .executor import Attachment, RequestSpec, execute_request
from .fallback import GenerationResult, extract_response_content, generate_content
from .parser import interpret_response, parse_model_output, recompute_aggregates
from .retry import (
    AllCredentialsExhausted,
    AllModelsExhausted,
    ConfigurationError,
    DeadlineExceeded,
    FatalProviderError,
    ProviderError,
    TranscriptionError,
)
from .transcription import decode_audio, transcribe_audio

__all__ = [
    # Configuration
    "Settings",
    "load_settings",
    "load_credentials",
    "mask_credential",
    # Execution
    "Attachment",
    "RequestSpec",
    "execute_request",
    "GenerationResult",
    "generate_content",
    "extract_response_content",
    # Interpretation
    "interpret_response",
    "parse_model_output",
    "recompute_aggregates",
    # Speech-to-text
    "decode_audio",
    "transcribe_audio",
    # Errors
    "ProviderError",
    "ConfigurationError",
    "FatalProviderError",
    "DeadlineExceeded",
    "AllCredentialsExhausted",
    "AllModelsExhausted",
    "TranscriptionError",
]
