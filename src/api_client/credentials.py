"""
Credential pool loading and masking.

A pool is a plain ``tuple[str, ...]``: ordered, deduplicated, never holding
an empty entry.  Its order is the failover order used by the executor.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from config.api_config import CREDENTIAL_DELIMITERS

from .retry import ConfigurationError

_SPLIT_PATTERN = re.compile(f"[{re.escape(CREDENTIAL_DELIMITERS)}]")


def load_credentials(sources: Iterable[str | None]) -> tuple[str, ...]:
    """
    Flatten credential sources into an ordered, deduplicated pool.

    Each source may hold several keys separated by ``,``, ``;`` or ``|``.
    Keys are trimmed and empty entries dropped; the first occurrence of a
    duplicate keeps its position.

    Args:
        sources: Raw configuration values; ``None`` entries are skipped.

    Returns:
        Tuple of unique, non-empty credentials (empty when none usable).
    """
    seen: dict[str, None] = {}
    for source in sources:
        if not source:
            continue
        for part in _SPLIT_PATTERN.split(source):
            key = part.strip()
            if key:
                seen.setdefault(key, None)
    return tuple(seen)


def require_credentials(pool: tuple[str, ...]) -> tuple[str, ...]:
    """Return ``pool`` unchanged, or raise ``ConfigurationError`` when empty."""
    if not pool:
        raise ConfigurationError(
            "No generative API credentials configured. Set GEMINI_API_KEY "
            "(optionally a comma-separated list)."
        )
    return pool


def mask_credential(credential: str, visible: int = 4) -> str:
    """
    Render a credential for log output.

    Args:
        credential: Secret to mask.
        visible: Number of trailing characters to keep.

    Returns:
        ``'...abcd'``; short secrets are fully hidden as ``'...'``.
    """
    if len(credential) <= visible:
        return "..."
    return f"...{credential[-visible:]}"
