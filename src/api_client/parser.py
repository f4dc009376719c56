"""
Best-effort interpretation of model text expected to contain a JSON object.

No I/O occurs here; all functions are pure transformations of strings/dicts
to support easy unit testing.

The model channel is free-form text, so parsing yields a tagged result
(:class:`StructuredResult` or :class:`FreeTextFallback`) instead of raising.
:func:`interpret_response` then merges accepted fields over caller defaults
and always returns a usable dict.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

import numpy as np

from config.model_params import FALLBACK_EXCERPT_CHARS, GRAIN_SIZE_MIDPOINTS

# A fence marker and the word glued to it: the language tag on an opening
# fence, ordinary prose on a closing one
_FENCE_PATTERN = re.compile(r"```([\w+-]*)")

SENTINEL_STRINGS: frozenset[str] = frozenset({"unknown", "unidentified"})


# ---------------------------------------------------------------------------
# Tagged parse result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StructuredResult:
    data: dict[str, Any]


@dataclass(frozen=True)
class FreeTextFallback:
    text: str


ParseOutcome = Union[StructuredResult, FreeTextFallback]


def strip_code_fences(text: str) -> str:
    """
    Remove Markdown code-fence markers (```` ``` ```` / ```` ```json ````).

    Only the markers are removed; the fenced content and any surrounding
    prose are kept.  Fences alternate opening/closing, and only an opening
    fence drops the word attached to it (its language tag).
    """
    opening = True

    def drop_marker(match: re.Match) -> str:
        nonlocal opening
        kept = "" if opening else match.group(1)
        opening = not opening
        return kept

    return _FENCE_PATTERN.sub(drop_marker, text).strip()


def extract_json_candidate(text: str) -> str | None:
    """
    Return the substring from the first ``{`` to the last ``}``.

    Args:
        text: Fence-stripped model text.

    Returns:
        Candidate JSON text, or ``None`` when no such span exists.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def parse_model_output(raw_text: str | None) -> ParseOutcome:
    """
    Parse model output into a JSON object when possible.

    Args:
        raw_text: Text extracted from the provider response.

    Returns:
        :class:`StructuredResult` when a JSON object was found, otherwise
        :class:`FreeTextFallback` carrying the fence-stripped text.
    """
    cleaned = strip_code_fences(raw_text or "")
    candidate = extract_json_candidate(cleaned)
    if candidate is not None:
        try:
            parsed = json.loads(candidate)
        # JSONDecodeError is a ValueError, as is an over-long integer literal;
        # deep nesting exhausts the decoder's recursion
        except (ValueError, RecursionError):
            parsed = None
        if isinstance(parsed, dict):
            return StructuredResult(parsed)
    return FreeTextFallback(cleaned)


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------
# Each validator returns the accepted value or None (→ keep the default).

def is_sentinel(value: Any) -> bool:
    """
    True for placeholder values that carry no information.

    ``None``, empty/whitespace strings, ``"Unknown"`` / ``"Unidentified"``
    (any case), and empty lists or dicts.
    """
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return not stripped or stripped.casefold() in SENTINEL_STRINGS
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def accept_text(value: Any) -> str | None:
    if isinstance(value, str) and not is_sentinel(value):
        return value.strip()
    return None


def accept_coordinates(value: Any) -> dict[str, float] | None:
    """Accept ``{"lat": ..., "lng": ...}`` with numeric, in-range values."""
    if not isinstance(value, Mapping):
        return None
    lat, lng = value.get("lat"), value.get("lng")
    if not (_is_number(lat) and _is_number(lng)):
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return {"lat": float(lat), "lng": float(lng)}


def accept_locations(value: Any) -> list[dict] | None:
    """
    Accept a list of ``{"name", "coordinates"?}`` entries.

    Entries with a sentinel name are dropped; invalid coordinates become
    ``None``.  An empty result keeps the default.
    """
    if not isinstance(value, list):
        return None
    locations = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        name = accept_text(item.get("name"))
        if name is None:
            continue
        locations.append({
            "name": name,
            "coordinates": accept_coordinates(item.get("coordinates")),
        })
    return locations or None


def histogram_validator(arity: int) -> Callable[[Any], list[int] | None]:
    """Build a validator accepting exactly ``arity`` non-negative counts."""

    def accept(value: Any) -> list[int] | None:
        if not isinstance(value, list) or len(value) != arity:
            return None
        if not all(_is_number(v) and v >= 0 for v in value):
            return None
        return [int(round(v)) for v in value]

    return accept


# Recognized fields of the grain-analysis envelope.  totalGrains and
# averageSize are derived by recompute_aggregates, never accepted.
GRAIN_ANALYSIS_SCHEMA: dict[str, Callable[[Any], Any]] = {
    "soilType": accept_text,
    "estimatedLocation": accept_text,
    "coordinates": accept_coordinates,
    "likelyLocations": accept_locations,
    "keyFeatures": accept_text,
    "analysisText": accept_text,
    "details": accept_text,
    "grainCounts": histogram_validator(len(GRAIN_SIZE_MIDPOINTS)),
}


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------

def make_excerpt(text: str, limit: int = FALLBACK_EXCERPT_CHARS) -> str:
    """Brace-stripped, whitespace-trimmed excerpt of at most ``limit`` chars."""
    excerpt = re.sub(r"[{}]", "", text).strip()
    if len(excerpt) > limit:
        excerpt = excerpt[:limit].rstrip() + "…"
    return excerpt


def interpret_response(
    raw_text: str | None,
    defaults: Mapping[str, Any],
    schema: Mapping[str, Callable[[Any], Any]] = GRAIN_ANALYSIS_SCHEMA,
    free_text_field: str = "details",
    excerpt_limit: int = FALLBACK_EXCERPT_CHARS,
) -> dict:
    """
    Merge recognized fields from model text over ``defaults``.

    Never raises: non-JSON text becomes an excerpt in ``free_text_field``.

    Args:
        raw_text: Model output, possibly fenced or wrapped in prose.
        defaults: Caller-supplied result structure (not modified).
        schema: Field name → validator; a validator returning ``None``
            leaves the default in place.
        free_text_field: Field receiving the excerpt on fallback.
        excerpt_limit: Maximum excerpt length.

    Returns:
        New dict: ``defaults`` overlaid with accepted values, plus
        ``parseMethod`` (``'json'`` or ``'text'``).
    """
    result = dict(defaults)
    outcome = parse_model_output(raw_text)

    if isinstance(outcome, StructuredResult):
        for name, accept in schema.items():
            value = outcome.data.get(name)
            if is_sentinel(value):
                continue
            accepted = accept(value)
            if accepted is not None:
                result[name] = accepted
        result["parseMethod"] = "json"
        return result

    excerpt = make_excerpt(outcome.text, excerpt_limit)
    if excerpt:
        result[free_text_field] = excerpt
    result["parseMethod"] = "text"
    return result


def weighted_average_size(
    counts: list[int],
    midpoints: list[int] = GRAIN_SIZE_MIDPOINTS,
) -> float | None:
    """
    Count-weighted mean of bucket midpoints.

    Args:
        counts: Grain count per bucket.
        midpoints: Bucket midpoints in µm (same length as ``counts``).

    Returns:
        ``sum(count * midpoint) / sum(count)``, or ``None`` when there are
        no grains.

    Raises:
        ValueError: ``counts`` and ``midpoints`` differ in length.
    """
    if len(counts) != len(midpoints):
        raise ValueError(
            f"Histogram arity mismatch: {len(counts)} counts for "
            f"{len(midpoints)} buckets."
        )
    weights = np.asarray(counts, dtype=float)
    if weights.sum() <= 0:
        return None
    return float(np.average(midpoints, weights=weights))


def recompute_aggregates(
    result: dict,
    midpoints: list[int] = GRAIN_SIZE_MIDPOINTS,
    counts_field: str = "grainCounts",
) -> dict:
    """
    Recompute histogram aggregates from the accepted bucket counts.

    ``totalGrains`` and ``averageSize`` reported by the model are never
    trusted; both are overwritten from ``result[counts_field]``.

    Args:
        result: Interpreted result (modified in place and returned).
        midpoints: Bucket midpoints in µm, same arity as the counts.
        counts_field: Key holding the histogram.

    Returns:
        ``result`` with ``grainSizes``, ``totalGrains`` and ``averageSize``
        set.  Without a valid histogram the dict is returned unchanged.
    """
    counts = result.get(counts_field)
    if not isinstance(counts, list) or len(counts) != len(midpoints):
        return result

    average = weighted_average_size(counts, midpoints)
    result["grainSizes"] = list(midpoints)
    result["totalGrains"] = int(sum(counts))
    result["averageSize"] = round(average, 2) if average is not None else 0.0
    return result
