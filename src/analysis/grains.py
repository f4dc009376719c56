"""
Grain histogram statistics.

Counts are placeholders (no image processing happens here); every derived
figure is computed from the counts, never taken from model output.
"""

from __future__ import annotations

import random

import numpy as np

# Shared with recompute_aggregates so the mean is computed in one place
from src.api_client.parser import weighted_average_size  # noqa: F401

from .config import (
    GRAIN_SIZE_MIDPOINTS,
    PLACEHOLDER_COUNT_RANGE,
    SIZE_CLASS_ABOVE,
    SIZE_CLASSES,
    SORTING_CLASS_ABOVE,
    SORTING_CLASSES,
)


def placeholder_grain_counts(
    rng: random.Random | None = None,
    buckets: int = len(GRAIN_SIZE_MIDPOINTS),
) -> list[int]:
    """
    Draw one random count per size bucket.

    Args:
        rng: Isolated RNG instance (``random.Random(seed)`` in tests).
        buckets: Number of buckets.

    Returns:
        List of ``buckets`` integers within ``PLACEHOLDER_COUNT_RANGE``.
    """
    rng = rng or random.Random()
    low, high = PLACEHOLDER_COUNT_RANGE
    return [rng.randint(low, high) for _ in range(buckets)]


def classify_size(average_size: float | None) -> str:
    """Map an average grain size (µm) to its textural class."""
    if average_size is None:
        return "Unknown"
    for upper, label in SIZE_CLASSES:
        if average_size <= upper:
            return label
    return SIZE_CLASS_ABOVE


def classify_sorting(counts: list[int] | None) -> str:
    """
    Rough sorting class from the spread of bucket counts.

    A zero minimum is treated as 1 so empty buckets don't divide by zero.
    """
    if not counts:
        return "Unknown"
    ratio = max(counts) / (min(counts) or 1)
    for upper, label in SORTING_CLASSES:
        if ratio <= upper:
            return label
    return SORTING_CLASS_ABOVE


def dominant_size(
    counts: list[int],
    midpoints: list[int] = GRAIN_SIZE_MIDPOINTS,
) -> str:
    """Size class of the most populated bucket (first one on ties)."""
    if not counts or len(counts) != len(midpoints):
        return "Unknown"
    return classify_size(midpoints[int(np.argmax(counts))])
