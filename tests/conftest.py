"""
Shared pytest fixtures and fake-provider helpers.

The provider is never contacted: tests patch ``requests.post`` in the
module under test with a :class:`FakeProvider`, which routes each call by
the ``(model, key)`` pair parsed from the request URL and records the call
order.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest

from src.api_client.config import Settings


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------

def make_response(status: int = 200, body=None, text: str | None = None) -> MagicMock:
    """Mock ``requests.Response`` with a status, a JSON body and text."""
    resp = MagicMock()
    resp.status_code = status
    if body is None:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        resp.json.return_value = body
    resp.text = text if text is not None else (json.dumps(body) if body is not None else "")
    return resp


def gemini_body(text: str) -> dict:
    """Minimal ``generateContent`` response envelope carrying ``text``."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def ok(text: str) -> MagicMock:
    return make_response(200, gemini_body(text))


def status(code: int) -> MagicMock:
    return make_response(code, {"error": {"code": code, "message": f"HTTP {code}"}})


# ---------------------------------------------------------------------------
# Fake provider
# ---------------------------------------------------------------------------

def key_of(url: str) -> str:
    return parse_qs(urlparse(url).query)["key"][0]


def model_of(url: str) -> str:
    path = urlparse(url).path
    return path.rsplit("/models/", 1)[1].split(":", 1)[0]


class FakeProvider:
    """
    Callable standing in for ``requests.post``.

    Args:
        outcomes: ``{(model, key): response | exception}``.  A missing pair
            fails the test with ``AssertionError``.
    """

    def __init__(self, outcomes: dict):
        self.outcomes = outcomes
        self.calls: list[tuple[str, str]] = []
        self.payloads: list[dict] = []
        self.timeouts: list[float] = []

    def __call__(self, url, headers=None, json=None, timeout=None):  # noqa: A002
        pair = (model_of(url), key_of(url))
        self.calls.append(pair)
        self.payloads.append(json)
        self.timeouts.append(timeout)
        if pair not in self.outcomes:
            raise AssertionError(f"Unexpected provider call for {pair}")
        outcome = self.outcomes[pair]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


# ---------------------------------------------------------------------------
# Settings fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Two keys, two text models, one vision model, store under tmp_path."""
    return Settings(
        credentials=("key-AAAA", "key-BBBB"),
        transcription_key="groq-test-key",
        text_models=("m1", "m2"),
        vision_models=("v1",),
        data_file=tmp_path / "data.json",
    )


@pytest.fixture
def no_key_settings(tmp_path):
    return Settings(
        credentials=(),
        text_models=("m1",),
        vision_models=("v1",),
        data_file=tmp_path / "data.json",
    )


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "records" / "data.json"


# A well-formed analysis envelope as the vision model would return it
ANALYSIS_ENVELOPE: dict = {
    "soilType": "Coastal sand",
    "estimatedLocation": "Marina Beach, Chennai",
    "coordinates": {"lat": 13.05, "lng": 80.28},
    "likelyLocations": [
        {"name": "Marina Beach", "coordinates": {"lat": 13.05, "lng": 80.28}},
        {"name": "Bondi Beach", "coordinates": {"lat": -33.89, "lng": 151.27}},
        {"name": "Copacabana", "coordinates": {"lat": -22.97, "lng": -43.18}},
        {"name": "Waikiki", "coordinates": {"lat": 21.28, "lng": -157.83}},
        {"name": "Camps Bay", "coordinates": {"lat": -33.95, "lng": 18.38}},
    ],
    "grainCounts": [15, 35, 25, 15, 10],
    "totalGrains": 999,
    "averageSize": 42,
    "keyFeatures": "1. Quartz rich\n2. Rounded\n3. Well sorted\n4. Shell fragments\n5. Saline",
    "analysisText": "## Overview\nMedium quartz sand with marine influence.",
}
