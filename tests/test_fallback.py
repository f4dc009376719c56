"""
Tests for src/api_client/fallback.py.

The provider is replaced by FakeProvider (see conftest) and the cooldown
sleep is patched, so no test waits on the wall clock.
"""

from __future__ import annotations

import time
from unittest.mock import patch

import pytest

from src.api_client.executor import Attachment
from src.api_client.fallback import extract_response_content, generate_content
from src.api_client.retry import (
    AllCredentialsExhausted,
    AllModelsExhausted,
    ConfigurationError,
    DeadlineExceeded,
    FatalProviderError,
)

from .conftest import FakeProvider, make_response, ok, status

POST = "src.api_client.executor.requests.post"
SLEEP = "src.api_client.retry.time.sleep"

KEYS = ("A", "B")


class TestExtractResponseContent:

    def test_happy_path(self):
        body = {"candidates": [{"content": {"parts": [{"text": "hello"}]}}]}
        assert extract_response_content(body) == "hello"

    @pytest.mark.parametrize("body", [
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"text": 12}]}}]},
    ])
    def test_missing_path_is_none(self, body):
        assert extract_response_content(body) is None


class TestGenerateContent:

    def test_second_key_succeeds_on_first_model(self):
        fake = FakeProvider({("m1", "A"): status(429), ("m1", "B"): ok("answer")})
        with patch(POST, side_effect=fake), patch(SLEEP) as mock_sleep:
            result = generate_content(["m1", "m2"], "q", KEYS)
        assert result.text == "answer"
        assert result.model == "m1"
        assert result.models_tried == 1
        assert fake.calls == [("m1", "A"), ("m1", "B")]
        mock_sleep.assert_not_called()

    def test_all_keys_rate_limited_cools_down_then_next_model(self):
        fake = FakeProvider({
            ("m1", "A"): status(429),
            ("m1", "B"): status(429),
            ("m2", "A"): ok("from m2"),
        })
        with patch(POST, side_effect=fake), patch(SLEEP) as mock_sleep:
            result = generate_content(["m1", "m2"], "q", KEYS, cooldown_seconds=2)
        assert result.text == "from m2"
        assert result.model == "m2"
        assert result.models_tried == 2
        assert fake.calls == [("m1", "A"), ("m1", "B"), ("m2", "A")]
        mock_sleep.assert_called_once_with(2)

    def test_mixed_failures_skip_cooldown(self):
        fake = FakeProvider({
            ("m1", "A"): status(429),
            ("m1", "B"): status(503),
            ("m2", "A"): ok("x"),
        })
        with patch(POST, side_effect=fake), patch(SLEEP) as mock_sleep:
            generate_content(["m1", "m2"], "q", KEYS)
        mock_sleep.assert_not_called()

    def test_first_success_contacts_no_further_model(self):
        fake = FakeProvider({("m1", "A"): ok("first")})
        with patch(POST, side_effect=fake):
            result = generate_content(["m1", "m2", "m3"], "q", KEYS)
        assert result.model == "m1"
        assert fake.calls == [("m1", "A")]

    @pytest.mark.parametrize("text", ["", "   \n"])
    def test_empty_text_moves_to_next_model(self, text):
        fake = FakeProvider({("m1", "A"): ok(text), ("m2", "A"): ok("real")})
        with patch(POST, side_effect=fake):
            result = generate_content(["m1", "m2"], "q", KEYS)
        assert result.text == "real"
        assert result.model == "m2"

    def test_fatal_status_moves_to_next_model(self):
        fake = FakeProvider({("m1", "A"): status(404), ("m2", "A"): ok("ok")})
        with patch(POST, side_effect=fake):
            result = generate_content(["m1", "m2"], "q", KEYS)
        assert result.model == "m2"
        assert fake.calls == [("m1", "A"), ("m2", "A")]

    def test_all_models_exhausted_carries_last_error(self):
        fake = FakeProvider({
            ("m1", "A"): status(500), ("m1", "B"): status(500),
            ("m2", "A"): status(404),
        })
        with patch(POST, side_effect=fake), patch(SLEEP):
            with pytest.raises(AllModelsExhausted) as excinfo:
                generate_content(["m1", "m2"], "q", KEYS)
        err = excinfo.value
        assert err.attempted == ["m1", "m2"]
        assert isinstance(err.last_error, FatalProviderError)
        assert err.last_error.failure.status == 404

    def test_exhaustion_after_empty_responses_has_no_last_error(self):
        fake = FakeProvider({("m1", "A"): make_response(200, {"candidates": []})})
        with patch(POST, side_effect=fake):
            with pytest.raises(AllModelsExhausted) as excinfo:
                generate_content(["m1"], "q", KEYS)
        assert excinfo.value.last_error is None
        assert "empty responses" in str(excinfo.value)

    def test_rate_limited_last_model_reports_exhausted_keys(self):
        fake = FakeProvider({("m1", "A"): status(429), ("m1", "B"): status(429)})
        with patch(POST, side_effect=fake), patch(SLEEP):
            with pytest.raises(AllModelsExhausted) as excinfo:
                generate_content(["m1"], "q", KEYS)
        assert isinstance(excinfo.value.last_error, AllCredentialsExhausted)

    def test_empty_pool_makes_no_request(self):
        with patch(POST) as mock_post:
            with pytest.raises(ConfigurationError):
                generate_content(["m1"], "q", ())
        mock_post.assert_not_called()

    def test_expired_deadline_propagates(self):
        with patch(POST) as mock_post:
            with pytest.raises(DeadlineExceeded):
                generate_content(["m1", "m2"], "q", KEYS, deadline=time.monotonic() - 1)
        mock_post.assert_not_called()

    def test_cooldown_longer_than_deadline_raises(self):
        fake = FakeProvider({("m1", "A"): status(429), ("m1", "B"): status(429)})
        deadline = time.monotonic() + 1
        with patch(POST, side_effect=fake), patch(SLEEP):
            with pytest.raises(DeadlineExceeded):
                generate_content(
                    ["m1", "m2"], "q", KEYS, cooldown_seconds=60, deadline=deadline
                )
        assert ("m2", "A") not in fake.calls

    def test_same_payload_sent_to_every_model(self):
        fake = FakeProvider({("m1", "A"): status(404), ("m2", "A"): ok("x")})
        attachment = Attachment(mime_type="image/jpeg", data="AAAA")
        with patch(POST, side_effect=fake):
            generate_content(["m1", "m2"], "describe", KEYS,
                             params={"temperature": 0.3}, attachment=attachment)
        first, second = fake.payloads
        assert first == second
        assert first["generationConfig"] == {"temperature": 0.3}
        assert first["contents"][0]["parts"][0] == {"text": "describe"}
        assert first["contents"][0]["parts"][1]["inline_data"]["data"] == "AAAA"
