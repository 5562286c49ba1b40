"""
Unit tests for the Grok scenario judge.

Tests payload shape, response parsing, error mapping and provider selection.
Uses mocked transports and HTTP responses to avoid live API calls.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from conftest import make_pool
from tryon.clients import GrokJudge, JudgeRequest, JudgeSelection, judge_client
from tryon.clients import judge_selector
from tryon.clients.transport import JudgeTransport
from tryon.clients.utils import extract_json
from tryon.core.errors import JudgeError
from tryon.scenarios.selector import render_options


def _chat_response(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


@pytest.fixture
def judge_request(analysis):
    pool = make_pool(3)
    return JudgeRequest(
        preset_name="Test Preset",
        preset_description="Preset used in tests.",
        scenarios_text=render_options(pool),
        scenario_ids=tuple(s.id for s in pool),
        analysis=analysis,
        user_instruction="soft morning mood",
    )


@pytest.fixture
def mock_transport():
    transport = MagicMock(spec=JudgeTransport)
    transport.post_json.return_value = _chat_response(
        json.dumps(
            {
                "personDescription": "Woman standing upright facing the camera",
                "garmentDescription": "Navy cotton crew-neck t-shirt",
                "selectedScenarioId": "test_preset_s002",
                "selectedScenarioNumber": 2,
                "reasoning": "Frontal pose matches the eye-level camera",
            }
        )
    )
    return transport


class TestGrokJudge:
    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            GrokJudge(api_key="")

    def test_choose_parses_selection(self, judge_request, mock_transport):
        """Verify a well-formed reply maps onto JudgeSelection fields."""
        judge = GrokJudge(api_key="test-key", transport=mock_transport)
        selection = judge.choose(judge_request, timeout_s=5.0)

        assert selection.scenario_id == "test_preset_s002"
        assert selection.scenario_number == 2
        assert selection.garment_description == "Navy cotton crew-neck t-shirt"

    def test_payload_shape(self, judge_request, mock_transport):
        judge = GrokJudge(api_key="test-key", transport=mock_transport)
        judge.choose(judge_request, timeout_s=5.0)

        path, payload = mock_transport.post_json.call_args.args
        assert path == "chat/completions"
        assert mock_transport.post_json.call_args.kwargs["timeout_s"] == 5.0
        assert payload["response_format"] == {"type": "json_object"}
        assert payload["temperature"] == 0.3
        assert payload["model"] == "grok-2-vision-1212"

        system, user = payload["messages"]
        assert "SCENARIO 1 (test_preset_s001):" in system["content"]
        assert "## PRESET: Test Preset" in system["content"]
        assert '"skin_tone": "medium olive"' in user["content"]
        assert "USER REQUEST: soft morning mood" in user["content"]

    def test_fenced_reply(self, judge_request, mock_transport):
        mock_transport.post_json.return_value = _chat_response(
            '```json\n{"selectedScenarioNumber": "3", "reasoning": null}\n```'
        )
        selection = GrokJudge(api_key="test-key", transport=mock_transport).choose(judge_request, 5.0)
        assert selection.scenario_number == 3
        assert selection.scenario_id is None
        assert selection.reasoning == ""

    def test_transport_failure_becomes_judge_error(self, judge_request, mock_transport):
        mock_transport.post_json.side_effect = RuntimeError("HTTP 500 on chat/completions: boom")
        with pytest.raises(JudgeError, match="request failed"):
            GrokJudge(api_key="test-key", transport=mock_transport).choose(judge_request, 5.0)

    @pytest.mark.parametrize(
        "response",
        [
            {"choices": []},
            {"error": "overloaded"},
            _chat_response("I would pick the second one."),
            _chat_response("[1, 2]"),
        ],
    )
    def test_bad_reply_becomes_judge_error(self, judge_request, mock_transport, response):
        mock_transport.post_json.return_value = response
        with pytest.raises(JudgeError):
            GrokJudge(api_key="test-key", transport=mock_transport).choose(judge_request, 5.0)

    def test_close_closes_transport(self, mock_transport):
        with GrokJudge(api_key="test-key", transport=mock_transport):
            pass
        mock_transport.close.assert_called_once()


class TestJudgeSelection:
    def test_accepts_field_names_and_aliases(self):
        by_alias = JudgeSelection.model_validate({"selectedScenarioId": "a_s001"})
        by_name = JudgeSelection(scenario_id="a_s001")
        assert by_alias == by_name

    def test_coerces_loose_types(self):
        selection = JudgeSelection.model_validate(
            {"selectedScenarioId": 7, "selectedScenarioNumber": True, "garmentDescription": None}
        )
        assert selection.scenario_id == "7"
        assert selection.scenario_number is None
        assert selection.garment_description == ""


class TestExtractJson:
    def test_plain(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_code_fence(self):
        assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_surrounding_prose(self):
        assert extract_json('Here is my pick: {"a": {"b": 2}} Hope that helps.') == {"a": {"b": 2}}

    def test_garbage(self):
        with pytest.raises(ValueError, match="Failed to parse JSON"):
            extract_json("no json here")


class TestJudgeSelector:
    def test_missing_key(self, monkeypatch):
        monkeypatch.setattr(judge_selector.settings, "judge_provider", "grok")
        monkeypatch.setattr(judge_selector.settings, "grok_api_key", None)
        with pytest.raises(RuntimeError, match="GROK_API_KEY"):
            judge_client()

    def test_unknown_provider(self, monkeypatch):
        monkeypatch.setattr(judge_selector.settings, "judge_provider", "oracle")
        with pytest.raises(RuntimeError, match="Unknown judge provider"):
            judge_client()

    def test_grok_provider(self, monkeypatch):
        monkeypatch.setattr(judge_selector.settings, "judge_provider", "Grok")
        monkeypatch.setattr(judge_selector.settings, "grok_api_key", "test-key")
        monkeypatch.setattr(judge_selector.settings, "judge_timeout_s", 7.5)
        with judge_client() as judge:
            assert isinstance(judge, GrokJudge)
            assert judge.config.timeout_read_s == 7.5


class TestJudgeTransport:
    URL = "https://api.x.ai/v1/chat/completions"

    def _response(self, status: int, body: dict | None = None, headers: dict | None = None) -> httpx.Response:
        return httpx.Response(
            status,
            json=body if body is not None else {},
            headers=headers,
            request=httpx.Request("POST", self.URL),
        )

    def test_returns_json(self):
        transport = JudgeTransport(api_key="test-key", rps=1000)
        with patch.object(transport.client, "post", return_value=self._response(200, {"ok": True})) as post:
            assert transport.post_json("chat/completions", {"x": 1}, timeout_s=3.0) == {"ok": True}
        post.assert_called_once_with(self.URL, json={"x": 1}, timeout=3.0)
        transport.close()

    def test_client_error_is_not_retried(self):
        transport = JudgeTransport(api_key="test-key", max_retries=3, rps=1000)
        with patch.object(transport.client, "post", return_value=self._response(400, {"error": "bad"})) as post:
            with pytest.raises(RuntimeError, match="HTTP 400"):
                transport.post_json("chat/completions", {})
        assert post.call_count == 1
        transport.close()

    def test_retryable_status_then_success(self):
        transport = JudgeTransport(api_key="test-key", max_retries=2, rps=1000)
        responses = [self._response(503, headers={"Retry-After": "0"}), self._response(200, {"ok": True})]
        with patch.object(transport.client, "post", side_effect=responses), patch.object(
            transport, "_retry_sleep"
        ) as sleep:
            assert transport.post_json("chat/completions", {}) == {"ok": True}
        sleep.assert_called_once_with(0, 0.0)
        transport.close()

    def test_timeout_on_last_attempt(self):
        transport = JudgeTransport(api_key="test-key", rps=1000)
        with patch.object(transport.client, "post", side_effect=httpx.ReadTimeout("slow")):
            with pytest.raises(RuntimeError, match="Max retries exceeded"):
                transport.post_json("chat/completions", {})
        transport.close()
