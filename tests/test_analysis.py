"""Tests for analysis generation and the OpenAI helper."""

import json

import httpx
import openai
import pytest

from analysis_module import ANALYSIS_SYSTEM_PROMPT, generate_analysis, parse_analysis
from errors import LLMTimeoutError, ModelResponseParseError, ProcessingError
from llm_module import chat_completion
from tests.conftest import FakeOpenAI

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class TestGenerateAnalysis:
    def test_request_contract(self, analysis_reply):
        client = FakeOpenAI(json.dumps(analysis_reply))
        generate_analysis(client, "RAW TEXT\nverbatim  ")

        call = client.calls[0]
        assert call["response_format"] == {"type": "json_object"}
        assert call["messages"] == [
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": "RAW TEXT\nverbatim  "},
        ]
        for key in ("summary", "keyPoints", "sentiment", "topics", "language", "confidence"):
            assert f'"{key}"' in ANALYSIS_SYSTEM_PROMPT

    def test_parses_into_result(self, analysis_reply):
        result = generate_analysis(FakeOpenAI(json.dumps(analysis_reply)), "text")
        assert result.summary == analysis_reply["summary"]
        assert result.key_points == analysis_reply["keyPoints"]
        assert result.topics == ["shopping", "receipt"]
        assert result.confidence == "High"

    def test_server_stamps_timestamp(self, analysis_reply):
        analysis_reply["timestamp"] = "1999-01-01T00:00:00.000Z"
        result = parse_analysis(json.dumps(analysis_reply))
        assert result.timestamp != "1999-01-01T00:00:00.000Z"
        assert result.timestamp.endswith("Z")

    def test_payload_uses_camel_case(self, analysis_reply):
        payload = parse_analysis(json.dumps(analysis_reply)).to_payload()
        assert set(payload) == {"summary", "keyPoints", "sentiment", "topics", "language", "confidence", "timestamp"}

    @pytest.mark.parametrize("content", ["Sure! Here is the analysis.", "[1, 2]", ""])
    def test_unparseable_reply_is_a_hard_failure(self, content):
        with pytest.raises(ModelResponseParseError) as exc:
            parse_analysis(content)
        assert exc.value.status_code == 500


class TestChatCompletion:
    def test_plain_request_has_no_response_format(self):
        client = FakeOpenAI("hi")
        assert chat_completion(client, [{"role": "user", "content": "hello"}]) == "hi"
        assert "response_format" not in client.calls[0]

    def test_timeout_maps_to_llm_timeout(self):
        client = FakeOpenAI(openai.APITimeoutError(request=_REQUEST))
        with pytest.raises(LLMTimeoutError) as exc:
            chat_completion(client, [])
        assert exc.value.status_code == 504

    def test_api_error_maps_to_processing_error(self):
        client = FakeOpenAI(openai.APIConnectionError(message="connection refused", request=_REQUEST))
        with pytest.raises(ProcessingError) as exc:
            chat_completion(client, [])
        assert "connection refused" in exc.value.details


class TestLenientAnalysisFields:
    def test_nulls_and_mixed_items_are_accepted(self):
        reply = {
            "summary": "s",
            "keyPoints": ["a", 2, None],
            "sentiment": "neutral",
            "topics": "receipts",
            "language": None,
            "confidence": 0.9,
        }
        result = parse_analysis(json.dumps(reply))

        assert result.key_points == ["a", "2"]
        assert result.topics == ["receipts"]
        assert result.language is None
        assert result.confidence == "0.9"
        assert result.to_payload()["language"] is None

    def test_missing_keys_default(self):
        result = parse_analysis("{}")
        assert result.summary is None
        assert result.key_points == []
        assert result.timestamp

    def test_non_object_message(self):
        with pytest.raises(ModelResponseParseError) as exc:
            parse_analysis('["summary"]')
        assert exc.value.message == "Model response was not a JSON object"
