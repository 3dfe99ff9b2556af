# src/lead_radar/tests/test_llm_client.py
"""
Unit tests for Lead Radar LLM client.

Tests cover:
- Configuration detection and auth headers
- Request payload and URL construction
- Text and JSON completion parsing
- Timeout retry with exponential backoff
- enhance_lead() field restriction
- Health check and cleanup
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from lead_radar.config import ConfigurationError
from lead_radar.llm_client import LLMClient


def gemini_response(text):
    response = MagicMock()
    response.json.return_value = {
        "candidates": [{"content": {"parts": [{"text": text}]}}],
        "usageMetadata": {"totalTokenCount": 42},
    }
    return response


@pytest.fixture
def session():
    """Create a mock requests session."""
    return MagicMock()


@pytest.fixture
def client(session):
    """Create an LLM client with an injected session."""
    llm = LLMClient(
        api_key="gemini-key",
        model="gemini-test",
        endpoint="https://llm.example.test/",
        timeout=10,
    )
    llm._session = session
    return llm


class TestConfiguration:
    """Tests for configuration handling."""

    @pytest.mark.unit
    def test_is_configured(self):
        """Test key detection."""
        assert LLMClient(api_key="k").is_configured
        assert not LLMClient(api_key="").is_configured

    @pytest.mark.unit
    def test_missing_key_raises_on_request(self):
        """Test that requests without a key fail with a configuration error."""
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            LLMClient(api_key="").complete("hello")

    @pytest.mark.unit
    def test_api_url(self, client):
        """Test that the endpoint trailing slash is normalized."""
        assert client.api_url == (
            "https://llm.example.test/v1beta/models/gemini-test:generateContent"
        )


class TestComplete:
    """Tests for complete()."""

    @pytest.mark.unit
    def test_request_payload(self, client, session):
        """Test the headers and body sent to the API."""
        session.post.return_value = gemini_response("OK")

        assert client.complete("Say OK", temperature=0.1, max_tokens=5) == "OK"

        kwargs = session.post.call_args.kwargs
        assert kwargs["headers"]["x-goog-api-key"] == "gemini-key"
        assert kwargs["json"] == {
            "contents": [{"parts": [{"text": "Say OK"}]}],
            "generationConfig": {"temperature": 0.1, "maxOutputTokens": 5},
        }
        assert kwargs["timeout"] == 10

    @pytest.mark.unit
    def test_joins_parts(self, client, session):
        """Test that multi-part replies are concatenated."""
        response = MagicMock()
        response.json.return_value = {
            "candidates": [{"content": {"parts": [{"text": "Hel"}, {"text": "lo"}]}}]
        }
        session.post.return_value = response

        assert client.complete("hi") == "Hello"

    @pytest.mark.unit
    def test_no_candidates(self, client, session):
        """Test that a reply without candidates is rejected."""
        response = MagicMock()
        response.json.return_value = {"candidates": []}
        session.post.return_value = response

        with pytest.raises(ValueError, match="No candidates"):
            client.complete("hi")

    @pytest.mark.unit
    def test_non_object_reply(self, client, session):
        """Test that a JSON array body is rejected as a ValueError."""
        response = MagicMock()
        response.json.return_value = ["unexpected"]
        session.post.return_value = response

        with pytest.raises(ValueError, match="Invalid API response structure"):
            client.complete("hi")

    @pytest.mark.unit
    def test_empty_content(self, client, session):
        """Test that an empty reply is rejected."""
        session.post.return_value = gemini_response("")

        with pytest.raises(ValueError, match="Empty content"):
            client.complete("hi")

    @pytest.mark.unit
    def test_http_error_propagates(self, client, session):
        """Test that HTTP errors are re-raised."""
        response = MagicMock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            "500", response=MagicMock(status_code=500, text="boom")
        )
        session.post.return_value = response

        with pytest.raises(requests.exceptions.HTTPError):
            client.complete("hi")

    @pytest.mark.unit
    def test_timeout_retries_with_backoff(self, client, session):
        """Test that timeouts are retried after exponential delays."""
        session.post.side_effect = [
            requests.exceptions.Timeout(),
            requests.exceptions.Timeout(),
            gemini_response("OK"),
        ]

        with patch("lead_radar.llm_client.time.sleep") as mock_sleep:
            assert client.complete("hi") == "OK"

        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @pytest.mark.unit
    def test_timeout_gives_up(self, client, session):
        """Test that persistent timeouts are re-raised after the retry limit."""
        session.post.side_effect = requests.exceptions.Timeout()

        with patch("lead_radar.llm_client.time.sleep") as mock_sleep:
            with pytest.raises(requests.exceptions.Timeout):
                client.complete("hi")

        assert mock_sleep.call_count == LLMClient.MAX_RETRIES
        assert session.post.call_count == LLMClient.MAX_RETRIES + 1


class TestJsonParsing:
    """Tests for extract_json_object() and complete_json()."""

    @pytest.mark.unit
    def test_extracts_embedded_object(self):
        """Test that prose around the object is ignored."""
        text = 'Sure! Here it is:\n```json\n{"company": "Acme", "nested": {"a": 1}}\n```'

        assert LLMClient.extract_json_object(text) == {
            "company": "Acme",
            "nested": {"a": 1},
        }

    @pytest.mark.unit
    def test_no_object(self):
        """Test that replies without braces are rejected."""
        with pytest.raises(ValueError, match="No JSON object"):
            LLMClient.extract_json_object("I cannot help with that.")

    @pytest.mark.unit
    def test_complete_json_invalid(self, client, session):
        """Test that malformed JSON becomes a ValueError."""
        session.post.return_value = gemini_response("{company: Acme}")

        with pytest.raises(ValueError, match="Invalid JSON"):
            client.complete_json("hi")


class TestEnhanceLead:
    """Tests for enhance_lead()."""

    @pytest.mark.unit
    def test_returns_only_requested_fields(self, client, session):
        """Test that unrequested keys in the reply are discarded."""
        session.post.return_value = gemini_response(
            '{"company": "Acme Inc", "job_title": "CTO", "email": "x@y.z"}'
        )

        result = client.enhance_lead(
            lead_fields={"name": "Jane Smith"},
            snippet="Jane Smith, CTO at Acme Inc",
            missing_fields=["company", "job_title"],
        )

        assert result == {"company": "Acme Inc", "job_title": "CTO"}

    @pytest.mark.unit
    def test_prompt_contains_snippet_and_fields(self, client, session):
        """Test that the prompt carries the source text and requested keys."""
        session.post.return_value = gemini_response("{}")

        client.enhance_lead(
            lead_fields={"name": "Jane Smith"},
            snippet="Jane Smith, CTO at Acme Inc",
            missing_fields=["company", "location"],
        )

        prompt = session.post.call_args.kwargs["json"]["contents"][0]["parts"][0]["text"]
        assert "Jane Smith, CTO at Acme Inc" in prompt
        assert "company, location" in prompt


class TestLifecycle:
    """Tests for health check and cleanup."""

    @pytest.mark.unit
    def test_health_check_success(self, client, session):
        """Test a healthy endpoint."""
        session.post.return_value = gemini_response("OK")

        assert client.health_check() is True

    @pytest.mark.unit
    def test_health_check_failure(self, client, session):
        """Test that failures report unhealthy instead of raising."""
        session.post.side_effect = requests.exceptions.ConnectionError("down")

        assert client.health_check() is False

    @pytest.mark.unit
    def test_close(self, client, session):
        """Test that close() releases the session."""
        client.close()

        session.close.assert_called_once()
        assert client._session is None
