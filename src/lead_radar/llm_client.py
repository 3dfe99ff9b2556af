# llm_client.py
"""Gemini REST client for optional lead enhancement.

The service is treated as a free-form text completion API. Replies that
should carry JSON are parsed by scanning from the first ``{`` to the last
``}``, since the model often wraps objects in prose or code fences.
"""

import json
import time
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import ConfigurationError, config
from .logging_utils import get_logger

ENHANCE_PROMPT = """You are a lead research assistant. A contact record was extracted from a web search result with pattern matching. Some fields are missing.

Current record:
{record}

Source text:
{snippet}

Return ONLY a JSON object containing these keys, each filled only if the source text supports it: {fields}.
Omit any key you cannot determine. Do not invent data."""


class LLMClient:
    """Client for the Gemini ``generateContent`` endpoint."""

    DEFAULT_TIMEOUT = 60

    # Timeouts are retried here; 429/5xx are retried by the session adapter
    MAX_RETRIES = 3
    BASE_RETRY_DELAY = 1.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """Create a client; unset arguments fall back to the environment config.

        Args:
            api_key: Gemini API key
            model: Model name, e.g. ``gemini-1.5-flash``
            endpoint: Base URL of the Generative Language API
            timeout: Per-request timeout in seconds
        """
        self.logger = get_logger(__name__)

        self.endpoint = (endpoint or config.GEMINI_ENDPOINT).rstrip("/")
        self.model = model or config.GEMINI_MODEL
        self.timeout = timeout
        self._api_key = api_key if api_key is not None else config.GEMINI_API_KEY

        self._session: Optional[requests.Session] = None

    @property
    def is_configured(self) -> bool:
        """Whether an API key is available."""
        return bool(self._api_key)

    @property
    def api_url(self) -> str:
        return f"{self.endpoint}/v1beta/models/{self.model}:generateContent"

    @property
    def session(self) -> requests.Session:
        """HTTP session, created on first use with status-code retries mounted."""
        if self._session is None:
            adapter = HTTPAdapter(
                max_retries=Retry(
                    total=self.MAX_RETRIES,
                    backoff_factor=self.BASE_RETRY_DELAY,
                    status_forcelist=[429, 500, 502, 503, 504],
                    allowed_methods=["POST"],
                )
            )
            session = requests.Session()
            for prefix in ("https://", "http://"):
                session.mount(prefix, adapter)
            self._session = session
        return self._session

    def _headers(self) -> Dict[str, str]:
        if not self._api_key:
            raise ConfigurationError(
                "Gemini API key is missing. Set GEMINI_API_KEY environment variable."
            )
        return {"Content-Type": "application/json", "x-goog-api-key": self._api_key}

    @staticmethod
    def _build_payload(prompt: str, temperature: float, max_tokens: int) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }

    def _generate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a generateContent payload, retrying timeouts with backoff.

        Waits ``BASE_RETRY_DELAY * 2**attempt`` seconds between attempts and
        re-raises the last timeout once ``MAX_RETRIES`` retries are spent.

        Raises:
            ConfigurationError: If no API key is set
            requests.exceptions.RequestException: On transport or HTTP failure
        """
        headers = self._headers()

        for attempt in range(self.MAX_RETRIES + 1):
            self.logger.debug(
                "Sending generateContent request",
                extra={"model": self.model, "attempt": attempt}
            )
            try:
                response = self.session.post(
                    self.api_url,
                    headers=headers,
                    json=payload,
                    timeout=self.timeout,
                )
                response.raise_for_status()
            except requests.exceptions.Timeout:
                if attempt == self.MAX_RETRIES:
                    self.logger.error(
                        "Gemini request timed out, giving up",
                        extra={"timeout": self.timeout, "attempts": attempt + 1}
                    )
                    raise
                delay = self.BASE_RETRY_DELAY * (2 ** attempt)
                self.logger.warning(
                    f"Gemini request timed out, retrying in {delay}s",
                    extra={"timeout": self.timeout, "attempt": attempt}
                )
                time.sleep(delay)
                continue
            except requests.exceptions.HTTPError as e:
                body = e.response.text[:500] if e.response is not None else None
                self.logger.error(
                    f"Gemini request failed: {e}",
                    extra={
                        "status_code": getattr(e.response, "status_code", None),
                        "response_text": body,
                    }
                )
                raise

            result = response.json()
            if not isinstance(result, dict):
                raise ValueError(
                    f"Invalid API response structure: {type(result).__name__}"
                )
            self.logger.debug(
                "Gemini response received",
                extra={"usage": result.get("usageMetadata", {})}
            )
            return result

    @staticmethod
    def _reply_text(result: Dict[str, Any]) -> str:
        candidates = result.get("candidates") or []
        if not candidates:
            raise ValueError("No candidates in API response")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text:
            raise ValueError("Empty content in API response")
        return text

    def complete(
        self,
        prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> str:
        """Send a prompt and return the concatenated reply text.

        Raises:
            ValueError: If the reply carries no text
        """
        result = self._generate(self._build_payload(prompt, temperature, max_tokens))
        try:
            return self._reply_text(result)
        except AttributeError as e:
            raise ValueError(f"Invalid API response structure: {e}")

    @staticmethod
    def extract_json_object(text: str) -> Dict[str, Any]:
        """Parse the JSON object spanning the first ``{`` to the last ``}``.

        Raises:
            ValueError: If no object is present or it does not parse
        """
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("No JSON object found in response")

        parsed = json.loads(text[start:end + 1])
        if not isinstance(parsed, dict):
            raise ValueError("Response JSON is not an object")
        return parsed

    def complete_json(
        self,
        prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 1024,
    ) -> Dict[str, Any]:
        """Like complete(), but return the JSON object embedded in the reply."""
        reply = self.complete(prompt, temperature=temperature, max_tokens=max_tokens)
        try:
            return self.extract_json_object(reply)
        except json.JSONDecodeError as e:
            self.logger.warning(
                "Gemini reply is not valid JSON",
                extra={"error": str(e), "reply": reply[:500]}
            )
            raise ValueError(f"Invalid JSON in response: {e}")

    def enhance_lead(
        self,
        lead_fields: Dict[str, Any],
        snippet: str,
        missing_fields: List[str],
    ) -> Dict[str, Any]:
        """Ask the model to fill in fields the pattern extractor missed.

        Args:
            lead_fields: The fields recovered so far
            snippet: Original search-result text the lead came from
            missing_fields: Names of the fields to request

        Returns:
            Dictionary restricted to the requested field names

        Raises:
            ValueError: If the reply has no valid JSON object
        """
        prompt = ENHANCE_PROMPT.format(
            record=json.dumps(lead_fields, indent=2),
            snippet=snippet,
            fields=", ".join(missing_fields),
        )
        reply = self.complete_json(prompt)
        return {key: reply[key] for key in missing_fields if key in reply}

    def health_check(self) -> bool:
        """Send a tiny prompt; True when the model answers."""
        try:
            return bool(self.complete("Reply with 'OK'", max_tokens=10))
        except (requests.exceptions.RequestException, ValueError) as e:
            self.logger.warning(f"Gemini health check failed: {e}")
            return False

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
            self.logger.debug("Gemini session closed")

    def __enter__(self) -> "LLMClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
