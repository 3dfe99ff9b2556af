# search_client.py
"""Google Custom Search client for executing dork queries."""

import re
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import ConfigurationError, config
from .dork_patterns import DATE_RESTRICTS
from .logging_utils import get_logger
from .models import SearchResultRecord


class SearchClient:
    """Google Custom Search JSON API wrapper for Lead Radar.

    Executes one query page at a time. Pagination and rate limiting are the
    caller's responsibility.
    """

    # The Custom Search API returns at most 10 results per call
    PAGE_SIZE = 10

    MAX_RETRIES = 3
    BASE_RETRY_DELAY = 1.0

    _TIME_FILTER_RE = re.compile(r"\s+(qdr:[a-z0-9]+)\s*$")

    def __init__(
        self,
        api_key: Optional[str] = None,
        cx: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the Search client.

        Args:
            api_key: Google API key. Defaults to config value.
            cx: Programmable Search Engine ID. Defaults to config value.
            endpoint: Custom Search endpoint URL. Defaults to config value.
            timeout: Request timeout in seconds. Defaults to config value.
            session: Optional pre-built requests session.
        """
        self.logger = get_logger(__name__)

        self.api_key = api_key if api_key is not None else config.GOOGLE_API_KEY
        self.cx = cx if cx is not None else config.GOOGLE_CX
        self.endpoint = endpoint or config.GOOGLE_SEARCH_ENDPOINT
        self.timeout = timeout or config.HTTP_TIMEOUT_SECONDS

        self._session = session
        self.request_count = 0

    def validate_credentials(self) -> None:
        """Ensure the client can authenticate.

        Raises:
            ConfigurationError: If the API key or search engine ID is missing.
        """
        missing = []
        if not self.api_key:
            missing.append("GOOGLE_API_KEY")
        if not self.cx:
            missing.append("GOOGLE_CX")
        if missing:
            raise ConfigurationError(
                f"Missing search credentials: {', '.join(missing)}. "
                "Set these environment variables before running the pipeline."
            )

    def _get_session(self) -> requests.Session:
        """Get or create a requests session with retry configuration."""
        if self._session is None:
            self._session = requests.Session()

            retry_strategy = Retry(
                total=self.MAX_RETRIES,
                backoff_factor=self.BASE_RETRY_DELAY,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=["GET"],
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            self._session.mount("https://", adapter)
            self._session.mount("http://", adapter)

        return self._session

    @classmethod
    def split_time_filter(cls, query: str) -> Tuple[str, Optional[str]]:
        """Separate a trailing ``qdr:`` recency token from the query text.

        Returns:
            Tuple of (query without the token, dateRestrict value or None).
        """
        match = cls._TIME_FILTER_RE.search(query)
        if not match:
            return query, None
        return query[:match.start()], DATE_RESTRICTS.get(match.group(1))

    def _build_params(self, query: str, start_index: int) -> Dict[str, Any]:
        text, date_restrict = self.split_time_filter(query)
        params: Dict[str, Any] = {
            "key": self.api_key,
            "cx": self.cx,
            "q": text,
            "start": start_index,
            "num": self.PAGE_SIZE,
        }
        if date_restrict:
            params["dateRestrict"] = date_restrict
        return params

    def search(self, query: str, start_index: int = 1) -> List[SearchResultRecord]:
        """Execute one page of a query.

        Args:
            query: The dork query string.
            start_index: 1-based index of the first result to return.

        Returns:
            Up to PAGE_SIZE result records, or an empty list when exhausted.

        Raises:
            requests.exceptions.RequestException: On transport or HTTP failure.
        """
        params = self._build_params(query, start_index)
        session = self._get_session()

        self.logger.debug(
            "Making search API request",
            extra={"query": params["q"], "start_index": start_index}
        )

        try:
            response = session.get(self.endpoint, params=params, timeout=self.timeout)
            self.request_count += 1
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.HTTPError as e:
            self.logger.error(
                f"Search API request failed: {e}",
                extra={
                    "status_code": e.response.status_code if e.response is not None else None,
                    "query": params["q"],
                }
            )
            raise

        except ValueError as e:
            raise requests.exceptions.RequestException(
                f"Invalid JSON from search API: {e}"
            ) from e

        if not isinstance(data, dict):
            raise requests.exceptions.RequestException(
                f"Unexpected search API response: {type(data).__name__}"
            )

        items = data.get("items") or []
        if not isinstance(items, list):
            raise requests.exceptions.RequestException(
                f"Unexpected search API items: {type(items).__name__}"
            )

        try:
            results = [SearchResultRecord.model_validate(item) for item in items]
        except ValidationError as e:
            raise requests.exceptions.RequestException(
                f"Malformed search API item: {e.error_count()} validation error(s)"
            ) from e

        info = data.get("searchInformation")
        self.logger.debug(
            "Search API request completed",
            extra={
                "query": params["q"],
                "start_index": start_index,
                "results_count": len(results),
                "total_results": info.get("totalResults") if isinstance(info, dict) else None,
            }
        )

        return results

    def get_usage_stats(self) -> Dict[str, Any]:
        """Get usage statistics for this client session."""
        return {
            "endpoint": self.endpoint,
            "request_count": self.request_count,
            "has_credentials": bool(self.api_key and self.cx),
        }

    def close(self) -> None:
        """Close the HTTP session and clean up resources."""
        if self._session:
            self._session.close()
            self._session = None
            self.logger.debug("Search client session closed")

    def __enter__(self) -> "SearchClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
