"""
HTTP fetcher with error handling and retry logic.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

import httpx

from activity_status.config import get_config
from activity_status.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FetchResult:
    """Result of a fetch operation."""

    success: bool
    url: str
    text: Optional[str] = None
    error: Optional[str] = None
    fetch_time_seconds: float = 0.0
    http_status: Optional[int] = None

    def __post_init__(self):
        """Validate fetch result."""
        if self.success and self.error:
            raise ValueError("Successful fetch cannot have an error")
        if not self.success and not self.error:
            self.error = "Unknown error"


@dataclass
class FetchStats:
    """Statistics for fetch operations."""

    total_requests: int = 0
    successful_fetches: int = 0
    failed_fetches: int = 0
    total_time_seconds: float = 0.0
    errors_by_type: dict = field(default_factory=dict)

    def add_result(self, result: FetchResult) -> None:
        """Add a fetch result to statistics.

        Args:
            result: FetchResult to add
        """
        self.total_requests += 1
        self.total_time_seconds += result.fetch_time_seconds

        if result.success:
            self.successful_fetches += 1
        else:
            self.failed_fetches += 1
            error_type = result.error.split(":")[0] if result.error else "unknown"
            self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        if self.total_requests == 0:
            return 0.0
        return self.successful_fetches / self.total_requests


class FeedFetcher:
    """Fetches feed documents and API payloads with retries.

    Timeouts, 5xx responses and network errors are retried with a linear backoff.
    4xx responses are not retried. Failures are reported in the FetchResult rather
    than raised.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        user_agent: Optional[str] = None,
        retry_delay_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize fetcher.

        Args:
            timeout_seconds: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            user_agent: User-Agent header for HTTP requests
            retry_delay_seconds: Base delay between retries
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        config = get_config()

        self.timeout_seconds = timeout_seconds or config.fetcher.timeout_seconds
        self.max_retries = max_retries if max_retries is not None else config.fetcher.max_retries
        self.user_agent = user_agent or config.fetcher.user_agent
        self.retry_delay_seconds = (
            retry_delay_seconds if retry_delay_seconds is not None
            else config.fetcher.retry_delay_seconds
        )
        self.follow_redirects = config.fetcher.follow_redirects
        self.max_redirects = config.fetcher.max_redirects
        self.transport = transport

        self.stats = FetchStats()
        self._stats_lock = threading.Lock()

    def fetch(self, url: str, headers: Optional[dict[str, str]] = None) -> FetchResult:
        """Fetch a URL.

        Args:
            url: URL to fetch
            headers: Extra request headers

        Returns:
            FetchResult with the response body or an error
        """
        start_time = time.time()
        last_error = None
        http_status = None

        logger.debug(f"Fetching {url}")

        for attempt in range(self.max_retries + 1):
            try:
                response = self._fetch_http(url, headers=headers)
                fetch_time = time.time() - start_time

                logger.debug(f"Fetched {url} ({response.status_code}) in {fetch_time:.2f}s")

                result = FetchResult(
                    success=True,
                    url=url,
                    text=response.text,
                    fetch_time_seconds=fetch_time,
                    http_status=response.status_code,
                )
                self._record(result)
                return result

            except httpx.TimeoutException as e:
                last_error = f"Timeout: {str(e)}"
                logger.warning(f"Timeout fetching {url} (attempt {attempt + 1}/{self.max_retries + 1})")

            except httpx.HTTPStatusError as e:
                last_error = f"HTTP {e.response.status_code}: {str(e)}"
                http_status = e.response.status_code

                # Don't retry client errors (4xx)
                if 400 <= e.response.status_code < 500:
                    logger.warning(f"Client error fetching {url}: HTTP {http_status}")
                    break

                logger.warning(f"HTTP error fetching {url} (attempt {attempt + 1})")

            except httpx.RequestError as e:
                last_error = f"Request error: {str(e)}"
                logger.warning(f"Network error fetching {url} (attempt {attempt + 1})")

            if attempt < self.max_retries:
                time.sleep(self.retry_delay_seconds * (attempt + 1))

        result = FetchResult(
            success=False,
            url=url,
            fetch_time_seconds=time.time() - start_time,
            error=last_error or "Unknown error",
            http_status=http_status,
        )
        self._record(result)
        return result

    def _record(self, result: FetchResult) -> None:
        # Sources are fetched from several worker threads
        with self._stats_lock:
            self.stats.add_result(result)

    def _fetch_http(self, url: str, headers: Optional[dict[str, str]] = None) -> httpx.Response:
        """Fetch URL with HTTP client.

        Args:
            url: URL to fetch
            headers: Extra request headers

        Returns:
            httpx Response

        Raises:
            httpx.TimeoutException: On timeout
            httpx.HTTPStatusError: On HTTP error
            httpx.RequestError: On network error
        """
        request_headers = {"User-Agent": self.user_agent}
        if headers:
            request_headers.update(headers)

        with httpx.Client(
            timeout=self.timeout_seconds,
            follow_redirects=self.follow_redirects,
            max_redirects=self.max_redirects,
            transport=self.transport,
        ) as client:
            response = client.get(url, headers=request_headers)
            response.raise_for_status()
            return response

    def validate_url(self, url: str) -> tuple[bool, Optional[str]]:
        """Validate a source URL.

        Args:
            url: URL to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        result = urlparse(url)
        if not result.scheme or not result.netloc:
            return False, "Invalid URL format"

        if result.scheme not in ("http", "https"):
            return False, f"Unsupported scheme: {result.scheme}"

        return True, None
