"""Document fetcher protocol and the default HTTP implementation."""

import logging
import time
from typing import Protocol, runtime_checkable

import requests
from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from tuoitre_crawler.config.settings import Settings


logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a document cannot be retrieved.

    Attributes:
        url: The URL that failed
        cause: Description of the underlying transport error
    """

    def __init__(self, url: str, cause: str):
        super().__init__(f"Failed to fetch {url}: {cause}")
        self.url = url
        self.cause = cause


@runtime_checkable
class DocumentFetcher(Protocol):
    """Protocol for retrieving raw HTML.

    Implementations must raise FetchError for any transport failure so
    that callers only need to handle one error type.
    """

    def fetch(self, url: str) -> str:
        """Return the HTML body for a URL.

        Raises:
            FetchError: If the document cannot be retrieved
        """
        ...


class HttpDocumentFetcher:
    """Fetches documents over HTTP with pacing, timeout and bounded retries.

    Each request waits `request_delay_seconds` first, is bounded by
    `request_timeout_seconds`, and is retried up to `max_retries` times with
    exponential backoff on request exceptions.

    Attributes:
        settings: Configuration settings for the fetcher
    """

    def __init__(self, settings: Settings):
        """Initialize the fetcher.

        Args:
            settings: Configuration settings including delays, timeout and retries
        """
        self.settings = settings

    def fetch(self, url: str) -> str:
        """Fetch a URL, retrying transient failures.

        Args:
            url: URL to fetch

        Returns:
            Response body as text

        Raises:
            FetchError: On network or HTTP errors after retries
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(multiplier=self.settings.retry_backoff_seconds, max=10),
            retry=retry_if_exception_type(requests.RequestException),
            reraise=True,
        )
        try:
            return retrying(self._fetch_once, url)
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e

    def _fetch_once(self, url: str) -> str:
        # Respect request pacing
        if self.settings.request_delay_seconds > 0:
            time.sleep(self.settings.request_delay_seconds)

        headers = {
            "User-Agent": "TuoitreCrawler/1.0 (News Ingestion)",
            "Accept": "text/html,application/xhtml+xml",
        }

        logger.debug(f"GET {url}")
        response = requests.get(
            url,
            headers=headers,
            timeout=self.settings.request_timeout_seconds,
        )
        response.raise_for_status()

        return response.text
