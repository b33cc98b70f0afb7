"""Tests for the HTTP document fetcher."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from tuoitre_crawler.config.settings import Settings
from tuoitre_crawler.engines.document_fetcher import (
    DocumentFetcher,
    FetchError,
    HttpDocumentFetcher,
)


def _settings(**overrides) -> Settings:
    values = dict(request_delay_seconds=0.0, retry_backoff_seconds=0.0, max_retries=2)
    values.update(overrides)
    return Settings(**values)


def _response(text: str = "<html></html>", status_error: Exception | None = None) -> MagicMock:
    response = MagicMock()
    response.text = text
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    return response


class TestHttpDocumentFetcher:
    """Unit tests for HttpDocumentFetcher."""

    def test_implements_protocol(self):
        assert isinstance(HttpDocumentFetcher(_settings()), DocumentFetcher)

    def test_returns_response_text(self):
        """A successful request SHALL return the body text."""
        fetcher = HttpDocumentFetcher(_settings(request_timeout_seconds=12.5))

        with patch("tuoitre_crawler.engines.document_fetcher.requests.get",
                   return_value=_response("<p>ok</p>")) as mock_get:
            html = fetcher.fetch("https://tuoitre.vn/tin-moi-nhat.htm")

        assert html == "<p>ok</p>"
        mock_get.assert_called_once()
        assert mock_get.call_args.kwargs["timeout"] == 12.5

    def test_retries_transient_failures(self):
        """A transient failure SHALL be retried."""
        fetcher = HttpDocumentFetcher(_settings(max_retries=2))

        with patch("tuoitre_crawler.engines.document_fetcher.requests.get", side_effect=[
            requests.ConnectionError("reset"),
            _response("<p>second</p>"),
        ]) as mock_get:
            html = fetcher.fetch("https://tuoitre.vn/a.htm")

        assert html == "<p>second</p>"
        assert mock_get.call_count == 2

    def test_wraps_error_after_retries(self):
        """Exhausted retries SHALL raise FetchError carrying the URL."""
        fetcher = HttpDocumentFetcher(_settings(max_retries=2))

        with patch("tuoitre_crawler.engines.document_fetcher.requests.get",
                   side_effect=requests.Timeout("timed out")) as mock_get:
            with pytest.raises(FetchError) as exc_info:
                fetcher.fetch("https://tuoitre.vn/a.htm")

        assert mock_get.call_count == 3
        assert exc_info.value.url == "https://tuoitre.vn/a.htm"
        assert "timed out" in exc_info.value.cause

    def test_zero_retries_is_single_attempt(self):
        """max_retries=0 SHALL make exactly one attempt."""
        fetcher = HttpDocumentFetcher(_settings(max_retries=0))

        with patch("tuoitre_crawler.engines.document_fetcher.requests.get",
                   side_effect=requests.ConnectionError("down")) as mock_get:
            with pytest.raises(FetchError):
                fetcher.fetch("https://tuoitre.vn/a.htm")

        assert mock_get.call_count == 1

    def test_http_error_status_raises_fetch_error(self):
        """An HTTP error status SHALL raise FetchError."""
        fetcher = HttpDocumentFetcher(_settings(max_retries=0))
        response = _response(status_error=requests.HTTPError("503 Service Unavailable"))

        with patch("tuoitre_crawler.engines.document_fetcher.requests.get", return_value=response):
            with pytest.raises(FetchError) as exc_info:
                fetcher.fetch("https://tuoitre.vn/a.htm")

        assert "503" in exc_info.value.cause

    def test_waits_request_delay(self):
        """Each request SHALL be preceded by the configured delay."""
        fetcher = HttpDocumentFetcher(_settings(request_delay_seconds=0.25))

        with patch("tuoitre_crawler.engines.document_fetcher.time.sleep") as mock_sleep:
            with patch("tuoitre_crawler.engines.document_fetcher.requests.get",
                       return_value=_response()):
                fetcher.fetch("https://tuoitre.vn/a.htm")

        mock_sleep.assert_called_once_with(0.25)
