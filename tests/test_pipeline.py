"""Tests for the ingestion pipeline."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from tuoitre_crawler.agent.pipeline import FatalRunError, IngestionPipeline
from tuoitre_crawler.config.settings import Settings
from tuoitre_crawler.connectors.article_store import (
    InMemoryArticleStore,
    StoreError,
)
from tuoitre_crawler.engines.article_models import (
    Article,
    ArticleDetail,
    ArticleStub,
    merge_detail,
)
from tuoitre_crawler.engines.document_fetcher import FetchError
from tuoitre_crawler.engines.observability import LoggingSink


LISTING_URL = "https://tuoitre.vn/tin-moi-nhat.htm"


def _url(i: int) -> str:
    return f"https://tuoitre.vn/thoi-su/bai-{i}.htm"


def _listing_page(count: int) -> str:
    items = "".join(
        f'<div class="news-item"><h3><a href="/thoi-su/bai-{i}.htm">Bài {i}</a></h3>'
        f'<p class="summary">Tóm tắt {i}</p></div>'
        for i in range(1, count + 1)
    )
    return f"<html><body>{items}</body></html>"


def _detail_page(i: int) -> str:
    return (
        '<html><body><div class="detail-time">Thứ Bảy, 12/10/2024 - 08:30</div>'
        f'<div class="detail-content"><p>Nội dung {i}.</p></div></body></html>'
    )


class FakeFetcher:
    """Fetcher serving a listing page and detail pages, recording every request.

    URLs in `failing` raise FetchError, the transport failure the detail
    extractor turns into "no detail". URLs in `broken` return a body that
    cannot be decoded, which escapes the extractor.
    """

    def __init__(
        self,
        count: int,
        failing: set[str] | None = None,
        listing_error: bool = False,
        broken: set[str] | None = None,
    ):
        self.pages = {LISTING_URL: _listing_page(count)}
        for i in range(1, count + 1):
            self.pages[_url(i)] = _detail_page(i)
        self.failing = failing or set()
        self.broken = broken or set()
        self.listing_error = listing_error
        self.requested: list[str] = []

    def fetch(self, url: str) -> str:
        self.requested.append(url)
        if url == LISTING_URL and self.listing_error:
            raise FetchError(url, "Connection refused")
        if url in self.failing:
            raise FetchError(url, "500 Internal Server Error")
        if url in self.broken:
            raise UnicodeDecodeError("utf-8", b"\xff\xfe", 0, 1, "invalid start byte")
        return self.pages[url]

    def detail_requests(self) -> list[str]:
        return [u for u in self.requested if u != LISTING_URL]


def _stored(url: str) -> Article:
    return Article(
        title="Đã có",
        source_url=url,
        summary="",
        image_url=None,
        content="cũ",
        published_at=datetime(2024, 1, 1),
        category="thoi-su",
    )


def _pipeline(fetcher, store=None, **kwargs) -> IngestionPipeline:
    return IngestionPipeline(
        fetcher=fetcher,
        store=store if store is not None else InMemoryArticleStore(),
        sink=kwargs.pop("sink", LoggingSink()),
        settings=kwargs.pop("settings", Settings()),
        **kwargs,
    )


class TestPipelineFlow:
    """End-to-end runs against fake collaborators."""

    def test_persists_new_articles_with_detail(self):
        """New stubs SHALL be enriched from their detail page and stored."""
        fetcher = FakeFetcher(3)
        store = InMemoryArticleStore()

        articles = _pipeline(fetcher, store).crawl(10)

        assert [a.source_url for a in articles] == [_url(1), _url(2), _url(3)]
        assert articles[0].content == "Nội dung 1."
        assert articles[0].published_at == datetime(2024, 10, 12, 8, 30)
        assert articles[0].summary == "Tóm tắt 1"
        assert all(a.id is not None for a in articles)
        assert len(store) == 3

    def test_crawl_defaults_to_ten(self):
        """crawl() without a limit SHALL consider 10 entries."""
        fetcher = FakeFetcher(12)

        articles = _pipeline(fetcher).crawl()

        assert len(articles) == 10

    def test_scenario_known_articles_skip_detail_fetch(self):
        """With 12 entries, limit 10 and 3 known, exactly 7 detail fetches SHALL be issued."""
        fetcher = FakeFetcher(12)
        known = {_url(2), _url(5), _url(9)}
        store = InMemoryArticleStore([_stored(u) for u in known])

        articles = _pipeline(fetcher, store).run(10)

        expected = [_url(i) for i in range(1, 11) if _url(i) not in known]
        assert fetcher.detail_requests() == expected
        assert len(fetcher.detail_requests()) == 7
        assert [a.source_url for a in articles] == expected
        assert _url(11) not in fetcher.requested
        assert _url(12) not in fetcher.requested

    def test_second_run_is_idempotent(self):
        """Running twice against an unchanged source SHALL add nothing the second time."""
        fetcher = FakeFetcher(5)
        store = InMemoryArticleStore()
        pipeline = _pipeline(fetcher, store)

        first = pipeline.run(10)
        fetcher.requested.clear()
        second = pipeline.run(10)

        assert len(first) == 5
        assert second == []
        assert fetcher.detail_requests() == []

    def test_listing_fetch_failure_is_fatal(self):
        """A failed listing fetch SHALL raise FatalRunError."""
        fetcher = FakeFetcher(3, listing_error=True)

        with pytest.raises(FatalRunError) as exc_info:
            _pipeline(fetcher).run(10)

        assert isinstance(exc_info.value.__cause__, FetchError)

    def test_limit_zero_stores_nothing(self):
        fetcher = FakeFetcher(3)

        assert _pipeline(fetcher).run(0) == []
        assert fetcher.detail_requests() == []

    def test_uses_configured_listing_url(self):
        """The listing SHALL be fetched from settings.listing_url."""
        fetcher = MagicMock()
        fetcher.fetch.return_value = "<html></html>"
        settings = Settings(listing_url="https://tuoitre.vn/thoi-su.htm")

        _pipeline(fetcher, settings=settings).run(10)

        fetcher.fetch.assert_called_once_with("https://tuoitre.vn/thoi-su.htm")

    def test_duplicate_links_in_one_listing_stored_once(self):
        """The same source URL twice in a listing SHALL be fetched and stored once."""
        fetcher = FakeFetcher(2)
        body = _listing_page(2).replace("<html><body>", "").replace("</body></html>", "")
        fetcher.pages[LISTING_URL] = f"<html><body>{body}{body}</body></html>"

        articles = _pipeline(fetcher).run(10)

        assert [a.source_url for a in articles] == [_url(1), _url(2)]
        assert fetcher.detail_requests() == [_url(1), _url(2)]


class TestPipelineFaultIsolation:
    """Per-article failures are contained."""

    def test_detail_fetch_error_does_not_abort_run(self):
        """If the 3rd of 5 stubs raises on detail fetch, the other 4 SHALL be stored."""
        fetcher = FakeFetcher(5, broken={_url(3)})
        sink = LoggingSink()

        articles = _pipeline(fetcher, sink=sink).run(10)

        assert [a.source_url for a in articles] == [_url(1), _url(2), _url(4), _url(5)]
        assert fetcher.detail_requests() == [_url(i) for i in range(1, 6)]
        assert sink.metrics.failed_count == 1
        assert sink.metrics.detail_unavailable_count == 0
        assert _url(3) in sink.metrics.errors[0]

    def test_unavailable_detail_keeps_stub_data(self):
        """When the detail page cannot be fetched, the stub's summary and time SHALL be stored."""
        fetcher = FakeFetcher(2, failing={_url(2)})
        sink = LoggingSink()

        articles = _pipeline(fetcher, sink=sink).run(10)

        assert [a.source_url for a in articles] == [_url(1), _url(2)]
        assert articles[1].content == "Tóm tắt 2"
        assert articles[1].published_at != datetime(2024, 10, 12, 8, 30)
        assert sink.metrics.detail_unavailable_count == 1

    def test_lookup_error_skips_stub(self):
        """A failing store lookup SHALL drop that stub without a detail fetch."""
        fetcher = FakeFetcher(3)
        store = InMemoryArticleStore()
        original = store.find_by_source_url

        def flaky(url):
            if url == _url(2):
                raise StoreError("lookup timed out")
            return original(url)

        store.find_by_source_url = flaky

        articles = _pipeline(fetcher, store).run(10)

        assert [a.source_url for a in articles] == [_url(1), _url(3)]
        assert _url(2) not in fetcher.detail_requests()

    def test_persist_error_skips_stub(self):
        """A failing insert SHALL drop that stub only."""
        fetcher = FakeFetcher(3)
        store = InMemoryArticleStore()
        original = store.create

        def flaky(article):
            if article.source_url == _url(1):
                raise StoreError("disk full")
            return original(article)

        store.create = flaky

        articles = _pipeline(fetcher, store).run(10)

        assert [a.source_url for a in articles] == [_url(2), _url(3)]


class TestPipelineDeadline:
    """Run deadline behavior."""

    def test_deadline_defers_remaining_stubs(self):
        """Once the deadline passes, remaining stubs SHALL be left for the next run."""
        fetcher = FakeFetcher(5)
        ticks = iter([0.0, 1.0, 2.0, 10.0, 11.0, 12.0])
        sink = LoggingSink()
        settings = Settings(run_deadline_seconds=5.0)

        articles = _pipeline(
            fetcher, sink=sink, settings=settings, clock=lambda: next(ticks)
        ).run(10)

        assert [a.source_url for a in articles] == [_url(1), _url(2)]
        assert sink.metrics.deferred_count == 3

    def test_no_deadline_by_default(self):
        fetcher = FakeFetcher(3)

        ticks = iter(range(0, 10_000_000, 1000))

        articles = _pipeline(fetcher, clock=lambda: next(ticks)).run(10)

        assert len(articles) == 3


class TestMergeDetail:
    """Merge law between stub and detail."""

    STUB = ArticleStub(
        title="Bài",
        source_url=_url(1),
        summary="Tóm tắt",
        published_at=datetime(2024, 10, 12, 9, 0),
        category="thoi-su",
    )

    def test_detail_content_wins(self):
        article = merge_detail(self.STUB, ArticleDetail("Nội dung", datetime(2024, 10, 12, 8, 30)))

        assert article.content == "Nội dung"
        assert article.published_at == datetime(2024, 10, 12, 8, 30)

    def test_empty_detail_content_falls_back_to_summary(self):
        article = merge_detail(self.STUB, ArticleDetail("", None))

        assert article.content == "Tóm tắt"
        assert article.published_at == datetime(2024, 10, 12, 9, 0)

    def test_missing_detail_keeps_stub(self):
        article = merge_detail(self.STUB, None)

        assert article.content == "Tóm tắt"
        assert article.published_at == datetime(2024, 10, 12, 9, 0)
        assert article.id is None
