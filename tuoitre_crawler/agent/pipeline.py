"""Ingestion pipeline orchestrating listing, deduplication, enrichment and persistence.

One run fetches the listing page once, then handles each stub on its own:
check the store, fetch the detail page if the article is new, merge, and
persist. A failed listing fetch fails the whole run; a failure on one stub
only drops that stub.
"""

import logging
import time
from typing import Callable

from tuoitre_crawler.config.settings import Settings
from tuoitre_crawler.connectors.article_store import ArticleStore
from tuoitre_crawler.engines.article_models import Article, ArticleStub, merge_detail
from tuoitre_crawler.engines.datetime_parser import DateTimeParser
from tuoitre_crawler.engines.deduplication import DeduplicationGate
from tuoitre_crawler.engines.detail_extractor import DetailExtractor
from tuoitre_crawler.engines.document_fetcher import DocumentFetcher, FetchError
from tuoitre_crawler.engines.listing_extractor import ListingExtractor
from tuoitre_crawler.engines.observability import IngestionSink, LoggingSink


logger = logging.getLogger(__name__)


DEFAULT_CRAWL_LIMIT = 10


class FatalRunError(Exception):
    """Raised when a run cannot produce any result, e.g. the listing fetch failed."""

    pass


class PerArticleError(Exception):
    """Failure while processing a single stub.

    Attributes:
        stub: The stub being processed
        cause: The underlying exception
    """

    def __init__(self, stub: ArticleStub, cause: Exception):
        super().__init__(f"Error processing article {stub.title}: {cause}")
        self.stub = stub
        self.cause = cause


class IngestionPipeline:
    """Runs the list, filter, enrich and persist flow for one news source.

    Stubs are processed sequentially in listing order. The store lookup for
    a stub always happens before its detail fetch, so known articles never
    cost a network request.

    Attributes:
        fetcher: Document fetcher for the listing and detail pages
        store: Article store used for deduplication and persistence
        sink: Receiver of pipeline events
        settings: Configuration settings
        listing_extractor: Parser for the listing page
        detail_extractor: Fetcher and parser for article pages
        dedup_gate: Source URL lookup against the store
    """

    def __init__(
        self,
        fetcher: DocumentFetcher,
        store: ArticleStore,
        sink: IngestionSink | None = None,
        settings: Settings | None = None,
        listing_extractor: ListingExtractor | None = None,
        detail_extractor: DetailExtractor | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetcher = fetcher
        self.store = store
        self.sink = sink or LoggingSink()
        self.settings = settings or Settings()
        self.listing_extractor = listing_extractor or ListingExtractor(
            base_url=self.settings.base_url,
        )
        self.detail_extractor = detail_extractor or DetailExtractor(
            fetcher,
            date_parser=DateTimeParser(self.settings.timezone()),
        )
        self.dedup_gate = DeduplicationGate(store)
        self._clock = clock

    def crawl(self, limit: int = DEFAULT_CRAWL_LIMIT) -> list[Article]:
        """Crawl the newest articles. Entry point of the crawler."""
        return self.run(limit)

    def run(self, limit: int) -> list[Article]:
        """Execute one run.

        Args:
            limit: Maximum number of listing entries to consider

        Returns:
            Articles created during this run, in listing order

        Raises:
            FatalRunError: If the listing page cannot be fetched
        """
        started = self._clock()
        listing_url = self.settings.listing_url

        try:
            html = self.fetcher.fetch(listing_url)
        except FetchError as e:
            logger.error(f"Error crawling {listing_url}: {e.cause}")
            raise FatalRunError(f"Listing fetch failed: {e}") from e

        stubs = self.listing_extractor.extract_listing(html, limit)
        self.sink.articles_found(len(stubs))

        saved: list[Article] = []
        for index, stub in enumerate(stubs):
            if self._deadline_passed(started):
                self.sink.run_deferred(len(stubs) - index)
                break

            try:
                article = self._process_stub(stub)
            except PerArticleError as e:
                self.sink.article_failed(e.stub, e.cause)
                continue

            if article is not None:
                saved.append(article)

        self.sink.run_finished(saved)
        return saved

    def _process_stub(self, stub: ArticleStub) -> Article | None:
        """Check, enrich and persist one stub.

        Returns:
            The created Article, or None if the stub was already known

        Raises:
            PerArticleError: If the lookup, detail fetch or insert fails
        """
        try:
            known = self.dedup_gate.is_known(stub.source_url)
        except Exception as e:
            raise PerArticleError(stub, e) from e

        if known:
            self.sink.article_skipped(stub)
            return None

        try:
            detail = self.detail_extractor.extract_detail(stub.source_url)
        except Exception as e:
            raise PerArticleError(stub, e) from e

        if detail is None:
            self.sink.detail_unavailable(stub)

        try:
            article = self.store.create(merge_detail(stub, detail))
        except Exception as e:
            raise PerArticleError(stub, e) from e

        self.sink.article_added(article)
        return article

    def _deadline_passed(self, started: float) -> bool:
        deadline = self.settings.run_deadline_seconds
        if deadline <= 0:
            return False
        return self._clock() - started >= deadline
