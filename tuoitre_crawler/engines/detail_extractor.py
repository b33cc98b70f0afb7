"""Extraction of body text and publication time from article pages."""

import logging

from tuoitre_crawler.engines.article_models import ArticleDetail
from tuoitre_crawler.engines.datetime_parser import DateTimeParser
from tuoitre_crawler.engines.document_fetcher import DocumentFetcher, FetchError
from tuoitre_crawler.engines.document_query import (
    DocumentQuery,
    SoupDocumentQuery,
    node_chain,
)


logger = logging.getLogger(__name__)


# Body paragraphs of an article page
PARAGRAPH_SELECTOR = ".detail-content p"

# Date/time display element, highest precedence first
TIME_SELECTORS = (".detail-time", ".date-time")


class DetailExtractor:
    """Fetches an article page and reads its content and publication time.

    Attributes:
        fetcher: Document fetcher used for the article page
        query: Document query capability
        date_parser: Parser for the page's date/time text
    """

    def __init__(
        self,
        fetcher: DocumentFetcher,
        query: DocumentQuery | None = None,
        date_parser: DateTimeParser | None = None,
    ):
        self.fetcher = fetcher
        self.query = query or SoupDocumentQuery()
        self.date_parser = date_parser or DateTimeParser()

    def extract_detail(self, url: str) -> ArticleDetail | None:
        """Fetch and parse one article page.

        Args:
            url: Absolute article URL

        Returns:
            ArticleDetail, or None when the fetcher raised FetchError

        Raises:
            Exception: Any other error from the fetcher or parser propagates
        """
        try:
            html = self.fetcher.fetch(url)
        except FetchError as e:
            logger.error(f"Error crawling article detail from {url}: {e.cause}")
            return None

        return self.parse_detail(html)

    def parse_detail(self, html: str) -> ArticleDetail:
        """Parse an already fetched article page."""
        document = self.query.parse(html)

        paragraphs = [
            self.query.text(p)
            for p in self.query.query_all(document, PARAGRAPH_SELECTOR)
        ]
        # Blank paragraphs (spacers, image wrappers) are left out
        content = "\n\n".join(p for p in paragraphs if p).strip()

        published_at = None
        time_node = node_chain(self.query, document, TIME_SELECTORS)
        if time_node is not None:
            published_at = self.date_parser.parse(self.query.text(time_node))

        return ArticleDetail(content=content, published_at=published_at)
