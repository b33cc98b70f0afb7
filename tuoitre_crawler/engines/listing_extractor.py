"""Extraction of article stubs from the Tuoi Tre latest-news listing page."""

import logging
from datetime import datetime
from typing import Any, Callable
from urllib.parse import urljoin, urlparse

from tuoitre_crawler.engines.article_models import ArticleStub, UNKNOWN_CATEGORY
from tuoitre_crawler.engines.document_query import (
    DocumentQuery,
    SoupDocumentQuery,
    attr_chain,
    text_chain,
)


logger = logging.getLogger(__name__)


# Origin that relative listing links are resolved against
TUOITRE_BASE_URL = "https://tuoitre.vn"

# One listing entry per matched element
ENTRY_SELECTOR = ".news-item"

# Anchor carrying both the headline and the article link
TITLE_LINK_SELECTOR = "h3 a"

# Summary sources, highest precedence first
SUMMARY_SELECTORS = (".news-content p", ".summary")

# Thumbnail attributes, lazy-load first
IMAGE_ATTRIBUTES = ("data-src", "src")


def category_from_link(link: str | None) -> str:
    """Derive the section slug from an article link.

    The link path is split on "/" and its first segment is the category.

    Args:
        link: Relative or absolute article link

    Returns:
        The first path segment, or "unknown" when the link has no path segment

    Example:
        >>> category_from_link("/thoi-su/bai-viet.htm")
        'thoi-su'
        >>> category_from_link("/bai-viet-2024101208300000.htm")
        'bai-viet-2024101208300000.htm'
    """
    if not link:
        return UNKNOWN_CATEGORY

    segments = [s for s in urlparse(link).path.split("/") if s]
    if not segments:
        return UNKNOWN_CATEGORY

    return segments[0]


class ListingExtractor:
    """Turns listing-page HTML into an ordered list of article stubs.

    Entries are visited in document order and extraction stops as soon as
    the limit is reached, so entries past the cap are never parsed.
    Entries without a title or a link are skipped and do not count.

    Attributes:
        base_url: Origin used to resolve relative links
        query: Document query capability
        clock: Returns the provisional publication time for new stubs
    """

    def __init__(
        self,
        base_url: str = TUOITRE_BASE_URL,
        query: DocumentQuery | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.base_url = base_url
        self.query = query or SoupDocumentQuery()
        self.clock = clock

    def extract_listing(self, html: str, limit: int) -> list[ArticleStub]:
        """Extract up to `limit` stubs from a listing page.

        Args:
            html: Raw HTML of the listing page
            limit: Maximum number of stubs to return, 0 yields an empty list

        Returns:
            Stubs in document order, at most `limit` items

        Raises:
            ValueError: If limit is negative
        """
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        if limit == 0:
            return []

        document = self.query.parse(html)
        stubs: list[ArticleStub] = []

        for entry in self.query.query_all(document, ENTRY_SELECTOR):
            stub = self._parse_entry(entry)
            if stub is None:
                continue

            stubs.append(stub)
            if len(stubs) >= limit:
                break

        logger.debug(f"Extracted {len(stubs)} stubs from listing (limit {limit})")
        return stubs

    def _parse_entry(self, entry: Any) -> ArticleStub | None:
        """Parse a single listing entry.

        Args:
            entry: Node matched by the entry selector

        Returns:
            ArticleStub, or None if the entry has no title or no link
        """
        anchor = self.query.query_one(entry, TITLE_LINK_SELECTOR)
        if anchor is None:
            return None

        title = self.query.text(anchor)
        link = (self.query.attr(anchor, "href") or "").strip()
        if not title or not link:
            return None

        summary = text_chain(self.query, entry, SUMMARY_SELECTORS) or ""

        image_url = None
        image = self.query.query_one(entry, "img")
        if image is not None:
            image_url = attr_chain(self.query, image, IMAGE_ATTRIBUTES)

        return ArticleStub(
            title=title,
            source_url=urljoin(self.base_url, link),
            summary=summary,
            image_url=image_url,
            content="",
            published_at=self.clock(),
            category=category_from_link(link),
        )
