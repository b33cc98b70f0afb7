"""Deduplication gate checking candidates against the article store."""

import logging

from tuoitre_crawler.connectors.article_store import ArticleStore


logger = logging.getLogger(__name__)


class DeduplicationGate:
    """Decides whether a source URL has already been ingested.

    The source URL is the only deduplication key; titles and content are
    not compared. Store lookup errors propagate unchanged so that a failed
    lookup is never mistaken for either answer.

    Attributes:
        store: Article store queried by source URL
    """

    def __init__(self, store: ArticleStore):
        self.store = store

    def is_known(self, source_url: str) -> bool:
        """Return True if an article with this source URL is already stored.

        Args:
            source_url: Absolute article URL

        Returns:
            True if the store holds a matching article

        Raises:
            StoreError: If the lookup fails
        """
        known = self.store.find_by_source_url(source_url) is not None
        if known:
            logger.debug(f"Known source URL: {source_url}")
        return known
