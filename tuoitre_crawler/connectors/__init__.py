"""Connectors module - article store integrations."""

from tuoitre_crawler.connectors.article_store import (
    ArticleStore,
    DuplicateArticleError,
    InMemoryArticleStore,
    SqlArticleStore,
    StoreError,
)

__all__ = [
    "ArticleStore",
    "DuplicateArticleError",
    "InMemoryArticleStore",
    "SqlArticleStore",
    "StoreError",
]
