"""Article data models shared across the ingestion pipeline."""

from dataclasses import dataclass, field, replace
from datetime import datetime


# Category used when a listing link carries no section segment
UNKNOWN_CATEGORY = "unknown"


@dataclass
class ArticleStub:
    """Represents an article as seen on the listing page, before enrichment.

    Attributes:
        title: Headline text from the listing entry
        source_url: Absolute article URL, the deduplication key
        summary: Teaser text, empty when the entry has none
        image_url: Thumbnail URL if present
        content: Full body text, empty until the detail page is read
        published_at: Provisional timestamp, set to the ingestion time
        category: Section slug taken from the link path
    """
    title: str
    source_url: str
    summary: str = ""
    image_url: str | None = None
    content: str = ""
    published_at: datetime = field(default_factory=datetime.now)
    category: str = UNKNOWN_CATEGORY


@dataclass
class ArticleDetail:
    """Content and publication time read from an article's own page.

    Attributes:
        content: Paragraph texts joined by a blank line
        published_at: Parsed publication time, or None if unparsable
    """
    content: str
    published_at: datetime | None = None


@dataclass
class Article:
    """Represents an article record as held by the article store.

    Attributes:
        title: Headline
        source_url: Absolute article URL, unique across the store
        summary: Listing teaser
        image_url: Thumbnail URL if present
        content: Body text, or the summary when no body was available
        published_at: Publication time
        category: Section slug
        id: Store-assigned identifier, None before persisting
        created_at: Store-assigned creation time, None before persisting
    """
    title: str
    source_url: str
    summary: str
    image_url: str | None
    content: str
    published_at: datetime
    category: str
    id: int | None = None
    created_at: datetime | None = None


def merge_detail(stub: ArticleStub, detail: ArticleDetail | None) -> Article:
    """Combine a listing stub with its detail page into an Article.

    Detail values win when present. Empty detail content falls back to the
    stub summary and a missing detail timestamp keeps the provisional one.
    Without any detail the stub's summary and provisional time are used as-is.

    Args:
        stub: The listing stub
        detail: Detail page data, or None when it could not be fetched

    Returns:
        Unsaved Article built from the stub and detail

    Example:
        >>> stub = ArticleStub(title="A", source_url="https://tuoitre.vn/a.htm", summary="teaser")
        >>> merge_detail(stub, ArticleDetail(content="")).content
        'teaser'
    """
    content = stub.summary
    published_at = stub.published_at

    if detail is not None:
        content = detail.content or stub.summary
        published_at = detail.published_at or stub.published_at

    return Article(
        title=stub.title,
        source_url=stub.source_url,
        summary=stub.summary,
        image_url=stub.image_url,
        content=content,
        published_at=published_at,
        category=stub.category,
    )


def with_identity(article: Article, article_id: int, created_at: datetime) -> Article:
    """Return a copy of an article carrying its store-assigned identity."""
    return replace(article, id=article_id, created_at=created_at)
