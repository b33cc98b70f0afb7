"""Article store connectors: the store protocol, an in-memory store and a SQL store."""

import logging
from datetime import datetime
from typing import Protocol, runtime_checkable

from sqlalchemy import DateTime, Integer, String, Text, create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from tuoitre_crawler.engines.article_models import Article, with_identity


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the article store cannot complete an operation."""

    pass


class DuplicateArticleError(StoreError):
    """Raised when creating an article whose source URL is already stored."""

    def __init__(self, source_url: str):
        super().__init__(f"Article already stored: {source_url}")
        self.source_url = source_url


@runtime_checkable
class ArticleStore(Protocol):
    """Protocol for the durable article store, keyed by source URL."""

    def find_by_source_url(self, source_url: str) -> Article | None:
        """Return the stored article with this source URL, or None."""
        ...

    def create(self, article: Article) -> Article:
        """Persist a new article and return it with its assigned identity.

        Raises:
            DuplicateArticleError: If the source URL is already stored
            StoreError: On any other storage failure
        """
        ...


class InMemoryArticleStore:
    """Article store held in a dict, for tests and dry runs."""

    def __init__(self, articles: list[Article] | None = None):
        self._articles: dict[str, Article] = {}
        self._next_id = 1
        for article in articles or []:
            self.create(article)

    def find_by_source_url(self, source_url: str) -> Article | None:
        return self._articles.get(source_url)

    def create(self, article: Article) -> Article:
        if article.source_url in self._articles:
            raise DuplicateArticleError(article.source_url)

        stored = with_identity(article, self._next_id, datetime.now())
        self._articles[article.source_url] = stored
        self._next_id += 1
        return stored

    def __len__(self) -> int:
        return len(self._articles)


class Base(DeclarativeBase):
    """Base class for ORM models."""


class ArticleRecord(Base):
    """Stored article row."""

    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    source_url: Mapped[str] = mapped_column(String(2048), nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    category: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def to_article(self) -> Article:
        return Article(
            title=self.title,
            source_url=self.source_url,
            summary=self.summary,
            image_url=self.image_url,
            content=self.content,
            published_at=self.published_at,
            category=self.category,
            id=self.id,
            created_at=self.created_at,
        )


class SqlArticleStore:
    """Article store backed by a SQL database through SQLAlchemy.

    The `articles` table enforces uniqueness of `source_url`, so concurrent
    runs cannot both insert the same article. Tables are created on
    construction if missing.

    Attributes:
        engine: SQLAlchemy engine for the database
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessionmaker = sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
        )
        Base.metadata.create_all(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlArticleStore":
        """Create a store for a database URL such as "sqlite:///articles.db"."""
        return cls(create_engine(database_url))

    def find_by_source_url(self, source_url: str) -> Article | None:
        stmt = select(ArticleRecord).where(ArticleRecord.source_url == source_url)
        try:
            with self._sessionmaker() as session:
                record = session.execute(stmt).scalar_one_or_none()
                return record.to_article() if record is not None else None
        except SQLAlchemyError as e:
            raise StoreError(f"Lookup failed for {source_url}: {e}") from e

    def create(self, article: Article) -> Article:
        record = ArticleRecord(
            title=article.title,
            summary=article.summary,
            image_url=article.image_url,
            source_url=article.source_url,
            content=article.content,
            published_at=article.published_at,
            category=article.category,
        )
        session: Session = self._sessionmaker()
        try:
            session.add(record)
            session.commit()
            session.refresh(record)
            return record.to_article()
        except IntegrityError as e:
            session.rollback()
            raise DuplicateArticleError(article.source_url) from e
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"Insert failed for {article.source_url}: {e}") from e
        finally:
            session.close()

    def count(self) -> int:
        """Return the number of stored articles."""
        with self._sessionmaker() as session:
            return session.execute(select(func.count(ArticleRecord.id))).scalar_one()
