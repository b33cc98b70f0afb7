"""Observability and run metrics for the ingestion pipeline.

This module provides the sink that receives pipeline events, the metrics
tallied from those events, and the JSON run log writer.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from tuoitre_crawler.engines.article_models import Article, ArticleStub


logger = logging.getLogger(__name__)


@dataclass
class RunMetrics:
    """Metrics collected during a pipeline run.

    Attributes:
        found_count: Stubs extracted from the listing page
        added_count: Articles created in the store
        skipped_count: Stubs skipped because their source URL was known
        detail_unavailable_count: Articles stored without detail page data
        failed_count: Stubs dropped by a per-article failure
        deferred_count: Stubs left unprocessed when the run deadline passed
        errors: Error messages encountered during the run
        run_timestamp: Timestamp when the run started
    """
    found_count: int = 0
    added_count: int = 0
    skipped_count: int = 0
    detail_unavailable_count: int = 0
    failed_count: int = 0
    deferred_count: int = 0
    errors: list[str] = field(default_factory=list)
    run_timestamp: datetime = field(default_factory=datetime.now)


@runtime_checkable
class IngestionSink(Protocol):
    """Receives pipeline events. Purely advisory, never affects control flow."""

    def articles_found(self, count: int) -> None:
        ...

    def article_added(self, article: Article) -> None:
        ...

    def article_skipped(self, stub: ArticleStub) -> None:
        ...

    def detail_unavailable(self, stub: ArticleStub) -> None:
        ...

    def article_failed(self, stub: ArticleStub, cause: Exception) -> None:
        ...

    def run_deferred(self, remaining: int) -> None:
        ...

    def run_finished(self, articles: list[Article]) -> None:
        ...


class LoggingSink:
    """Sink that logs every event and tallies it into RunMetrics.

    Attributes:
        source_name: Name used in log messages
        metrics: Metrics accumulated since construction
    """

    def __init__(self, source_name: str = "Tuoi Tre"):
        self.source_name = source_name
        self.metrics = RunMetrics()

    def articles_found(self, count: int) -> None:
        self.metrics.found_count += count
        logger.info(f"Found {count} new articles from {self.source_name}")

    def article_added(self, article: Article) -> None:
        self.metrics.added_count += 1
        logger.info(f"Added new article: {article.title}")

    def article_skipped(self, stub: ArticleStub) -> None:
        self.metrics.skipped_count += 1
        logger.info(f"Article already exists: {stub.title}")

    def detail_unavailable(self, stub: ArticleStub) -> None:
        self.metrics.detail_unavailable_count += 1
        logger.warning(f"No detail available, keeping listing data: {stub.source_url}")

    def article_failed(self, stub: ArticleStub, cause: Exception) -> None:
        self.metrics.failed_count += 1
        message = f"Error processing article {stub.title} ({stub.source_url}): {cause}"
        self.metrics.errors.append(message)
        logger.error(message)

    def run_deferred(self, remaining: int) -> None:
        self.metrics.deferred_count += remaining
        logger.warning(f"Run deadline reached, {remaining} articles left for the next run")

    def run_finished(self, articles: list[Article]) -> None:
        logger.info(
            f"Successfully saved {len(articles)} new articles from {self.source_name}"
        )


def write_run_log(metrics: RunMetrics, output_dir: str) -> str:
    """Write run metrics to a JSON log file.

    Creates a JSON file in the output directory named
    run_log_YYYYMMDD_HHMMSS.json.

    Args:
        metrics: RunMetrics instance to write
        output_dir: Directory path for the output file

    Returns:
        The filepath of the written JSON file

    Raises:
        OSError: If the output directory cannot be created or file cannot be written
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    timestamp = metrics.run_timestamp.strftime('%Y%m%d_%H%M%S')
    filepath = output_path / f"run_log_{timestamp}.json"

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(_metrics_to_dict(metrics), f, indent=2, ensure_ascii=False)

    logger.info(f"Run log written to {filepath}")
    return str(filepath)


def _metrics_to_dict(metrics: RunMetrics) -> dict[str, Any]:
    """Convert RunMetrics to a JSON-serializable dictionary."""
    return {
        "found_count": metrics.found_count,
        "added_count": metrics.added_count,
        "skipped_count": metrics.skipped_count,
        "detail_unavailable_count": metrics.detail_unavailable_count,
        "failed_count": metrics.failed_count,
        "deferred_count": metrics.deferred_count,
        "errors": metrics.errors,
        "run_timestamp": metrics.run_timestamp.isoformat(),
    }
