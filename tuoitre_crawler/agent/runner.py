"""Runner module for the Tuoi Tre crawler.

This module wires the default adapters together and executes one crawl.
"""

import logging
import sys

from tuoitre_crawler.agent.pipeline import FatalRunError, IngestionPipeline
from tuoitre_crawler.config.settings import ConfigurationError, Settings, load_settings
from tuoitre_crawler.connectors.article_store import SqlArticleStore
from tuoitre_crawler.engines.document_fetcher import HttpDocumentFetcher
from tuoitre_crawler.engines.observability import LoggingSink, write_run_log


# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_PIPELINE_ERROR = 2


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def build_pipeline(settings: Settings, sink: LoggingSink) -> IngestionPipeline:
    """Create a pipeline using the HTTP fetcher and the SQL article store."""
    return IngestionPipeline(
        fetcher=HttpDocumentFetcher(settings),
        store=SqlArticleStore.from_url(settings.database_url),
        sink=sink,
        settings=settings,
    )


def run(
    limit: int | None = None,
    database_url: str | None = None,
    verbose: bool = False,
) -> int:
    """Run one crawl.

    Args:
        limit: Listing entries to consider, defaults to the configured crawl_limit
        database_url: Overrides the configured article store URL
        verbose: If True, enable verbose/debug logging.

    Returns:
        Exit code:
        - 0: Success
        - 1: Configuration error
        - 2: Run failure
    """
    _setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(validate=False)
        if database_url:
            settings.database_url = database_url
        if limit is not None:
            settings.crawl_limit = limit
        settings.validate()
        logger.info("Configuration loaded successfully")
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    sink = LoggingSink()
    try:
        pipeline = build_pipeline(settings, sink)
        articles = pipeline.crawl(settings.crawl_limit)
    except FatalRunError as e:
        logger.error(f"Crawl failed: {e}")
        sink.metrics.errors.append(str(e))
        _write_log(settings, sink)
        return EXIT_PIPELINE_ERROR
    except Exception as e:
        logger.exception(f"Crawl failed with unexpected error: {e}")
        return EXIT_PIPELINE_ERROR

    logger.info(f"Articles added: {len(articles)}")
    _write_log(settings, sink)
    return EXIT_SUCCESS


def _write_log(settings: Settings, sink: LoggingSink) -> None:
    if settings.run_log_dir:
        write_run_log(sink.metrics, output_dir=settings.run_log_dir)
