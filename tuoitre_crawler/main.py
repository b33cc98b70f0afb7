#!/usr/bin/env python3
"""Main entry point for the Tuoi Tre crawler.

Usage:
    python -m tuoitre_crawler.main                 # Crawl the configured number of articles
    python -m tuoitre_crawler.main --limit 20      # Crawl up to 20 listing entries
    python -m tuoitre_crawler.main -v              # Run with verbose logging
"""

import argparse
import sys

from tuoitre_crawler.agent.runner import run


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="tuoitre-crawler",
        description="Tuoi Tre crawler - ingest the latest news articles into an article store",
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of listing entries to consider (default: CRAWL_LIMIT or 10)",
    )

    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL of the article store (default: DATABASE_URL)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging output",
    )

    return parser.parse_args(args)


def main(args: list[str] | None = None) -> int:
    """Main entry point for the crawler.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parsed = parse_args(args)
    return run(
        limit=parsed.limit,
        database_url=parsed.database_url,
        verbose=parsed.verbose,
    )


if __name__ == "__main__":
    sys.exit(main())
