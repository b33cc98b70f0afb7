"""Agent module - pipeline orchestration and runner."""

from tuoitre_crawler.agent.pipeline import (
    FatalRunError,
    IngestionPipeline,
    PerArticleError,
)

__all__ = [
    "FatalRunError",
    "IngestionPipeline",
    "PerArticleError",
]
