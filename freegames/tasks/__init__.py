"""Background tasks for the giveaway service."""

from freegames.tasks.catalog_enrichment import (
    start_enrichment,
    stop_enrichment,
    run_enrichment_pass,
)

__all__ = [
    "start_enrichment",
    "stop_enrichment",
    "run_enrichment_pass",
]
