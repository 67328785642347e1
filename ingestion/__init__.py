"""
Ingestion Package.

Upload-to-trade pipeline and execution submission.
"""

from .pipeline import TradeIngestionPipeline
from .types import IngestionResult

__all__ = ["IngestionResult", "TradeIngestionPipeline"]
