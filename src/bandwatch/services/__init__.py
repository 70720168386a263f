"""Service layer: quote retrieval and scan orchestration."""

from .quotes import QuoteSourceAdapter
from .scanner import ScanOrchestrator

__all__ = ["QuoteSourceAdapter", "ScanOrchestrator"]
