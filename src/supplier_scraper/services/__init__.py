"""Service clients for the legacy booking application."""

from .market_client import MarketClient
from .orchestrator import SearchOrchestrator
from .search_client import SearchClient, VendorSearchResult

__all__ = [
    "MarketClient",
    "SearchClient",
    "SearchOrchestrator",
    "VendorSearchResult",
]
