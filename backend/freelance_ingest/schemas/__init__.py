from __future__ import annotations
from freelance_ingest.schemas.listing import CrawlSummaryOut, ListingOut, PlatformResultOut
from freelance_ingest.schemas.sources import (
    FirecrawlScrapeResponse,
    FlextenderSearchResponse,
    OpdrachtSearchResponse,
    StriivePage,
)

__all__ = [
    "CrawlSummaryOut",
    "ListingOut",
    "PlatformResultOut",
    "FirecrawlScrapeResponse",
    "FlextenderSearchResponse",
    "OpdrachtSearchResponse",
    "StriivePage",
]
