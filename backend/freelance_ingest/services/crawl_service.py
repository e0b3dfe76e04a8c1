from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from freelance_ingest.crawlers.base import Listing, PlatformAdapter
from freelance_ingest.crawlers.errors import PlatformDisabledError, UnknownPlatformError
from freelance_ingest.services.dedup import DeduplicationStore

logger = logging.getLogger(__name__)

ALL_PLATFORMS = "all"


@dataclass
class PlatformResult:
    platform: str
    listings: list[Listing] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CrawlReport:
    results: list[PlatformResult] = field(default_factory=list)

    @property
    def listings(self) -> list[Listing]:
        merged: list[Listing] = []
        for result in self.results:
            merged.extend(result.listings)
        return merged

    @property
    def failed_platforms(self) -> list[str]:
        return [r.platform for r in self.results if not r.ok]

    def to_digest(self) -> dict:
        return {
            "fetched": sum(len(r.listings) for r in self.results),
            "failed_sources": self.failed_platforms,
            "source_stats": [
                {
                    "platform": r.platform,
                    "fetched": len(r.listings),
                    "status": "success" if r.ok else "failed",
                    "error": r.error,
                }
                for r in self.results
            ],
        }


def find_adapter(adapters: Iterable[PlatformAdapter], platform: str) -> PlatformAdapter:
    for adapter in adapters:
        if adapter.name == platform:
            if not adapter.enabled:
                raise PlatformDisabledError(f"Platform {platform} is disabled", platform=platform)
            return adapter
    raise UnknownPlatformError(f"Unknown platform: {platform}", platform=platform)


async def fetch_platform(
    adapters: Iterable[PlatformAdapter],
    platform: str,
    last_known_id: str | None = None,
) -> list[Listing]:
    """Run one adapter; any error it raises propagates unchanged."""
    adapter = find_adapter(adapters, platform)
    logger.info("scraping %s...", adapter.display_name)
    listings = await adapter.fetch_listings(last_known_id)
    logger.info("%s: %d listing(s)", adapter.display_name, len(listings))
    return listings


async def run_crawl(
    adapters: Iterable[PlatformAdapter],
    platform: str = ALL_PLATFORMS,
    last_known_ids: Mapping[str, str] | None = None,
    dedup_store: DeduplicationStore | None = None,
) -> CrawlReport:
    """Fetch one platform or all enabled platforms, one after another.

    In all-platforms mode a failing adapter is logged and recorded in its
    :class:`PlatformResult`; the remaining adapters still run. A single
    platform request lets the error propagate.
    """
    last_known_ids = last_known_ids or {}
    adapters = list(adapters)
    report = CrawlReport()

    if platform != ALL_PLATFORMS:
        listings = await fetch_platform(adapters, platform, last_known_ids.get(platform))
        if dedup_store is not None:
            listings = dedup_store.filter_duplicates(listings)
        report.results.append(PlatformResult(platform=platform, listings=listings))
        return report

    for adapter in adapters:
        if not adapter.enabled:
            logger.info("skipping disabled platform %s", adapter.name)
            continue
        try:
            listings = await fetch_platform([adapter], adapter.name, last_known_ids.get(adapter.name))
        except Exception as exc:  # noqa: BLE001
            logger.exception("%s failed", adapter.display_name)
            report.results.append(PlatformResult(platform=adapter.name, error=str(exc) or type(exc).__name__))
            continue

        if dedup_store is not None:
            listings = dedup_store.filter_duplicates(listings)
        report.results.append(PlatformResult(platform=adapter.name, listings=listings))

    return report
