from __future__ import annotations
import httpx

from freelance_ingest.core.config import Settings, settings
from freelance_ingest.crawlers.adapters.flextender import FlextenderAdapter, FlextenderOptions
from freelance_ingest.crawlers.adapters.opdrachtoverheid import OpdrachtoverheidAdapter
from freelance_ingest.crawlers.adapters.striive import StriiveAdapter
from freelance_ingest.crawlers.base import PlatformAdapter

ADAPTERS = {
    "striive": StriiveAdapter,
    "opdrachtoverheid": OpdrachtoverheidAdapter,
    "flextender": FlextenderAdapter,
}


def create_adapters(
    cfg: Settings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    flextender_detail_limit: int | None = None,
) -> list[PlatformAdapter]:
    """Build every adapter, in registry order, from configuration.

    ``flextender_detail_limit`` overrides the configured limit for this run.
    """
    cfg = cfg or settings
    disabled = set(cfg.disabled_platforms)
    detail_limit = flextender_detail_limit if flextender_detail_limit is not None else cfg.flextender_detail_limit

    return [
        StriiveAdapter(
            enabled="striive" not in disabled,
            client=client,
            page_delay=cfg.page_delay_seconds,
        ),
        OpdrachtoverheidAdapter(
            enabled="opdrachtoverheid" not in disabled,
            client=client,
            page_delay=cfg.page_delay_seconds,
        ),
        FlextenderAdapter(
            FlextenderOptions(
                firecrawl_api_key=cfg.firecrawl_api_key,
                detail_limit=detail_limit,
                budget_seconds=cfg.detail_budget_seconds,
                detail_fetch_timeout=cfg.detail_fetch_timeout,
            ),
            enabled="flextender" not in disabled,
            client=client,
        ),
    ]
