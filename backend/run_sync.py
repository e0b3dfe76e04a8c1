from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from freelance_ingest.core.config import settings
from freelance_ingest.core.log import configure_logging
from freelance_ingest.crawlers.errors import CrawlError
from freelance_ingest.crawlers.registry import ADAPTERS, create_adapters
from freelance_ingest.schemas.listing import CrawlSummaryOut, ListingOut
from freelance_ingest.services.crawl_service import ALL_PLATFORMS, run_crawl
from freelance_ingest.services.dedup import DeduplicationStore

logger = logging.getLogger("freelance_ingest.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch freelance listings from Dutch platforms.")
    parser.add_argument("platform", nargs="?", default=ALL_PLATFORMS, choices=[*ADAPTERS, ALL_PLATFORMS])
    parser.add_argument(
        "--last-known-id",
        action="append",
        default=[],
        help="external id of the newest stored listing, e.g. striive-1234 (repeatable)",
    )
    parser.add_argument("--detail-limit", type=int, default=None, help="Flextender detail pages to fetch")
    parser.add_argument("--dedup", action="store_true", help="drop repeats by title/organization/location")
    parser.add_argument("--existing", type=Path, help="JSON file of stored listings used to prime --dedup")
    parser.add_argument("--summary", action="store_true", help="print per-platform stats instead of listings")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings.log_level)

    last_known_ids = {value.split("-", 1)[0]: value for value in args.last_known_id}
    store = None
    if args.dedup or args.existing:
        store = DeduplicationStore()
        if args.existing:
            store.load_listings(json.loads(args.existing.read_text(encoding="utf-8")))

    adapters = create_adapters(settings, flextender_detail_limit=args.detail_limit)
    try:
        report = asyncio.run(run_crawl(adapters, args.platform, last_known_ids, store))
    except CrawlError as exc:
        logger.error("%s", exc)
        return 1

    if args.summary:
        print(CrawlSummaryOut.model_validate(report.to_digest()).model_dump_json(indent=2))
    else:
        rows = [ListingOut.model_validate(listing).model_dump(mode="json") for listing in report.listings]
        print(json.dumps(rows, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
