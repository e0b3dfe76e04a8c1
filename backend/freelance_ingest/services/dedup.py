from __future__ import annotations
import logging
from typing import Iterable, Mapping

from freelance_ingest.crawlers.base import Listing
from freelance_ingest.utils.hash import listing_content_hash

logger = logging.getLogger(__name__)


def _hash_for(item: Listing | Mapping) -> str:
    if isinstance(item, Listing):
        return listing_content_hash(item.title, item.organization, item.location)
    return listing_content_hash(item.get("title"), item.get("organization"), item.get("location"))


class DeduplicationStore:
    """In-memory set of content hashes over title, organization and location.

    Nothing is persisted; prime it with :meth:`load_listings` from already
    stored listings to suppress cross-run repeats. Not safe for concurrent use.
    """

    def __init__(self) -> None:
        self.hashes: set[str] = set()

    def __len__(self) -> int:
        return len(self.hashes)

    def add_hash(self, value: str) -> None:
        self.hashes.add(value)

    def has_hash(self, value: str) -> bool:
        return value in self.hashes

    def is_duplicate(self, item: Listing | Mapping) -> bool:
        return self.has_hash(_hash_for(item))

    def add_listing(self, item: Listing | Mapping) -> None:
        self.add_hash(_hash_for(item))

    def filter_duplicates(self, listings: Iterable[Listing]) -> list[Listing]:
        kept: list[Listing] = []
        skipped = 0
        for listing in listings:
            digest = _hash_for(listing)
            if digest in self.hashes:
                skipped += 1
                continue
            self.hashes.add(digest)
            kept.append(listing)
        if skipped:
            logger.info("dedup: dropped %d duplicate listing(s), kept %d", skipped, len(kept))
        return kept

    def load_listings(self, existing: Iterable[Listing | Mapping]) -> None:
        before = len(self.hashes)
        for item in existing:
            self.add_listing(item)
        logger.debug("dedup: primed store with %d hash(es)", len(self.hashes) - before)
