from __future__ import annotations

import asyncio
import logging
import math
from typing import Any

import httpx

from freelance_ingest.core.config import settings
from freelance_ingest.crawlers.adapters.common import (
    append_requirements,
    clean,
    html_to_text,
    positive_number,
)
from freelance_ingest.crawlers.base import Listing, PlatformAdapter
from freelance_ingest.crawlers.http_helpers import get_json, open_client, parse_payload
from freelance_ingest.schemas.sources import StriivePage
from freelance_ingest.utils.dates import to_iso_date
from freelance_ingest.utils.rate import parse_rate_from_content
from freelance_ingest.utils.regions import infer_province

logger = logging.getLogger(__name__)

STRIIVE_API = "https://striive-cms.codebridge.nl/api/jobs"
STRIIVE_PUBLIC = "https://striive.com/nl/opdrachten"
PAGE_SIZE = 25

# Base64 images and their content types only clutter the audit payload.
RAW_DATA_EXCLUDE = {
    "clientLogo",
    "clientLogoContentType",
    "recruiterImage",
    "recruiterImageContentType",
    "coverImageUrl",
}


def _extension_option(job: dict[str, Any]) -> str | None:
    positions = job.get("numberOfPositions")
    many = isinstance(positions, int) and positions > 1
    if job.get("extendable"):
        return f"Verlengbaar · {positions} posities" if many else "Verlengbaar"
    return f"{positions} posities" if many else None


def _build_listing(job: dict[str, Any]) -> Listing:
    description = html_to_text(job.get("content")) or None
    if job.get("requirements"):
        description = append_requirements(description, html_to_text(job["requirements"]))

    location = clean(job.get("workSiteCity")) or clean(job.get("location"))

    # The API reports 0 for both rate fields when the rate only lives in the text.
    api_min = positive_number(job.get("hourlyRateMin"))
    api_max = positive_number(job.get("hourlyRateMax"))
    parsed = {} if (api_min or api_max) else parse_rate_from_content(description or job.get("content") or "")

    hours_min = positive_number(job.get("hoursPerWeekMin"))
    hours_max = positive_number(job.get("hoursPerWeekMax"))

    contact = " ".join(p for p in (clean(job.get("recruiterFirstName")), clean(job.get("recruiterLastName"))) if p)
    travel_time = clean(job.get("travelTime"))

    return Listing(
        external_id=f"striive-{job.get('id')}",
        platform="striive",
        title=clean(job.get("title")) or "",
        description=description,
        organization=clean(job.get("clientName")),
        location=location,
        province=infer_province(location),
        rate_min=api_min or parsed.get("rate_min"),
        rate_max=api_max or parsed.get("rate_max"),
        hours_per_week=hours_max or hours_min,
        hours_per_week_min=hours_min,
        start_date=to_iso_date(job.get("startDate")),
        end_date=to_iso_date(job.get("endDate")),
        deadline=to_iso_date(job.get("closingDateClient")),
        category=clean(job.get("department")) or clean(job.get("segmentName")),
        skills=[t for t in (clean(tag) for tag in job.get("tagNames") or []) if t],
        source_url=clean(job.get("brokerUrl")) or f"{STRIIVE_PUBLIC}/{job.get('id')}",
        contact_person=contact or None,
        contact_email=clean(job.get("recruiterEmail")),
        contact_phone=clean(job.get("recruiterPhoneNumber")),
        reference_code=clean(job.get("referenceCode")) or clean(job.get("referenceCodeClient")),
        published_at=to_iso_date(job.get("publishedDate")),
        contract_type="vast" if job.get("permanentJob") else "freelance",
        duration=f"Reistijd: {travel_time}" if travel_time else None,
        extension_option=_extension_option(job),
        raw_data={k: v for k, v in job.items() if k not in RAW_DATA_EXCLUDE},
    )


class StriiveAdapter(PlatformAdapter):
    name = "striive"
    display_name = "Striive"

    def __init__(
        self,
        *,
        enabled: bool = True,
        client: httpx.AsyncClient | None = None,
        page_delay: float | None = None,
    ) -> None:
        super().__init__(enabled=enabled, client=client)
        self.page_delay = settings.page_delay_seconds if page_delay is None else page_delay

    async def fetch_listings(self, last_known_id: str | None = None) -> list[Listing]:
        listings: list[Listing] = []

        async with open_client(self._client) as client:
            first = await self._fetch_page(client, 1)
            total_pages = math.ceil(first.total / PAGE_SIZE)
            logger.debug("striive: %d listings over %d page(s)", first.total, total_pages)

            stopped = self._collect(first.data, listings, last_known_id)
            page = 2
            while not stopped and page <= total_pages:
                await asyncio.sleep(self.page_delay)
                current = await self._fetch_page(client, page)
                stopped = self._collect(current.data, listings, last_known_id)
                page += 1

        logger.info("striive: fetched %d listing(s)", len(listings))
        return listings

    async def _fetch_page(self, client: httpx.AsyncClient, page: int) -> StriivePage:
        payload = await get_json(client, STRIIVE_API, platform=self.name, params={"open": "true", "page": page})
        return parse_payload(StriivePage, payload, platform=self.name)

    def _collect(self, jobs: list[dict[str, Any]], listings: list[Listing], last_known_id: str | None) -> bool:
        """Append mapped jobs; return True once ``last_known_id`` is reached."""
        for job in jobs:
            if job.get("id") in (None, ""):
                logger.warning("striive: skipping job without id: %r", job.get("title"))
                continue
            if last_known_id and self.external_id(job["id"]) == last_known_id:
                return True
            listings.append(_build_listing(job))
        return False
