from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

import httpx

from freelance_ingest.core.config import settings
from freelance_ingest.crawlers.adapters.common import (
    append_requirements,
    clean,
    html_to_lines,
    positive_number,
    strip_tags,
)
from freelance_ingest.crawlers.base import Listing, PlatformAdapter
from freelance_ingest.crawlers.http_helpers import open_client, parse_payload, post_json
from freelance_ingest.schemas.sources import OpdrachtSearchResponse
from freelance_ingest.utils.dates import to_iso_date
from freelance_ingest.utils.regions import infer_province

logger = logging.getLogger(__name__)

OPDRACHT_API = "https://kbenp-match-api.azurewebsites.net/search"
OPDRACHT_PUBLIC = "https://opdrachtoverheid.nl/vacatures"
PAGE_SIZE = 100
MAX_LISTINGS = 500
MAX_SKILLS = 20


def build_search_body(offset: int, limit: int) -> dict[str, Any]:
    # Published tenders only, no OIM vacancies, newest first.
    return {
        "single": False,
        "userInput": None,
        "limit": limit,
        "offset": offset,
        "disjunction": 0,
        "user_coordinates": {},
        "filters": {
            "and_filters": [
                {
                    "filters": [
                        {"field_name": "publish", "value": ["0"], "operator": "neq"},
                        {"field_name": "oim_vacancy", "value": ["true"], "operator": "neq"},
                    ]
                }
            ],
            "or_filters": [],
            "or_disjunction": 0,
        },
        "order_by": [{"field": "tender_first_seen", "direction": "desc"}],
    }


def _parse_hours(tender: dict[str, Any]) -> tuple[int | None, int | None]:
    parts = [int(p) for p in re.findall(r"\d+", str(tender.get("tender_hours_week") or ""))][:2]
    text_max = parts[1] if len(parts) == 2 else (parts[0] if parts else None)
    text_min = parts[0] if len(parts) == 2 else None

    hours = positive_number(tender.get("tender_max_hours")) or text_max
    hours_min = positive_number(tender.get("tender_min_hours")) or text_min
    return hours, hours_min


def _category(tender: dict[str, Any]) -> str | None:
    categories = tender.get("tender_categories") or []
    if not categories or not isinstance(categories[0], dict):
        return None
    first = categories[0]
    nested = first.get("tender_category_obj") or {}
    return clean(nested.get("type") if isinstance(nested, dict) else None) or clean(first.get("type"))


def _build_listing(tender: dict[str, Any]) -> Listing:
    hours, hours_min = _parse_hours(tender)

    description = str(tender.get("tender_description") or "").strip() or None
    if not description and tender.get("tender_description_html"):
        description = strip_tags(tender["tender_description_html"]) or None
    requirements = "\n".join(html_to_lines(tender.get("tender_requirements")))
    description = append_requirements(description, requirements or None)

    vacancy_location = tender.get("vacancies_location") or {}
    address = clean(vacancy_location.get("company_address"))
    location = (address.split(",")[-1].strip() or address) if address else None

    rate_max = positive_number(tender.get("tender_maximum_tariff")) or positive_number(tender.get("tender_tariff"))
    tender_id = tender.get("tender_id")

    return Listing(
        external_id=f"opdrachtoverheid-{tender_id}",
        platform="opdrachtoverheid",
        title=clean(tender.get("tender_name")) or "",
        description=description,
        organization=clean(tender.get("tender_buying_organization")),
        location=location,
        province=clean(vacancy_location.get("province")) or infer_province(location),
        rate_max=rate_max,
        hours_per_week=hours,
        hours_per_week_min=hours_min,
        start_date=to_iso_date(tender.get("tender_start_date")),
        end_date=to_iso_date(tender.get("tender_end_date")),
        deadline=to_iso_date(tender.get("tender_date")),
        category=_category(tender),
        skills=html_to_lines(tender.get("tender_competences"))[:MAX_SKILLS],
        published_at=to_iso_date(tender.get("tender_first_seen")),
        contract_type=clean(tender.get("contract_type")),
        remote_work_policy=clean(tender.get("tender_hybrid_working")),
        source_url=clean(tender.get("opdracht_overheid_url"))
        or f"{OPDRACHT_PUBLIC}/{tender.get('web_key') or tender_id}",
        raw_data=dict(tender),
    )


class OpdrachtoverheidAdapter(PlatformAdapter):
    name = "opdrachtoverheid"
    display_name = "Opdracht Overheid"

    def __init__(
        self,
        *,
        enabled: bool = True,
        client: httpx.AsyncClient | None = None,
        page_delay: float | None = None,
        page_size: int = PAGE_SIZE,
        max_listings: int = MAX_LISTINGS,
    ) -> None:
        super().__init__(enabled=enabled, client=client)
        self.page_delay = settings.page_delay_seconds if page_delay is None else page_delay
        self.page_size = page_size
        self.max_listings = max_listings

    async def fetch_listings(self, last_known_id: str | None = None) -> list[Listing]:
        listings: list[Listing] = []
        offset = 0

        async with open_client(self._client) as client:
            while True:
                tenders = await self._fetch_page(client, offset, self.page_size)

                for tender in tenders:
                    if tender.get("tender_id") in (None, ""):
                        logger.warning("opdrachtoverheid: skipping tender without id: %r", tender.get("tender_name"))
                        continue
                    if last_known_id and self.external_id(tender["tender_id"]) == last_known_id:
                        logger.info("opdrachtoverheid: reached last known id after %d listing(s)", len(listings))
                        return listings
                    listings.append(_build_listing(tender))
                    if len(listings) >= self.max_listings:
                        logger.info("opdrachtoverheid: hit the %d listing cap", self.max_listings)
                        return listings

                if len(tenders) < self.page_size:
                    break
                offset += self.page_size
                await asyncio.sleep(self.page_delay)

        logger.info("opdrachtoverheid: fetched %d listing(s)", len(listings))
        return listings

    async def _fetch_page(self, client: httpx.AsyncClient, offset: int, limit: int) -> list[dict[str, Any]]:
        payload = await post_json(client, OPDRACHT_API, build_search_body(offset, limit), platform=self.name)
        return parse_payload(OpdrachtSearchResponse, payload, platform=self.name).negometrix_tenders
