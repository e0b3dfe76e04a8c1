"""Flextender adapter.

Discovery goes through the public WordPress site: the ``/opdrachten/`` page
embeds a widget-config token, and posting that token to ``admin-ajax.php``
returns every open listing as one HTML fragment of cards.

Detail pages on ``app.flextender.nl`` are rendered client-side. They are read
either through a rendering proxy (Firecrawl, Markdown out) when an API key is
configured, or fetched directly, which only yields the static HTML shell.
Detail enrichment runs under a wall-clock budget; listings the loop does not
reach keep their discovery data.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from bs4 import BeautifulSoup, Tag
import httpx

from freelance_ingest.crawlers.adapters.common import clean
from freelance_ingest.crawlers.base import Listing, PlatformAdapter
from freelance_ingest.crawlers.errors import ProtocolError
from freelance_ingest.crawlers.http_helpers import (
    fetch_html,
    make_soup,
    open_client,
    parse_payload,
    post_form,
    post_json,
)
from freelance_ingest.schemas.sources import FirecrawlScrapeResponse, FlextenderSearchResponse
from freelance_ingest.utils.dates import to_iso_date
from freelance_ingest.utils.regions import infer_province

logger = logging.getLogger(__name__)

FLEXTENDER_SITE = "https://www.flextender.nl"
FLEXTENDER_LISTING_PAGE = f"{FLEXTENDER_SITE}/opdrachten/"
FLEXTENDER_AJAX = f"{FLEXTENDER_SITE}/wp-admin/admin-ajax.php"
FLEXTENDER_DETAIL = "https://app.flextender.nl/nologin/jobdetails"
FIRECRAWL_SCRAPE = "https://api.firecrawl.dev/v1/scrape"

DEFAULT_DETAIL_LIMIT = 10
RENDERED_DETAIL_LIMIT = 40
DETAIL_BUDGET_SECONDS = 25.0
MAX_DESCRIPTION = 5000
MAX_RAW_CONTENT = 3000

CARD_SELECTOR = "[data-kbslinkurl], .flx-job-item, [data-favcode]"
ASAP = "z.s.m."

SoupFactory = Callable[[str], BeautifulSoup]

_TOKEN_ATTR_RE = re.compile(r"""kbs_flx_widget_config['"]\s*(?:value|:)\s*=?\s*['"]([^'"]+)['"]""")
_TOKEN_SCRIPT_RE = re.compile(r"""widget_config\s*[:=]\s*['"]([^'"]+)['"]""")
_DETAIL_ID_RE = re.compile(r"/(\d+)/?$")
_HOURS_RANGE_RE = re.compile(r"(\d+)\s*(?:tot|[-–])\s*(\d+)")

_IMAGE_RE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
_MD_DESCRIPTION_RE = re.compile(
    r"Beschrijving[ \t]*\n+([\s\S]*?)(?=\n[#*\s]*(?:Eisen|Wensen|Minimumeisen)\b|\Z)", re.I
)
_MD_FALLBACK_SPLIT_RE = re.compile(r"Verloopt op|Tijd & agenda", re.I)
_MD_PHONE_RE = re.compile(r"\[(\d{2}-\d{8})\]")
_MD_EMAIL_RE = re.compile(r"\[([^\]\s]+@[^\]\s]+)\]")
_MD_PERSON_RE = re.compile(r"!\[([A-Z][a-z]+ [A-Z][a-z]+)\]")
_MD_DEADLINE_RE = re.compile(r"Verloopt op\s*\n+\s*[a-z]+ (\d+ [a-z]+ \d{4})", re.I)
_MD_RATE_RE = re.compile(r"(\d+[.,]\d{2})\s*(?:excl\.?\s*BTW|per uur)", re.I)
_HTML_HOURS_RE = re.compile(r"(\d+)\s*(?:tot|[-–])\s*(\d+)\s*uur", re.I)
# Runs on newline-joined element text so the value cannot spill into the next label.
_HTML_LOCATION_RE = re.compile(r"(?:Regio|Standplaats)[: \t]*\n?[ \t]*([A-Z][a-z]+(?:[ \t][A-Z][a-z]+)*)")

# Detail values that replace discovery data, and ones that only fill gaps.
ALWAYS_REFRESH = (
    "description",
    "rate_max",
    "contact_person",
    "contact_email",
    "contact_phone",
    "duration",
    "education_level",
    "extension_option",
)
FILL_IF_EMPTY = ("title", "hours_per_week", "location", "province", "deadline")


class ContentFormat(Enum):
    MARKDOWN = "markdown"
    HTML_SHELL = "html_shell"


@dataclass(frozen=True)
class DetailContent:
    format: ContentFormat
    body: str


@dataclass(frozen=True)
class FlextenderOptions:
    firecrawl_api_key: str = ""
    detail_limit: int | None = None
    budget_seconds: float = DETAIL_BUDGET_SECONDS
    # Hard per-detail deadline; None keeps the cooperative budget only.
    detail_fetch_timeout: float | None = None

    @property
    def uses_rendering_proxy(self) -> bool:
        return bool(self.firecrawl_api_key)

    @property
    def effective_detail_limit(self) -> int:
        if self.detail_limit is not None:
            return self.detail_limit
        return RENDERED_DETAIL_LIMIT if self.uses_rendering_proxy else DEFAULT_DETAIL_LIMIT


def _text(el: Tag | None) -> str:
    return " ".join(el.get_text(" ", strip=True).split()) if el else ""


def upper_hours(text: str | None) -> int | None:
    """``"32 tot 36 uur"`` -> 36, ``"24 uur"`` -> 24."""
    if not text:
        return None
    match = _HOURS_RANGE_RE.search(text)
    if match:
        return int(match.group(2))
    single = re.search(r"\d+", text)
    return int(single.group(0)) if single else None


def extract_widget_token(html: str, soup_factory: SoupFactory = make_soup) -> str | None:
    """Find the widget-config token; the first pattern that matches wins.

    Tried in order: inline attribute or object assignment, hidden form field,
    inline script assignment.
    """
    match = _TOKEN_ATTR_RE.search(html)
    if match:
        return match.group(1)

    field = soup_factory(html).select_one('input[name="kbs_flx_widget_config"]')
    if field is not None and field.get("value"):
        return str(field["value"])

    match = _TOKEN_SCRIPT_RE.search(html)
    return match.group(1) if match else None


def _caption(card: Tag, label: str) -> str | None:
    for cap in card.select(".css-caption"):
        text = _text(cap)
        if label not in text:
            continue
        sibling = cap.find_next_sibling(True)
        if sibling is not None and "css-value" in (sibling.get("class") or []):
            value = _text(sibling)
            if value:
                return value
        after_label = text.split(label)[-1].lstrip(" :").strip()
        if after_label:
            return after_label
    return None


def _parse_card(card: Tag) -> Listing | None:
    detail_url = str(card.get("data-kbslinkurl") or "")
    id_match = _DETAIL_ID_RE.search(detail_url)
    reference = id_match.group(1) if id_match else _caption(card, "Aanvraagnummer")
    if not reference:
        return None

    title = _text(card.select_one(".css-jobtitle")) or _text(card.select_one("h2, h3"))
    region = _caption(card, "Regio")
    hours_text = _caption(card, "Uren per week")
    start_text = _caption(card, "Start")
    duration = _caption(card, "Duur")
    deadline_text = _caption(card, "Eindtijd")

    return Listing(
        external_id=f"flextender-{reference}",
        platform="flextender",
        title=title,
        organization=_text(card.select_one(".css-customer")) or None,
        location=region,
        province=infer_province(region),
        hours_per_week=upper_hours(hours_text),
        start_date=None if (start_text or "").lower() == ASAP else to_iso_date(start_text),
        deadline=to_iso_date(deadline_text),
        duration=duration,
        reference_code=reference,
        source_url=f"{FLEXTENDER_DETAIL}/{reference}",
        raw_data={
            "detail_url": detail_url,
            "region": region,
            "hours": hours_text,
            "start": start_text,
            "duration": duration,
            "deadline": deadline_text,
        },
    )


def parse_cards(
    result_html: str,
    last_known_id: str | None = None,
    soup_factory: SoupFactory = make_soup,
) -> list[Listing]:
    soup = soup_factory(result_html)
    listings: list[Listing] = []
    seen: set[str] = set()

    for card in soup.select(CARD_SELECTOR):
        try:
            listing = _parse_card(card)
        except Exception:  # noqa: BLE001
            logger.warning("flextender: skipping malformed listing card", exc_info=True)
            continue
        if listing is None or listing.external_id in seen:
            continue
        if last_known_id and listing.external_id == last_known_id:
            break
        seen.add(listing.external_id)
        listings.append(listing)

    return listings


def _md_field(content: str, label: str) -> str | None:
    match = re.search(rf"{re.escape(label)}[ \t*:]*\n+([^\n]+)", content, re.I)
    return clean(match.group(1).strip(" *#")) if match else None


def _truncate(text: str | None) -> str | None:
    text = (text or "").strip()
    return text[:MAX_DESCRIPTION] if text else None


def parse_markdown_detail(native_id: str, content: str) -> Listing:
    match = _MD_DESCRIPTION_RE.search(content)
    description = _truncate(_IMAGE_RE.sub("", match.group(1))) if match else None
    if not description:
        tail = _MD_FALLBACK_SPLIT_RE.split(content)[-1]
        description = _truncate(_IMAGE_RE.sub("", tail))

    title = ""
    for line in _IMAGE_RE.sub("", content).splitlines():
        if line.strip():
            title = line.strip().lstrip("#").strip()
            break

    location = _md_field(content, "Regio")
    phone = _MD_PHONE_RE.search(content)
    email = _MD_EMAIL_RE.search(content)
    person = _MD_PERSON_RE.search(content)
    deadline = _MD_DEADLINE_RE.search(content)
    rate = _MD_RATE_RE.search(content)

    return Listing(
        external_id=f"flextender-{native_id}",
        platform="flextender",
        title=title,
        description=description,
        location=location,
        province=infer_province(location),
        rate_max=float(rate.group(1).replace(",", ".")) if rate else None,
        hours_per_week=upper_hours(_md_field(content, "Uren per week")),
        contact_person=person.group(1) if person else None,
        contact_email=email.group(1) if email else None,
        contact_phone=phone.group(1) if phone else None,
        deadline=to_iso_date(deadline.group(1)) if deadline else None,
        duration=_md_field(content, "Duur"),
        education_level=_md_field(content, "Opleidingsniveau"),
        extension_option=_md_field(content, "Optie tot verlenging"),
        source_url=f"{FLEXTENDER_DETAIL}/{native_id}",
        raw_data={"format": ContentFormat.MARKDOWN.value, "content": content[:MAX_RAW_CONTENT]},
    )


def parse_html_detail(native_id: str, content: str, soup_factory: SoupFactory = make_soup) -> Listing:
    # The direct fetch only returns the static shell, so this is a reduced field set.
    soup = soup_factory(content)
    title = _text(soup.select_one("h1")) or (_text(soup.title) if soup.title else "")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    body = soup.body or soup
    body_text = _text(body)

    hours = _HTML_HOURS_RE.search(body_text)
    location_match = _HTML_LOCATION_RE.search(body.get_text("\n", strip=True))
    location = location_match.group(1) if location_match else None

    return Listing(
        external_id=f"flextender-{native_id}",
        platform="flextender",
        title=title,
        description=_truncate(body_text),
        location=location,
        province=infer_province(location),
        hours_per_week=int(hours.group(2)) if hours else None,
        source_url=f"{FLEXTENDER_DETAIL}/{native_id}",
        raw_data={"format": ContentFormat.HTML_SHELL.value},
    )


def parse_detail(native_id: str, content: DetailContent, soup_factory: SoupFactory = make_soup) -> Listing:
    if content.format is ContentFormat.MARKDOWN:
        return parse_markdown_detail(native_id, content.body)
    if content.format is ContentFormat.HTML_SHELL:
        return parse_html_detail(native_id, content.body, soup_factory)
    raise ValueError(f"unsupported detail format: {content.format!r}")


def merge_detail(base: Listing, detail: Listing) -> Listing:
    updates: dict = {}
    for name in ALWAYS_REFRESH:
        value = getattr(detail, name)
        if value:
            updates[name] = value
    for name in FILL_IF_EMPTY:
        value = getattr(detail, name)
        if value and not getattr(base, name):
            updates[name] = value
    if detail.raw_data:
        updates["raw_data"] = {**base.raw_data, "detail": detail.raw_data}
    return replace(base, **updates) if updates else base


class FlextenderAdapter(PlatformAdapter):
    name = "flextender"
    display_name = "Flextender"

    def __init__(
        self,
        options: FlextenderOptions | None = None,
        *,
        enabled: bool = True,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
        soup_factory: SoupFactory = make_soup,
    ) -> None:
        super().__init__(enabled=enabled, client=client)
        self.options = options or FlextenderOptions()
        self._clock = clock
        self._soup_factory = soup_factory

    async def fetch_listings(self, last_known_id: str | None = None) -> list[Listing]:
        async with open_client(self._client) as client:
            token = await self._widget_token(client)
            payload = await post_form(
                client,
                FLEXTENDER_AJAX,
                {"action": "kbs_flx_searchjobs", "kbs_flx_widget_config": token},
                platform=self.name,
            )
            result_html = parse_payload(FlextenderSearchResponse, payload, platform=self.name).resultHtml
            if not result_html:
                logger.warning("flextender: empty resultHtml")
                return []

            listings = parse_cards(result_html, last_known_id, self._soup_factory)
            logger.info("flextender: discovered %d listing(s)", len(listings))
            return await self._enrich(client, listings)

    async def fetch_detail(self, native_id: str) -> Listing | None:
        async with open_client(self._client) as client:
            return await self._detail_or_none(client, native_id)

    async def _widget_token(self, client: httpx.AsyncClient) -> str:
        html = await fetch_html(client, FLEXTENDER_LISTING_PAGE, platform=self.name)
        token = extract_widget_token(html, self._soup_factory)
        if not token:
            raise ProtocolError("Could not extract Flextender widget config token", platform=self.name)
        return token

    async def _enrich(self, client: httpx.AsyncClient, listings: list[Listing]) -> list[Listing]:
        limit = min(len(listings), self.options.effective_detail_limit)
        mode = "markdown" if self.options.uses_rendering_proxy else "html"
        logger.info(
            "flextender: fetching %d detail page(s) via %s (configured limit %d)",
            limit,
            mode,
            self.options.effective_detail_limit,
        )

        enriched = list(listings)
        started = self._clock()
        attempted = 0
        for index in range(limit):
            elapsed = self._clock() - started
            if elapsed > self.options.budget_seconds:
                logger.warning(
                    "flextender: time budget reached after %d/%d details (%.1fs); the rest keep discovery data",
                    attempted,
                    limit,
                    elapsed,
                )
                break

            attempted += 1
            detail = await self._detail_or_none(client, enriched[index].native_id)
            if detail is not None:
                enriched[index] = merge_detail(enriched[index], detail)

        if attempted:
            total = self._clock() - started
            logger.info(
                "flextender: fetched %d detail(s) in %.2fs (avg %.0fms/detail)",
                attempted,
                total,
                total * 1000 / attempted,
            )
        return enriched

    async def _detail_or_none(self, client: httpx.AsyncClient, native_id: str) -> Listing | None:
        timeout = self.options.detail_fetch_timeout
        try:
            if timeout:
                content = await asyncio.wait_for(self._fetch_detail_content(client, native_id), timeout)
            else:
                content = await self._fetch_detail_content(client, native_id)
            return parse_detail(native_id, content, self._soup_factory)
        except asyncio.TimeoutError:
            logger.warning("flextender: detail %s exceeded %.1fs deadline", native_id, timeout)
        except Exception as exc:  # noqa: BLE001
            logger.warning("flextender: detail fetch failed for %s: %s", native_id, exc)
        return None

    async def _fetch_detail_content(self, client: httpx.AsyncClient, native_id: str) -> DetailContent:
        url = f"{FLEXTENDER_DETAIL}/{native_id}"
        if self.options.uses_rendering_proxy:
            payload = await post_json(
                client,
                FIRECRAWL_SCRAPE,
                {"url": url, "formats": ["markdown"], "waitFor": 3000},
                platform=self.name,
                headers={"Authorization": f"Bearer {self.options.firecrawl_api_key}"},
            )
            scraped = parse_payload(FirecrawlScrapeResponse, payload, platform=self.name)
            markdown = scraped.data.markdown if scraped.data else None
            return DetailContent(ContentFormat.MARKDOWN, markdown or "")

        html = await fetch_html(client, url, platform=self.name)
        return DetailContent(ContentFormat.HTML_SHELL, html)
