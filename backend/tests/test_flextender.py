from __future__ import annotations
import asyncio
import json

import httpx
import pytest

from freelance_ingest.crawlers.adapters.flextender import (
    ContentFormat,
    DetailContent,
    FlextenderAdapter,
    FlextenderOptions,
    extract_widget_token,
    merge_detail,
    parse_cards,
    parse_detail,
    upper_hours,
)
from freelance_ingest.crawlers.errors import ProtocolError

LISTING_PAGE_HTML = """
<html><body>
<form><input type="hidden" name="kbs_flx_widget_config" value="tok-123"></form>
</body></html>
"""

MARKDOWN_DETAIL = """# Projectleider Ruimte

![Jan Jansen](https://app.flextender.nl/img/jan.png)

Regio
Ede

Uren per week
32 tot 36 uur

Verloopt op
vrijdag 13 maart 2026

Beschrijving
De gemeente zoekt een projectleider voor ruimtelijke projecten.

Eisen
- HBO werk- en denkniveau

Tarief 95,00 excl. BTW

Contact: [06-12345678](tel:0612345678) [jan@ede.nl](mailto:jan@ede.nl)
"""

HTML_SHELL_DETAIL = (
    "<html><head><title>Flextender</title><script>var app = {};</script></head>"
    "<body><h1>Projectleider Ruimte</h1><p>Regio: Ede</p><p>32 tot 36 uur per week</p>"
    "<p>Tarief 95,00 excl. BTW</p><p>jan@ede.nl</p></body></html>"
)


def _card(ref: int, title: str = "Projectleider Ruimte", start: str = "Z.s.m.") -> str:
    return (
        f'<div class="flx-job-item" data-kbslinkurl="https://app.flextender.nl/nologin/jobdetails/{ref}">'
        f'<div class="css-jobtitle">{title}</div>'
        '<div class="css-customer">Gemeente Ede</div>'
        '<div class="css-caption">Regio</div><div class="css-value">Ede</div>'
        '<div class="css-caption">Uren per week</div><div class="css-value">32 tot 36 uur</div>'
        f'<div class="css-caption">Start</div><div class="css-value">{start}</div>'
        '<div class="css-caption">Duur</div><div class="css-value">6 maanden</div>'
        '<div class="css-caption">Eindtijd</div><div class="css-value">14-03-2026 12:00</div>'
        "</div>"
    )


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _client(
    cards: list[str],
    *,
    detail=None,
    scrape=None,
    token_page: str = LISTING_PAGE_HTML,
    detail_calls: list[str] | None = None,
) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == "https://www.flextender.nl/opdrachten/":
            return httpx.Response(200, text=token_page)
        if url == "https://www.flextender.nl/wp-admin/admin-ajax.php":
            form = dict(pair.split("=", 1) for pair in request.content.decode().split("&"))
            assert form["action"] == "kbs_flx_searchjobs"
            assert form["kbs_flx_widget_config"] == "tok-123"
            return httpx.Response(200, json={"resultHtml": "".join(cards)})
        if url.startswith("https://app.flextender.nl/nologin/jobdetails/"):
            native_id = url.rsplit("/", 1)[-1]
            if detail_calls is not None:
                detail_calls.append(native_id)
            return detail(native_id) if detail else httpx.Response(200, text=HTML_SHELL_DETAIL)
        if url == "https://api.firecrawl.dev/v1/scrape":
            return scrape(request)
        return httpx.Response(404)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_widget_token_patterns():
    assert extract_widget_token('<div data-x="1" name="kbs_flx_widget_config" value="attr-tok"></div>') == "attr-tok"
    assert extract_widget_token('<script>opts = {"kbs_flx_widget_config": "obj-tok"}</script>') == "obj-tok"
    assert extract_widget_token('<input value="input-tok" type="hidden" name="kbs_flx_widget_config">') == "input-tok"
    assert extract_widget_token("<script>var widget_config = 'script-tok';</script>") == "script-tok"
    assert extract_widget_token("<html><body>nothing here</body></html>") is None


def test_upper_hours():
    assert upper_hours("32 tot 36 uur") == 36
    assert upper_hours("24 - 32") == 32
    assert upper_hours("16 uur") == 16
    assert upper_hours("") is None


def test_parse_cards_maps_discovery_fields():
    (listing,) = parse_cards(_card(12345))

    assert listing.external_id == "flextender-12345"
    assert listing.title == "Projectleider Ruimte"
    assert listing.organization == "Gemeente Ede"
    assert listing.location == "Ede"
    assert listing.province == "Gelderland"
    assert listing.hours_per_week == 36
    assert listing.start_date is None
    assert listing.deadline == "2026-03-14"
    assert listing.duration == "6 maanden"
    assert listing.reference_code == "12345"
    assert listing.source_url == "https://app.flextender.nl/nologin/jobdetails/12345"
    assert listing.raw_data["start"] == "Z.s.m."


def test_parse_cards_dedupes_skips_and_stops():
    broken = '<div class="flx-job-item"><div class="css-jobtitle">Zonder nummer</div></div>'
    html = _card(1) + _card(1) + broken + _card(2) + _card(3) + _card(4)

    assert [item.external_id for item in parse_cards(html)] == [
        "flextender-1",
        "flextender-2",
        "flextender-3",
        "flextender-4",
    ]
    assert [item.external_id for item in parse_cards(html, "flextender-3")] == ["flextender-1", "flextender-2"]


def test_markdown_detail_carries_contact_and_rate():
    detail = parse_detail("12345", DetailContent(ContentFormat.MARKDOWN, MARKDOWN_DETAIL))

    assert detail.title == "Projectleider Ruimte"
    assert detail.description == "De gemeente zoekt een projectleider voor ruimtelijke projecten."
    assert detail.location == "Ede"
    assert detail.hours_per_week == 36
    assert detail.deadline == "2026-03-13"
    assert detail.rate_max == 95.0
    assert detail.contact_person == "Jan Jansen"
    assert detail.contact_email == "jan@ede.nl"
    assert detail.contact_phone == "06-12345678"
    assert detail.raw_data["format"] == "markdown"


def test_html_shell_detail_is_reduced():
    detail = parse_detail("12345", DetailContent(ContentFormat.HTML_SHELL, HTML_SHELL_DETAIL))

    assert detail.title == "Projectleider Ruimte"
    assert detail.location == "Ede"
    assert detail.hours_per_week == 36
    assert "var app" not in detail.description
    assert detail.rate_max is None
    assert detail.contact_email is None
    assert detail.contact_person is None
    assert detail.raw_data == {"format": "html_shell"}


def test_merge_detail_refreshes_and_fills():
    (base,) = parse_cards(_card(7, title=""))
    detail = parse_detail("7", DetailContent(ContentFormat.MARKDOWN, MARKDOWN_DETAIL))

    merged = merge_detail(base, detail)

    assert merged.title == "Projectleider Ruimte"
    assert merged.description.startswith("De gemeente")
    assert merged.rate_max == 95.0
    assert merged.organization == "Gemeente Ede"
    # Discovery deadline is kept; the detail only fills gaps for it.
    assert merged.deadline == "2026-03-14"
    assert merged.raw_data["detail"]["format"] == "markdown"
    assert merged.raw_data["region"] == "Ede"


def test_detail_limit_defaults():
    assert FlextenderOptions().effective_detail_limit == 10
    assert FlextenderOptions(firecrawl_api_key="fc-key").effective_detail_limit == 40
    assert FlextenderOptions(firecrawl_api_key="fc-key", detail_limit=3).effective_detail_limit == 3
    assert FlextenderOptions(detail_limit=0).effective_detail_limit == 0


def test_fetch_listings_enriches_up_to_detail_limit():
    calls: list[str] = []
    client = _client([_card(i) for i in range(1, 6)], detail_calls=calls)
    adapter = FlextenderAdapter(FlextenderOptions(detail_limit=2), client=client)

    listings = asyncio.run(adapter.fetch_listings())

    assert len(listings) == 5
    assert calls == ["1", "2"]
    assert ["detail" in item.raw_data for item in listings] == [True, True, False, False, False]


def test_budget_stops_detail_loop():
    clock = FakeClock()

    def slow_detail(native_id: str) -> httpx.Response:
        clock.now += 10
        return httpx.Response(200, text=HTML_SHELL_DETAIL)

    client = _client([_card(i) for i in range(1, 6)], detail=slow_detail)
    adapter = FlextenderAdapter(FlextenderOptions(budget_seconds=25), client=client, clock=clock)

    listings = asyncio.run(adapter.fetch_listings())

    assert len(listings) == 5
    assert ["detail" in item.raw_data for item in listings] == [True, True, True, False, False]
    assert listings[4].hours_per_week == 36


def test_detail_failure_keeps_discovery_data():
    def flaky_detail(native_id: str) -> httpx.Response:
        if native_id == "2":
            return httpx.Response(500)
        return httpx.Response(200, text=HTML_SHELL_DETAIL)

    client = _client([_card(1), _card(2), _card(3)], detail=flaky_detail)
    adapter = FlextenderAdapter(client=client)

    listings = asyncio.run(adapter.fetch_listings())

    assert [item.external_id for item in listings] == ["flextender-1", "flextender-2", "flextender-3"]
    assert "detail" not in listings[1].raw_data
    assert listings[1].title == "Projectleider Ruimte"
    assert "detail" in listings[0].raw_data
    assert "detail" in listings[2].raw_data


def test_rendering_proxy_is_used_with_api_key():
    requests: list[dict] = []

    def scrape(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer fc-key"
        requests.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "data": {"markdown": MARKDOWN_DETAIL}})

    client = _client([_card(12345)], scrape=scrape)
    adapter = FlextenderAdapter(FlextenderOptions(firecrawl_api_key="fc-key"), client=client)

    (listing,) = asyncio.run(adapter.fetch_listings())

    assert requests[0]["url"] == "https://app.flextender.nl/nologin/jobdetails/12345"
    assert requests[0]["formats"] == ["markdown"]
    assert listing.contact_email == "jan@ede.nl"
    assert listing.rate_max == 95.0


def test_fetch_detail_returns_listing():
    adapter = FlextenderAdapter(client=_client([]))

    detail = asyncio.run(adapter.fetch_detail("12345"))

    assert detail is not None
    assert detail.external_id == "flextender-12345"
    assert detail.title == "Projectleider Ruimte"


def test_missing_token_is_protocol_error():
    client = _client([_card(1)], token_page="<html><body>geen token</body></html>")
    adapter = FlextenderAdapter(client=client)

    with pytest.raises(ProtocolError):
        asyncio.run(adapter.fetch_listings())


def test_empty_result_html_returns_nothing():
    adapter = FlextenderAdapter(client=_client([]))
    assert asyncio.run(adapter.fetch_listings()) == []


def test_html_shell_location_stops_at_element_boundary():
    html = (
        "<html><body><h1>Adviseur</h1><dl>"
        "<dt>Regio</dt><dd>Utrecht</dd><dt>Uren per week</dt><dd>32 tot 36 uur</dd>"
        "</dl></body></html>"
    )

    detail = parse_detail("1", DetailContent(ContentFormat.HTML_SHELL, html))

    assert detail.location == "Utrecht"
    assert detail.province == "Utrecht"
    assert detail.hours_per_week == 36


def test_detail_fetch_timeout_keeps_discovery_data():
    async def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == "https://www.flextender.nl/opdrachten/":
            return httpx.Response(200, text=LISTING_PAGE_HTML)
        if url == "https://www.flextender.nl/wp-admin/admin-ajax.php":
            return httpx.Response(200, json={"resultHtml": _card(1) + _card(2)})
        if url.endswith("/jobdetails/1"):
            await asyncio.sleep(1)
        return httpx.Response(200, text=HTML_SHELL_DETAIL)

    options = FlextenderOptions(detail_fetch_timeout=0.05)

    adapter = FlextenderAdapter(options, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    assert asyncio.run(adapter.fetch_detail("1")) is None

    adapter = FlextenderAdapter(options, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    listings = asyncio.run(adapter.fetch_listings())

    assert [item.external_id for item in listings] == ["flextender-1", "flextender-2"]
    assert "detail" not in listings[0].raw_data
    assert listings[0].hours_per_week == 36
    assert "detail" in listings[1].raw_data
