from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, TypeVar

from bs4 import BeautifulSoup
import httpx
from pydantic import BaseModel, ValidationError

from freelance_ingest.core.config import settings
from freelance_ingest.crawlers.errors import ProtocolError, TransportError

ModelT = TypeVar("ModelT", bound=BaseModel)


@asynccontextmanager
async def open_client(
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
    user_agent: str | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client as-is, or a fresh one closed on exit."""
    if client is not None:
        yield client
        return

    headers = {"User-Agent": user_agent or settings.user_agent}
    async with httpx.AsyncClient(
        timeout=timeout if timeout is not None else settings.http_timeout,
        follow_redirects=True,
        headers=headers,
    ) as owned:
        yield owned


async def request(client: httpx.AsyncClient, method: str, url: str, *, platform: str, **kwargs: Any) -> httpx.Response:
    try:
        resp = await client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        raise TransportError(f"{platform}: {method} {url} failed: {exc}", platform=platform) from exc

    if not resp.is_success:
        raise TransportError(
            f"{platform} API error: {resp.status_code}",
            platform=platform,
            status_code=resp.status_code,
        )
    return resp


def decode_json(resp: httpx.Response, *, platform: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise ProtocolError(f"{platform}: response from {resp.request.url} is not JSON", platform=platform) from exc


async def get_json(client: httpx.AsyncClient, url: str, *, platform: str, **kwargs: Any) -> Any:
    headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
    resp = await request(client, "GET", url, platform=platform, headers=headers, **kwargs)
    return decode_json(resp, platform=platform)


async def post_json(client: httpx.AsyncClient, url: str, payload: dict, *, platform: str, **kwargs: Any) -> Any:
    headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
    resp = await request(client, "POST", url, platform=platform, json=payload, headers=headers, **kwargs)
    return decode_json(resp, platform=platform)


async def post_form(client: httpx.AsyncClient, url: str, data: dict[str, str], *, platform: str) -> Any:
    resp = await request(client, "POST", url, platform=platform, data=data, headers={"Accept": "application/json"})
    return decode_json(resp, platform=platform)


async def fetch_html(client: httpx.AsyncClient, url: str, *, platform: str) -> str:
    resp = await request(client, "GET", url, platform=platform, headers={"Accept": "text/html"})
    return resp.text


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def parse_payload(model: type[ModelT], payload: Any, *, platform: str) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in exc.errors())
        raise ProtocolError(f"{platform}: unexpected response shape ({fields})", platform=platform) from exc
