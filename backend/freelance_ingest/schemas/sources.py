from __future__ import annotations
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StriivePage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[dict[str, Any]]
    total: int = Field(ge=0)


class OpdrachtSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    negometrix_tenders: list[dict[str, Any]]


class FlextenderSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    resultHtml: str | None = None


class FirecrawlData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    markdown: str | None = None


class FirecrawlScrapeResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: FirecrawlData | None = None
