from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ListingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    external_id: str
    platform: str
    title: str
    description: str | None = None
    organization: str | None = None
    location: str | None = None
    province: str | None = None
    rate_min: float | None = None
    rate_max: float | None = None
    hours_per_week: int | None = None
    hours_per_week_min: int | None = None
    start_date: str | None = None
    end_date: str | None = None
    deadline: str | None = None
    category: str | None = None
    skills: list[str] = []
    source_url: str | None = None
    contact_person: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    reference_code: str | None = None
    published_at: str | None = None
    contract_type: str | None = None
    duration: str | None = None
    education_level: str | None = None
    extension_option: str | None = None
    remote_work_policy: str | None = None
    raw_data: dict = {}


class PlatformResultOut(BaseModel):
    platform: str
    fetched: int
    status: str
    error: str | None = None


class CrawlSummaryOut(BaseModel):
    fetched: int
    failed_sources: list[str]
    source_stats: list[PlatformResultOut]
