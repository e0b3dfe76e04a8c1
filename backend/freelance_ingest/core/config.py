from __future__ import annotations
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True)

    log_level: str = "INFO"

    user_agent: str = "HireStream/1.0"
    http_timeout: float = 30.0
    page_delay_seconds: float = 0.5

    # Rendering proxy (Firecrawl) for JS-rendered Flextender detail pages.
    firecrawl_api_key: str = ""
    flextender_detail_limit: int | None = None
    detail_budget_seconds: float = 25.0
    detail_fetch_timeout: float | None = None

    disabled_platforms: list[str] = []

    @field_validator("flextender_detail_limit")
    @classmethod
    def _limit_not_negative(cls, value: int | None) -> int | None:
        if value is not None and value < 0:
            raise ValueError("flextender_detail_limit must be >= 0")
        return value

    @field_validator("disabled_platforms")
    @classmethod
    def _lower_platforms(cls, value: list[str]) -> list[str]:
        return [name.strip().lower() for name in value if name.strip()]


settings = Settings()
