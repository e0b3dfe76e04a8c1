from __future__ import annotations
from dataclasses import asdict, dataclass, field

import httpx

_POSITIVE_FIELDS = ("rate_min", "rate_max", "hours_per_week", "hours_per_week_min")


@dataclass(frozen=True)
class Listing:
    """One normalized posting, independent of the source platform.

    Numeric rate/hours fields are either ``None`` or strictly positive; a zero
    from a source means "unknown", not a real rate of zero.
    """

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
    skills: list[str] = field(default_factory=list)
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
    raw_data: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        prefix = f"{self.platform}-"
        if not self.platform or not self.external_id.startswith(prefix) or len(self.external_id) == len(prefix):
            raise ValueError(f"external_id {self.external_id!r} must look like '{prefix}<id>'")

        for name in _POSITIVE_FIELDS:
            value = getattr(self, name)
            if value is not None and value <= 0:
                object.__setattr__(self, name, None)

        if self.raw_data is None:
            object.__setattr__(self, "raw_data", {})
        if self.skills is None:
            object.__setattr__(self, "skills", [])

    @property
    def native_id(self) -> str:
        return self.external_id[len(self.platform) + 1 :]

    def to_dict(self) -> dict:
        return asdict(self)


class PlatformAdapter:
    """Common capability contract for every source platform.

    ``fetch_listings`` returns the current batch in the source's native order.
    When ``last_known_id`` is given, enumeration stops at the first mapped
    listing whose ``external_id`` equals it and only the listings before it
    are returned.
    """

    name: str
    display_name: str

    def __init__(self, *, enabled: bool = True, client: httpx.AsyncClient | None = None) -> None:
        self.enabled = enabled
        self._client = client

    def external_id(self, native_id: object) -> str:
        return f"{self.name}-{native_id}"

    async def fetch_listings(self, last_known_id: str | None = None) -> list[Listing]:
        raise NotImplementedError

    async def fetch_detail(self, native_id: str) -> Listing | None:
        # List endpoints already carry the full record for most platforms.
        return None
