"""Hourly-rate extraction from free Dutch text.

Used when a source's structured rate fields are missing or zero. Handles
phrases like "Tarief: maximaal 86 euro per uur", "uurtarief van €85",
"€85–90 per uur" and "€90 per uur".
"""

from __future__ import annotations
import re

_TAG_RE = re.compile(r"<[^>]*>")

# Dates such as 14-03-2026 and hour spans such as "32-36 uur" or "32-36 per week"
# are not rate ranges.
_RANGE_RE = re.compile(
    r"(?<![\d-])€?\s*(\d+)\s*[–-]\s*(\d+)(?![\d-])(?!\s*(?:uur\b|per\s+week\b))"
    r"(?:\s*(?:euro|€)\s*per\s*uur)?",
    re.I,
)
_MAX_RES = (
    re.compile(r"(?:tarief|rate)\s*:\s*maximaal\s+(\d+)", re.I),
    re.compile(r"maximaal\s+(\d+)\s*(?:euro|€)?", re.I),
    re.compile(r"tot\s*€?\s*(\d+)", re.I),
    re.compile(r"(\d+)\s*(?:euro|€)\s*per\s*uur", re.I),
)
_VAN_RE = re.compile(r"uurtarief\s+van\s*€?\s*(\d+)|van\s*€?\s*(\d+)\s*per\s*uur", re.I)
_STANDALONE_RE = re.compile(r"€?\s*(\d+)\s*(?:euro|€)?\s*per\s*uur", re.I)


def strip_html(html: str) -> str:
    return " ".join(_TAG_RE.sub(" ", html).split())


def _positive(raw: str | None) -> int | None:
    if not raw:
        return None
    value = int(raw)
    return value if value > 0 else None


def parse_rate_from_content(text: str | None) -> dict[str, int]:
    """Return ``{"rate_min", "rate_max"}`` (either may be missing) or ``{}``.

    Patterns are tried in a fixed order and the first usable match wins.
    """
    if not text or not isinstance(text, str):
        return {}
    raw = strip_html(text) if "<" in text else text

    match = _RANGE_RE.search(raw)
    if match:
        low, high = _positive(match.group(1)), _positive(match.group(2))
        if low and high:
            return {"rate_min": min(low, high), "rate_max": max(low, high)}

    for pattern in _MAX_RES:
        match = pattern.search(raw)
        value = _positive(match.group(1)) if match else None
        if value:
            return {"rate_max": value}

    match = _VAN_RE.search(raw)
    if match:
        value = _positive(match.group(1) or match.group(2))
        if value:
            return {"rate_max": value}

    match = _STANDALONE_RE.search(raw)
    value = _positive(match.group(1)) if match else None
    if value:
        return {"rate_max": value}

    return {}
