from __future__ import annotations
import re
from datetime import date

DUTCH_MONTHS = {
    "januari": 1, "jan": 1,
    "februari": 2, "feb": 2,
    "maart": 3, "mrt": 3,
    "april": 4, "apr": 4,
    "mei": 5,
    "juni": 6, "jun": 6,
    "juli": 7, "jul": 7,
    "augustus": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "oktober": 10, "okt": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

# Placeholder years some sources use for "no date".
SENTINEL_YEARS = {1900, 1901}
ASAP_VALUES = {"z.s.m.", "z.s.m", "zsm", "per direct", "zo spoedig mogelijk"}

_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_NUMERIC_RE = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})")
_DUTCH_RE = re.compile(r"(\d{1,2})\s+([a-z]+)\.?\s+(\d{4})")


def _build(year: int, month: int, day: int) -> str | None:
    if year in SENTINEL_YEARS:
        return None
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def to_iso_date(value: str | None) -> str | None:
    """Normalize a source date string to ``YYYY-MM-DD``.

    Accepts ISO timestamps, ``DD-MM-YYYY`` and Dutch long dates such as
    ``"maandag 3 maart 2026"``. Returns ``None`` for "as soon as possible",
    placeholder years and anything it cannot read.
    """
    if not value or not isinstance(value, str):
        return None
    text = " ".join(value.split()).strip()
    if not text or text.lower() in ASAP_VALUES:
        return None

    match = _ISO_RE.match(text)
    if match:
        return _build(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = _NUMERIC_RE.match(text)
    if match:
        return _build(int(match.group(3)), int(match.group(2)), int(match.group(1)))

    match = _DUTCH_RE.search(text.lower())
    if match and match.group(2) in DUTCH_MONTHS:
        return _build(int(match.group(3)), DUTCH_MONTHS[match.group(2)], int(match.group(1)))

    return None
