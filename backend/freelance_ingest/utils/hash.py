from __future__ import annotations
import hashlib
import re

_PUNCT_RE = re.compile(r"[^\w\s-]")


def normalize_text(value: str | None) -> str:
    text = _PUNCT_RE.sub("", (value or "").lower())
    return " ".join(text.split())


def listing_content_hash(title: str | None, organization: str | None, location: str | None) -> str:
    raw = "|".join(normalize_text(part) for part in (title, organization, location))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
