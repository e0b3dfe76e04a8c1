from __future__ import annotations
import re
from html import unescape
from typing import Any

_TAG_RE = re.compile(r"<[^>]*>")


def html_to_text(html: str | None) -> str:
    """Convert HTML to plain text, keeping paragraph breaks and list bullets."""
    if not html:
        return ""
    text = re.sub(r"</p>", "\n\n", html, flags=re.I)
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.I)
    text = re.sub(r"<li[^>]*>", "\n• ", text, flags=re.I)
    text = re.sub(r"</li>", "", text, flags=re.I)
    text = unescape(_TAG_RE.sub("", text)).replace("\xa0", " ")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def html_to_lines(html: str | None) -> list[str]:
    """Split an HTML block on its tags and return the non-empty text pieces."""
    if not html:
        return []
    pieces = unescape(_TAG_RE.sub("\n", html)).split("\n")
    return [" ".join(p.split()) for p in pieces if p.strip()]


def strip_tags(html: str | None) -> str:
    if not html:
        return ""
    return " ".join(unescape(_TAG_RE.sub(" ", html)).split())


def append_requirements(description: str | None, requirements: str | None) -> str | None:
    if not requirements:
        return description or None
    if not description:
        return requirements
    return f"{description}\n\nVereisten:\n{requirements}"


def clean(value: Any) -> str | None:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def positive_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if value > 0 else None
