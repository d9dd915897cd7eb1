"""Text and URL normalisation shared by the extraction components."""

import re
from typing import Iterable, List, Optional
from urllib.parse import urlparse

_WHITESPACE_RE = re.compile(r"\s+")
_WORD_START_RE = re.compile(r"\b\w")

MAX_TEXT_LENGTH = 200


def clean_text(text: Optional[str], limit: int = MAX_TEXT_LENGTH) -> str:
    """Trim *text*, collapse all whitespace runs (newlines included) and truncate."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()[:limit]


def page_title_from_url(url: str) -> str:
    """Derive a readable page name from the last path segment of *url*.

    ``https://x.com/pricing-plans/`` → ``"Pricing Plans"``; the root path
    maps to ``"Homepage"``.
    """
    path = urlparse(url).path.strip("/")
    if not path:
        return "Homepage"
    segment = path.split("/")[-1]
    readable = re.sub(r"[-_]", " ", segment)
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), readable) or "Page"


def unique(
    items: Iterable[str],
    limit: int,
    min_len: int = 0,
    max_len: Optional[int] = None,
) -> List[str]:
    """Return *items* de-duplicated (first occurrence wins) and capped at *limit*.

    When a length window is given, only items whose length lies strictly
    between *min_len* and *max_len* are kept.
    """
    result: List[str] = []
    seen: set = set()
    for item in items:
        if len(result) >= limit:
            break
        if not item or item in seen:
            continue
        if len(item) <= min_len:
            continue
        if max_len is not None and len(item) >= max_len:
            continue
        seen.add(item)
        result.append(item)
    return result
