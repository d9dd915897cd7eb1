"""GitHub repository detection and README mining.

README mining is a set of independent regex / keyword passes over plain
Markdown text.  No document model is built: headings are only located so that
the lines under a named section can be captured.
"""

import asyncio
import base64
import binascii
import logging
import re
from typing import List, NamedTuple, Optional, Sequence
from urllib.parse import urlparse

import httpx

from funnelscout.config import get_settings
from funnelscout.models.repository import RepositoryAnalysis, RepositoryInfo
from funnelscout.services.normalizer import clean_text, unique

logger = logging.getLogger(__name__)

USER_AGENT = "FunnelScout/1.0"

MAX_ITEMS = 10
ITEM_MIN, ITEM_MAX = 10, 100
MAX_KEY_PHRASES = 15
PHRASE_MIN, PHRASE_MAX = 3, 100
MAX_SECTION_TEXT = 500
MAX_SCREENSHOT_HINTS = 5


class RepositoryAnalysisError(RuntimeError):
    """Repository metadata could not be fetched; the analysis cannot proceed."""


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

_REPO_PATH_PATTERNS = (
    # /owner/name.git
    re.compile(r"^/([^/]+)/([^/]+?)\.git/?$"),
    # /owner/name and /owner/name/tree/main/...
    re.compile(r"^/([^/]+)/([^/]+)(?:/.*)?$"),
)


def detect_repository(url: str, host: Optional[str] = None) -> Optional[RepositoryInfo]:
    """Return the ``owner`` / ``name`` pair when *url* points at a repository on *host*.

    Anything else – other hosts, profile pages, the bare host – is simply not a
    repository and yields None.
    """
    host = (host or get_settings().repository_host).lower()
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    parsed = urlparse(candidate)
    if (parsed.hostname or "").lower() not in (host, f"www.{host}"):
        return None

    for pattern in _REPO_PATH_PATTERNS:
        match = pattern.match(parsed.path)
        if match:
            owner, name = match.groups()
            if name.endswith(".git"):
                name = name[: -len(".git")]
            if not owner or not name:
                return None
            return RepositoryInfo(owner=owner, name=name, url=f"https://{host}/{owner}/{name}")
    return None


# ---------------------------------------------------------------------------
# GitHub API
# ---------------------------------------------------------------------------

def _client() -> httpx.AsyncClient:
    settings = get_settings()
    headers = {"Accept": "application/vnd.github+json", "User-Agent": USER_AGENT}
    if settings.github_token:
        headers["Authorization"] = f"Bearer {settings.github_token}"
    return httpx.AsyncClient(
        base_url=settings.github_api_url,
        headers=headers,
        timeout=settings.github_timeout,
        follow_redirects=True,
    )


async def fetch_metadata(info: RepositoryInfo) -> dict:
    """Fetch the repository resource (description, topics, …).

    Raises:
        RepositoryAnalysisError: on a network error or a non-success response.
    """
    try:
        async with _client() as client:
            resp = await client.get(f"/repos/{info.owner}/{info.name}")
    except httpx.HTTPError as exc:
        raise RepositoryAnalysisError(f"GitHub API request failed: {exc}") from exc

    if not resp.is_success:
        raise RepositoryAnalysisError(f"GitHub API error: {resp.status_code}")
    try:
        return resp.json()
    except ValueError as exc:
        raise RepositoryAnalysisError("GitHub API returned invalid JSON") from exc


async def fetch_documentation(info: RepositoryInfo) -> str:
    """Fetch and decode the repository README; an empty string when unavailable."""
    try:
        async with _client() as client:
            resp = await client.get(f"/repos/{info.owner}/{info.name}/readme")
        if not resp.is_success:
            logger.info("No README for %s/%s (HTTP %d)", info.owner, info.name, resp.status_code)
            return ""
        encoded = resp.json().get("content") or ""
        return base64.b64decode(encoded).decode("utf-8", errors="replace")
    except (httpx.HTTPError, ValueError, binascii.Error) as exc:
        logger.warning("Failed to fetch README for %s/%s: %s", info.owner, info.name, exc)
        return ""


async def analyze_repository(info: RepositoryInfo) -> RepositoryAnalysis:
    """Fetch metadata and README concurrently and mine the README text.

    Raises:
        RepositoryAnalysisError: if the metadata cannot be fetched.
    """
    metadata, documentation = await asyncio.gather(
        fetch_metadata(info), fetch_documentation(info)
    )
    analysis = mine_documentation(documentation)
    analysis.description = clean_text(metadata.get("description"), limit=500)
    analysis.topics = [str(topic) for topic in metadata.get("topics") or []]

    logger.info(
        "Repository analysis complete for %s/%s",
        info.owner,
        info.name,
        extra={"features": len(analysis.features), "benefits": len(analysis.benefits)},
    )
    return analysis


# ---------------------------------------------------------------------------
# README mining
# ---------------------------------------------------------------------------

_FENCE_RE = re.compile(r"^\s*(?:```|~~~)")
_HEADING_RE = re.compile(r"^\s{0,3}(#{1,6})\s+(.*?)\s*#*\s*$")
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+\.)\s+(.+)$")
_BULLET_RE = re.compile(r"^\s*[-*+]\s+(.+)$")
_EMPHASIS_RE = re.compile(
    r"\*\*(?P<b1>[^*\n]+?)\*\*"
    r"|__(?P<b2>[^_\n]+?)__"
    r"|(?<![*\w])\*(?P<i1>[^*\s](?:[^*\n]*?[^*\s])?)\*(?![*\w])"
    r"|(?<![_\w])_(?P<i2>[^_\s](?:[^_\n]*?[^_\s])?)_(?![_\w])"
)
_INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")
_MARKDOWN_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(\s*<?([^)\s>]+)")
_HTML_IMAGE_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_HTML_ATTR_RE = re.compile(r"""\b(src|alt)\s*=\s*["']([^"']*)["']""", re.IGNORECASE)


def _heading_patterns(*names: str) -> Sequence[re.Pattern]:
    # Leading emoji / punctuation and a trailing colon are decoration
    return tuple(re.compile(rf"[^\w]*(?:{name})\s*:?", re.IGNORECASE) for name in names)


FEATURE_HEADINGS = _heading_patterns(
    r"features?", r"what'?s included", r"key features?", r"highlights?", r"capabilities"
)
BENEFIT_HEADINGS = _heading_patterns(
    r"benefits?", r"advantages?", r"why\s+.+\?", r"why (?:choose|use)\b.*"
)
INSTALLATION_HEADINGS = _heading_patterns(r"installation", r"getting started")
USAGE_HEADINGS = _heading_patterns(r"usage", r"examples?")

FEATURE_KEYWORDS = ("feature", "support", "include")
BENEFIT_KEYWORDS = ("benefit", "advantage", "improve", "enhance")


class _Heading(NamedTuple):
    line: int
    level: int
    title: str


def _prose_lines(lines: List[str]) -> List[Optional[str]]:
    """Return *lines* with fenced code replaced by None, keeping line positions."""
    result: List[Optional[str]] = []
    in_fence = False
    for line in lines:
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            result.append(None)
        else:
            result.append(None if in_fence else line)
    return result


def _headings(lines: List[str]) -> List[_Heading]:
    found: List[_Heading] = []
    for index, line in enumerate(_prose_lines(lines)):
        if line is None:
            continue
        match = _HEADING_RE.match(line)
        if match and match.group(2):
            found.append(_Heading(index, len(match.group(1)), clean_text(match.group(2))))
    return found


def _sections(text: str, patterns: Sequence[re.Pattern]) -> List[str]:
    """Bodies of every section whose heading matches *patterns*, in document order.

    A body runs until the next heading of the same or a higher level.
    """
    lines = text.splitlines()
    headings = _headings(lines)
    bodies: List[str] = []
    for position, heading in enumerate(headings):
        if not any(pattern.fullmatch(heading.title) for pattern in patterns):
            continue
        end = len(lines)
        for following in headings[position + 1:]:
            if following.level <= heading.level:
                end = following.line
                break
        bodies.append("\n".join(lines[heading.line + 1:end]))
    return bodies


def _list_items(body: str) -> List[str]:
    items: List[str] = []
    for line in body.splitlines():
        match = _LIST_ITEM_RE.match(line)
        if match:
            items.append(clean_text(match.group(1)))
    return items


def _keyword_bullets(text: str, keywords: Sequence[str]) -> List[str]:
    items: List[str] = []
    for line in _prose_lines(text.splitlines()):
        if line is None:
            continue
        match = _BULLET_RE.match(line)
        if not match:
            continue
        item = clean_text(match.group(1))
        lowered = item.lower()
        if any(keyword in lowered for keyword in keywords):
            items.append(item)
    return items


def _classified_items(
    text: str, patterns: Sequence[re.Pattern], keywords: Sequence[str]
) -> List[str]:
    candidates: List[str] = []
    for body in _sections(text, patterns):
        candidates.extend(_list_items(body))
    candidates.extend(_keyword_bullets(text, keywords))
    return unique(candidates, MAX_ITEMS, ITEM_MIN, ITEM_MAX)


def extract_features(text: str) -> List[str]:
    return _classified_items(text, FEATURE_HEADINGS, FEATURE_KEYWORDS)


def extract_benefits(text: str) -> List[str]:
    return _classified_items(text, BENEFIT_HEADINGS, BENEFIT_KEYWORDS)


def extract_key_phrases(text: str) -> List[str]:
    """Heading text, then bold / italic spans, then inline code spans."""
    lines = text.splitlines()
    prose = "\n".join(line for line in _prose_lines(lines) if line is not None)

    phrases = [heading.title for heading in _headings(lines)]
    for match in _EMPHASIS_RE.finditer(prose):
        phrases.append(next(group for group in match.groups() if group is not None))
    phrases.extend(match.group(1) for match in _INLINE_CODE_RE.finditer(prose))

    return unique((clean_text(p) for p in phrases), MAX_KEY_PHRASES, PHRASE_MIN, PHRASE_MAX)


def _first_section(text: str, patterns: Sequence[re.Pattern]) -> str:
    bodies = _sections(text, patterns)
    if not bodies:
        return ""
    return bodies[0].strip()[:MAX_SECTION_TEXT]


def extract_installation(text: str) -> str:
    return _first_section(text, INSTALLATION_HEADINGS)


def extract_usage(text: str) -> str:
    return _first_section(text, USAGE_HEADINGS)


def extract_screenshot_hints(text: str) -> List[str]:
    """Image paths whose alt text or path mentions a screenshot or demo."""
    images: List[tuple] = list(_MARKDOWN_IMAGE_RE.findall(text))
    for tag in _HTML_IMAGE_RE.findall(text):
        attrs = {name.lower(): value for name, value in _HTML_ATTR_RE.findall(tag)}
        if attrs.get("src"):
            images.append((attrs.get("alt", ""), attrs["src"]))

    hints = [
        path
        for alt, path in images
        if any(word in f"{alt} {path}".lower() for word in ("screen", "demo"))
    ]
    return unique(hints, MAX_SCREENSHOT_HINTS)


def mine_documentation(text: str) -> RepositoryAnalysis:
    """Run every README pass over *text*; metadata fields are left empty."""
    return RepositoryAnalysis(
        documentation_text=text,
        features=extract_features(text),
        benefits=extract_benefits(text),
        key_phrases=extract_key_phrases(text),
        installation_text=extract_installation(text),
        usage_text=extract_usage(text),
        screenshot_hints=extract_screenshot_hints(text),
    )
