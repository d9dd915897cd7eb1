"""Bounded same-site page discovery: sitemap first, homepage links as fallback.

Discovery is an ordered list of strategies.  Each strategy reports one of
three outcomes – ``items``, ``empty`` or ``failed`` – and the first strategy
that reports ``items`` wins; later strategies are not run.  The homepage is
always the first entry of the result.
"""

import logging
import re
from typing import List, Literal, NamedTuple, Optional, Protocol, Sequence
from urllib.parse import urljoin, urlparse

from funnelscout.config import get_settings
from funnelscout.models.page import DiscoveredPage
from funnelscout.services.document import DocumentQuery
from funnelscout.services.normalizer import clean_text, page_title_from_url
from funnelscout.services.sitemap import fetch_sitemap_urls

logger = logging.getLogger(__name__)

# Absolute ceiling – discovery is not a crawler
MAX_PAGES_HARD_LIMIT = 8

MAX_LINK_TITLE = 50
MIN_LINK_TEXT = 2

_SKIP_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:")

# Login / sign-up flows are never worth a screenshot
_AUTH_RE = re.compile(r"log[\s_-]?in|sign[\s_-]?(?:in|up)", re.IGNORECASE)

OutcomeStatus = Literal["items", "empty", "failed"]


class StrategyOutcome(NamedTuple):
    status: OutcomeStatus
    pages: List[DiscoveredPage]


class DiscoveryStrategy(Protocol):
    name: str

    async def run(
        self, document: DocumentQuery, target_url: str, limit: int
    ) -> StrategyOutcome: ...


def _outcome(pages: List[DiscoveredPage]) -> StrategyOutcome:
    return StrategyOutcome("items" if pages else "empty", pages)


def _failed() -> StrategyOutcome:
    return StrategyOutcome("failed", [])


def homepage_entry(target_url: str) -> DiscoveredPage:
    return DiscoveredPage(url=target_url, title="Homepage", kind="homepage")


class SitemapStrategy:
    """Pages listed in ``{origin}/sitemap.xml`` on the target's host."""

    name = "sitemap"

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    async def run(self, document: DocumentQuery, target_url: str, limit: int) -> StrategyOutcome:
        parsed = urlparse(target_url)
        origin = f"{parsed.scheme}://{parsed.netloc}"
        timeout = self.timeout if self.timeout is not None else get_settings().sitemap_timeout

        urls = await fetch_sitemap_urls(origin, timeout=timeout)
        if urls is None:
            return _failed()

        pages: List[DiscoveredPage] = []
        for url in urls:
            if len(pages) >= limit:
                break
            if urlparse(url).hostname != parsed.hostname:
                continue
            pages.append(DiscoveredPage(url=url, title=page_title_from_url(url)))
        return _outcome(pages)


class LinkCrawlStrategy:
    """Same-host anchors on the already loaded homepage, in DOM order."""

    name = "links"

    async def run(self, document: DocumentQuery, target_url: str, limit: int) -> StrategyOutcome:
        parsed_target = urlparse(target_url)
        homepage_path = parsed_target.path or "/"

        anchors = await document.query_all("a[href]")
        base_url = document.url if urlparse(document.url).scheme in ("http", "https") else target_url

        pages: List[DiscoveredPage] = []
        seen_paths: set = set()
        for anchor in anchors:
            if len(pages) >= limit:
                break
            href = anchor.attributes.get("href", "").strip()
            text = clean_text(anchor.text)
            if not href or href.lower().startswith(_SKIP_HREF_PREFIXES):
                continue

            parsed = urlparse(urljoin(base_url, href))
            if parsed.scheme not in ("http", "https"):
                continue
            if parsed.hostname != parsed_target.hostname:
                continue
            path = parsed.path or "/"
            if _AUTH_RE.search(path) or _AUTH_RE.search(text):
                continue
            if path == homepage_path or path in seen_paths:
                continue
            if len(text) <= MIN_LINK_TEXT:
                continue

            seen_paths.add(path)
            pages.append(
                DiscoveredPage(
                    url=parsed._replace(fragment="").geturl(),
                    title=text[:MAX_LINK_TITLE],
                )
            )
        return _outcome(pages)


DEFAULT_STRATEGIES: Sequence[DiscoveryStrategy] = (SitemapStrategy(), LinkCrawlStrategy())


async def discover_pages(
    document: DocumentQuery,
    target_url: str,
    max_pages: int = 6,
    strategies: Sequence[DiscoveryStrategy] = DEFAULT_STRATEGIES,
) -> List[DiscoveredPage]:
    """Return up to *max_pages* same-site pages, the homepage first.

    Strategies run in order until one yields at least one page.  A strategy
    that raises is treated as ``failed``; discovery itself never raises, the
    worst case is the homepage alone.
    """
    max_pages = max(1, min(max_pages, MAX_PAGES_HARD_LIMIT))
    pages = [homepage_entry(target_url)]
    limit = max_pages - 1
    if limit == 0:
        return pages

    for strategy in strategies:
        try:
            outcome = await strategy.run(document, target_url, limit)
        except Exception as exc:
            logger.warning("Discovery strategy '%s' failed for %s: %s", strategy.name, target_url, exc)
            continue

        logger.info(
            "Discovery strategy '%s' for %s: %s (%d pages)",
            strategy.name,
            target_url,
            outcome.status,
            len(outcome.pages),
        )
        if outcome.status == "items":
            pages.extend(outcome.pages[:limit])
            break

    return pages
