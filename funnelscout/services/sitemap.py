"""Sitemap retrieval and parsing for page discovery."""

import logging
from typing import List, Optional, Union
from xml.etree import ElementTree

import httpx

from funnelscout.services.fetcher import fetch_bytes

logger = logging.getLogger(__name__)

SITEMAP_PATH = "/sitemap.xml"

# A body without one of these is not a sitemap (HTML 404 pages, SPA shells, …)
_SITEMAP_MARKERS = (b"<urlset", b"<sitemapindex")


def parse_sitemap(xml: Union[str, bytes]) -> List[str]:
    """Extract all ``<loc>`` values from a sitemap or sitemap-index XML, in document order.

    Raises:
        ElementTree.ParseError: if *xml* is not well-formed XML.
    """
    root = ElementTree.fromstring(xml)
    ns = root.tag.split("}")[0] + "}" if root.tag.startswith("{") else ""
    return [elem.text.strip() for elem in root.iter(f"{ns}loc") if elem.text and elem.text.strip()]


async def fetch_sitemap_urls(origin: str, timeout: float) -> Optional[List[str]]:
    """Return the URLs listed in ``{origin}/sitemap.xml``, or *None* when there is no usable sitemap.

    A single request is made; timeouts, HTTP errors, bodies without sitemap
    markers and malformed XML all count as "no sitemap".
    """
    sitemap_url = origin.rstrip("/") + SITEMAP_PATH
    try:
        body = await fetch_bytes(sitemap_url, timeout=timeout)
    except (ValueError, httpx.HTTPError, RuntimeError) as exc:
        logger.info("Sitemap unavailable at %s – %s", sitemap_url, exc)
        return None

    if not any(marker in body for marker in _SITEMAP_MARKERS):
        logger.info("Response from %s is not a sitemap", sitemap_url)
        return None

    try:
        return parse_sitemap(body)
    except ElementTree.ParseError as exc:
        logger.warning("Failed to parse sitemap XML at %s: %s", sitemap_url, exc)
        return None
