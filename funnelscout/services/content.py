"""Heading, feature, benefit and call-to-action text from a loaded homepage."""

import logging
from typing import List, Sequence

from funnelscout.models.content import ExtractedContent
from funnelscout.services.document import DocumentQuery, parent_path
from funnelscout.services.normalizer import clean_text, unique

logger = logging.getLogger(__name__)

# Feature candidates in priority order; each selector samples 6 matches
_FEATURE_SELECTORS = (
    "ul li",
    ".features li",
    '[class*="feature"]',
    "h3",
)
_FEATURE_SAMPLE = 6
MAX_FEATURES = 4
FEATURE_MIN, FEATURE_MAX = 10, 150

BENEFIT_KEYWORDS = (
    "fast",
    "easy",
    "simple",
    "secure",
    "reliable",
    "powerful",
    "free",
    "unlimited",
    "instant",
)
MAX_BENEFITS = 4
BENEFIT_MIN, BENEFIT_MAX = 20, 200

_CTA_SELECTORS = (
    "button",
    ".btn",
    ".button",
    'a[class*="cta"]',
    'a[class*="button"]',
)
_CTA_SAMPLE = 5
MAX_CTAS = 3
CTA_MIN, CTA_MAX = 2, 30

_HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"
_KEY_PHRASE_SELECTOR = (
    'strong, em, b, i, [class*="highlight"], '
    '[class*="hero"], [class*="banner"], [class*="intro"]'
)
MAX_HEADINGS = 15
MAX_KEY_PHRASES = 15
KEY_PHRASE_MIN, KEY_PHRASE_MAX = 5, 100


def _within(text: str, low: int, high: int) -> bool:
    return low < len(text) < high


async def _main_heading(document: DocumentQuery) -> str:
    h1s = await document.query_all("h1")
    if h1s:
        return clean_text(h1s[0].text)
    return clean_text(await document.title())


async def _meta_description(document: DocumentQuery) -> str:
    metas = await document.query_all('meta[name="description"]')
    if metas:
        return clean_text(metas[0].attributes.get("content", ""))
    return ""


async def _sub_heading(document: DocumentQuery) -> str:
    h1s = await document.query_all("h1")
    if h1s:
        container = parent_path(h1s[0].path)
        if container:
            h2s = await document.query_all(f"{container} h2")
            if h2s:
                subheading = clean_text(h2s[0].text)
                if subheading:
                    return subheading
    return await _meta_description(document)


async def _collect(
    document: DocumentQuery,
    selectors: Sequence[str],
    sample: int,
    limit: int,
    low: int,
    high: int,
) -> List[str]:
    """Greedy pass over *selectors*, stopping as soon as *limit* unique texts are found."""
    found: List[str] = []
    for selector in selectors:
        for element in (await document.query_all(selector))[:sample]:
            text = clean_text(element.text)
            if _within(text, low, high) and text not in found:
                found.append(text)
                if len(found) >= limit:
                    return found
    return found


async def _benefits(document: DocumentQuery) -> List[str]:
    benefits: List[str] = []
    for paragraph in await document.query_all("p"):
        text = clean_text(paragraph.text)
        if not _within(text, BENEFIT_MIN, BENEFIT_MAX) or text in benefits:
            continue
        lowered = text.lower()
        if any(keyword in lowered for keyword in BENEFIT_KEYWORDS):
            benefits.append(text)
            if len(benefits) >= MAX_BENEFITS:
                break
    return benefits


async def _texts(document: DocumentQuery, selector: str) -> List[str]:
    return [clean_text(element.text) for element in await document.query_all(selector)]


async def extract_content(document: DocumentQuery) -> ExtractedContent:
    """Extract marketing copy from *document*.

    Never raises: an unexpected document shape yields an empty
    :class:`ExtractedContent`.
    """
    try:
        headings = await _texts(document, _HEADING_SELECTOR)
        key_phrases = await _texts(document, _KEY_PHRASE_SELECTOR)
        content = ExtractedContent(
            main_heading=await _main_heading(document),
            sub_heading=await _sub_heading(document),
            features=await _collect(
                document, _FEATURE_SELECTORS, _FEATURE_SAMPLE, MAX_FEATURES, FEATURE_MIN, FEATURE_MAX
            ),
            benefits=await _benefits(document),
            cta_texts=await _collect(
                document, _CTA_SELECTORS, _CTA_SAMPLE, MAX_CTAS, CTA_MIN, CTA_MAX
            ),
            title=clean_text(await document.title()),
            description=await _meta_description(document),
            headings=unique(headings, MAX_HEADINGS),
            key_phrases=unique(key_phrases, MAX_KEY_PHRASES, KEY_PHRASE_MIN, KEY_PHRASE_MAX),
        )
    except Exception as exc:
        logger.warning("Content extraction failed: %s", exc)
        return ExtractedContent()

    logger.info(
        "Extracted content",
        extra={
            "heading": content.main_heading[:50],
            "features": len(content.features),
            "benefits": len(content.benefits),
            "ctas": len(content.cta_texts),
        },
    )
    return content
