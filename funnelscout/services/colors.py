"""Brand palette extraction from computed element colours.

Candidates are gathered in priority order – call-to-action buttons, header
and navigation containers, logo wrappers, then the first links – and the first
usable colour becomes the primary.  The primary is then nudged into the mid
brightness range and the background is forced dark, so the generated page is
always a dark theme whatever the source site looks like.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from funnelscout.models.colors import DEFAULT_BACKGROUND, DEFAULT_PRIMARY, ExtractedColors
from funnelscout.services.document import DocumentQuery, ElementSnapshot, parent_path

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

MAX_CANDIDATES = 5

DARK_THRESHOLD = 128
LIGHT_THRESHOLD = 200
LIGHTEN_RATIO = 0.3
DARKEN_RATIO = 0.2

NEAR_WHITE_MIN = 240
NEAR_BLACK_MAX = 20

# (selector, how many matches to sample)
_CTA_SELECTORS = (
    ('button[type="submit"]', 3),
    ("button.primary", 3),
    ("button.cta", 3),
    (".btn-primary", 3),
    (".button-primary", 3),
    ('a[class*="cta"]', 3),
    ('a[class*="button"]', 3),
    (".primary-button", 3),
    ('[data-variant="primary"]', 3),
)
_HEADER_SELECTORS = (
    ("header", 2),
    ("nav", 2),
    ('[role="banner"]', 2),
    (".header", 2),
)
_LOGO_SELECTORS = (
    'img[alt*="logo" i]',
    'img[class*="logo" i]',
    ".logo img",
)
_LINK_SAMPLE = 10

_RGB_RE = re.compile(
    r"rgba?\(\s*([\d.]+)[\s,]+([\d.]+)[\s,]+([\d.]+)(?:[\s,/]+([\d.]+)(%?))?\s*\)",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Colour helpers
# ---------------------------------------------------------------------------

def parse_css_color(value: Optional[str]) -> Optional[Tuple[RGB, float]]:
    """Parse a computed ``rgb()`` / ``rgba()`` value into ``((r, g, b), alpha)``."""
    if not value:
        return None
    if value.strip().lower() == "transparent":
        return (0, 0, 0), 0.0
    match = _RGB_RE.search(value)
    if not match:
        return None
    rgb = tuple(min(255, round(float(match.group(i)))) for i in (1, 2, 3))
    alpha = 1.0
    if match.group(4):
        alpha = float(match.group(4)) / (100 if match.group(5) else 1)
    return rgb, alpha  # type: ignore[return-value]


def to_hex(rgb: RGB) -> str:
    return "#" + "".join(f"{channel:02x}" for channel in rgb)


def from_hex(value: str) -> RGB:
    digits = value.lstrip("#")
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def brightness(rgb: RGB) -> float:
    """Perceived brightness on a 0–255 scale (ITU-R BT.601 weights)."""
    r, g, b = rgb
    return 0.299 * r + 0.587 * g + 0.114 * b


def is_dark(rgb: RGB) -> bool:
    return brightness(rgb) < DARK_THRESHOLD


def is_light(rgb: RGB) -> bool:
    return brightness(rgb) > LIGHT_THRESHOLD


def is_near_white(rgb: RGB) -> bool:
    return min(rgb) >= NEAR_WHITE_MIN


def is_near_black(rgb: RGB) -> bool:
    return max(rgb) <= NEAR_BLACK_MAX


def mix(rgb: RGB, target: RGB, ratio: float) -> RGB:
    """Move *rgb* *ratio* of the way towards *target*."""
    return tuple(round(c + (t - c) * ratio) for c, t in zip(rgb, target))  # type: ignore[return-value]


def correct_primary(rgb: RGB) -> RGB:
    """Lighten dark colours and darken light ones; mid-range colours are returned unchanged."""
    if is_dark(rgb):
        return mix(rgb, (255, 255, 255), LIGHTEN_RATIO)
    if is_light(rgb):
        return mix(rgb, (0, 0, 0), DARKEN_RATIO)
    return rgb


def effective_color(element: ElementSnapshot) -> Optional[str]:
    """Return the brand-relevant colour of *element* as hex, or None.

    The computed background wins unless it is transparent or near-white; the
    text colour is the fallback unless it is near-black or near-white.
    """
    background = parse_css_color(element.background)
    if background:
        rgb, alpha = background
        if alpha > 0 and not is_near_white(rgb):
            return to_hex(rgb)

    text = parse_css_color(element.color)
    if text:
        rgb, alpha = text
        if alpha > 0 and not is_near_black(rgb) and not is_near_white(rgb):
            return to_hex(rgb)
    return None


# ---------------------------------------------------------------------------
# Candidate collection
# ---------------------------------------------------------------------------

async def _sample(document: DocumentQuery, selectors: Sequence[Tuple[str, int]]) -> List[str]:
    found: List[str] = []
    for selector, count in selectors:
        for element in (await document.query_all(selector))[:count]:
            color = effective_color(element)
            if color:
                found.append(color)
    return found


async def _logo_colors(document: DocumentQuery) -> List[str]:
    found: List[str] = []
    for selector in _LOGO_SELECTORS:
        logos = await document.query_all(selector)
        if not logos:
            continue
        target = logos[0]
        wrapper_path = parent_path(target.path)
        if wrapper_path:
            wrappers = await document.query_all(wrapper_path)
            if wrappers:
                target = wrappers[0]
        color = effective_color(target)
        if color:
            found.append(color)
    return found


async def collect_candidates(document: DocumentQuery) -> List[str]:
    """Return up to five unique hex colours in priority order."""
    found: List[str] = []
    found += await _sample(document, _CTA_SELECTORS)
    found += await _sample(document, _HEADER_SELECTORS)
    found += await _logo_colors(document)
    found += await _sample(document, (("a", _LINK_SAMPLE),))
    return list(dict.fromkeys(found))[:MAX_CANDIDATES]


async def _page_background(document: DocumentQuery) -> Optional[RGB]:
    for selector in ("html", "body"):
        elements = await document.query_all(selector)
        if not elements:
            continue
        parsed = parse_css_color(elements[0].background)
        if parsed and parsed[1] > 0:
            return parsed[0]
    return None


async def extract_colors(document: DocumentQuery) -> ExtractedColors:
    """Derive a brand palette from *document*.

    Never raises: any failure while querying the document yields the default
    palette.
    """
    try:
        candidates = await collect_candidates(document)
        page_background = await _page_background(document)
    except Exception as exc:
        logger.warning("Color extraction failed, using defaults: %s", exc)
        return ExtractedColors()

    primary = to_hex(correct_primary(from_hex(candidates[0]))) if candidates else DEFAULT_PRIMARY

    # Light backgrounds are discarded on purpose: the funnel page is always dark
    background = DEFAULT_BACKGROUND
    if page_background is not None and is_dark(page_background):
        background = to_hex(page_background)

    accent = candidates[1] if len(candidates) > 1 else None

    logger.info("Extracted colors: primary=%s background=%s accent=%s", primary, background, accent)
    return ExtractedColors(primary=primary, background=background, accent=accent)
