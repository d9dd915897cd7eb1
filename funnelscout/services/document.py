"""Read-only document queries over a live browser page or an HTML snapshot.

The extraction heuristics only ever see :class:`ElementSnapshot` values, so
they run unchanged against a Playwright page (:class:`BrowserDocument`) or a
parsed HTML string (:class:`StaticDocument`).

``StaticDocument`` has no layout engine.  Computed colours are derived from
inline ``style`` declarations only: ``background-color`` is not inherited and
defaults to transparent, ``color`` is inherited from the nearest ancestor that
declares one and defaults to black, as in a browser with no stylesheet.
"""

import re
from typing import Dict, List, NamedTuple, Optional, Protocol

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Page

TRANSPARENT = "rgba(0, 0, 0, 0)"
DEFAULT_TEXT_COLOR = "rgb(0, 0, 0)"


class ElementSnapshot(NamedTuple):
    tag: str
    text: str
    attributes: Dict[str, str]
    background: str  # computed background-color
    color: str  # computed text color
    path: str  # unique nth-child CSS path, usable as a selector


class DocumentQuery(Protocol):
    @property
    def url(self) -> str: ...

    async def title(self) -> str: ...

    async def query_all(self, selector: str) -> List[ElementSnapshot]: ...


def parent_path(path: str) -> Optional[str]:
    """Return the CSS path of the parent element of *path*, or None for the root."""
    parts = path.split(" > ")
    if len(parts) < 2:
        return None
    return " > ".join(parts[:-1])


# ---------------------------------------------------------------------------
# Live browser page
# ---------------------------------------------------------------------------

_SNAPSHOT_JS = """
(elements) => elements.map((el) => {
  const style = window.getComputedStyle(el);
  const attributes = {};
  for (const attr of Array.from(el.attributes)) {
    attributes[attr.name] = attr.value;
  }
  const parts = [];
  let node = el;
  while (node && node.nodeType === Node.ELEMENT_NODE) {
    const name = node.tagName.toLowerCase();
    const parent = node.parentElement;
    if (!parent) {
      parts.unshift(name);
      break;
    }
    const index = Array.prototype.indexOf.call(parent.children, node) + 1;
    parts.unshift(`${name}:nth-child(${index})`);
    node = parent;
  }
  return {
    tag: el.tagName.toLowerCase(),
    text: el.textContent || "",
    attributes,
    background: style.backgroundColor,
    color: style.color,
    path: parts.join(" > "),
  };
})
"""


class BrowserDocument:
    """:class:`DocumentQuery` over a Playwright page that has already navigated."""

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def title(self) -> str:
        return await self._page.title()

    async def query_all(self, selector: str) -> List[ElementSnapshot]:
        raw = await self._page.locator(selector).evaluate_all(_SNAPSHOT_JS)
        return [ElementSnapshot(**item) for item in raw]


# ---------------------------------------------------------------------------
# In-memory HTML snapshot
# ---------------------------------------------------------------------------

_DECLARATION_RE = re.compile(r"([\w-]+)\s*:\s*([^;]+)")
_COLOR_TOKEN_RE = re.compile(
    r"#[0-9a-f]{3,8}\b|rgba?\([^)]*\)|\b[a-z]+\b", re.IGNORECASE
)
_RGB_FUNC_RE = re.compile(
    r"rgba?\(\s*(\d{1,3})[\s,]+(\d{1,3})[\s,]+(\d{1,3})(?:[\s,/]+([\d.]+)(%?))?\s*\)",
    re.IGNORECASE,
)

_NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "navy": (0, 0, 128),
    "teal": (0, 128, 128),
}


def _format_rgb(r: int, g: int, b: int, alpha: float = 1.0) -> str:
    if alpha >= 1:
        return f"rgb({r}, {g}, {b})"
    return f"rgba({r}, {g}, {b}, {alpha:g})"


def css_color(value: str) -> Optional[str]:
    """Normalise a CSS colour token to the ``rgb()`` / ``rgba()`` form browsers compute."""
    token = value.strip().lower()
    if token == "transparent":
        return TRANSPARENT
    if token in _NAMED_COLORS:
        return _format_rgb(*_NAMED_COLORS[token])
    if token.startswith("#"):
        digits = token[1:]
        if len(digits) in (3, 4):
            digits = "".join(ch * 2 for ch in digits)
        if len(digits) not in (6, 8):
            return None
        try:
            channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
        except ValueError:
            return None
        alpha = channels[3] / 255 if len(channels) == 4 else 1.0
        return _format_rgb(channels[0], channels[1], channels[2], round(alpha, 3))
    match = _RGB_FUNC_RE.fullmatch(token)
    if match:
        r, g, b = (min(int(match.group(i)), 255) for i in (1, 2, 3))
        alpha = 1.0
        if match.group(4):
            alpha = float(match.group(4))
            if match.group(5):
                alpha /= 100
        return _format_rgb(r, g, b, alpha)
    return None


def _inline_styles(tag: Tag) -> Dict[str, str]:
    style = tag.get("style") or ""
    return {
        name.lower(): value.strip()
        for name, value in _DECLARATION_RE.findall(str(style))
    }


def _first_color(value: str) -> Optional[str]:
    for token in _COLOR_TOKEN_RE.findall(value):
        color = css_color(token)
        if color:
            return color
    return None


def _background(tag: Tag) -> str:
    styles = _inline_styles(tag)
    for prop in ("background-color", "background"):
        if prop in styles:
            color = _first_color(styles[prop])
            if color:
                return color
    return TRANSPARENT


def _text_color(tag: Tag) -> str:
    node: Optional[Tag] = tag
    while isinstance(node, Tag) and node.name != "[document]":
        declared = _inline_styles(node).get("color")
        if declared:
            color = css_color(declared)
            if color:
                return color
        node = node.parent
    return DEFAULT_TEXT_COLOR


def _css_path(tag: Tag) -> str:
    parts: List[str] = []
    node = tag
    while True:
        parent = node.parent
        if parent is None or parent.name == "[document]":
            parts.append(node.name)
            break
        siblings = [child for child in parent.children if isinstance(child, Tag)]
        index = next(i for i, child in enumerate(siblings, 1) if child is node)
        parts.append(f"{node.name}:nth-child({index})")
        node = parent
    return " > ".join(reversed(parts))


def _attributes(tag: Tag) -> Dict[str, str]:
    return {
        name: " ".join(value) if isinstance(value, list) else str(value)
        for name, value in tag.attrs.items()
    }


class StaticDocument:
    """:class:`DocumentQuery` over an HTML string parsed with BeautifulSoup."""

    def __init__(self, html: str, url: str = "about:blank") -> None:
        self._soup = BeautifulSoup(html, "lxml")
        self._url = url

    @property
    def url(self) -> str:
        return self._url

    async def title(self) -> str:
        title_tag = self._soup.find("title")
        if not title_tag:
            return ""
        return " ".join(title_tag.get_text().split())

    async def query_all(self, selector: str) -> List[ElementSnapshot]:
        return [
            ElementSnapshot(
                tag=tag.name,
                text=tag.get_text(),
                attributes=_attributes(tag),
                background=_background(tag),
                color=_text_color(tag),
                path=_css_path(tag),
            )
            for tag in self._soup.select(selector)
        ]
