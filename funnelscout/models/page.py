from typing import Literal

from pydantic import BaseModel


class DiscoveredPage(BaseModel):
    """One same-site page worth screenshotting."""

    url: str
    title: str
    kind: Literal["homepage", "page"] = "page"
