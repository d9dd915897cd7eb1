from typing import Optional

from pydantic import BaseModel

DEFAULT_PRIMARY = "#a855f7"
DEFAULT_BACKGROUND = "#0b1220"


class ExtractedColors(BaseModel):
    """Brand palette derived from a homepage, as lowercase ``#rrggbb`` strings."""

    primary: str = DEFAULT_PRIMARY
    background: str = DEFAULT_BACKGROUND
    accent: Optional[str] = None
