from typing import List

from pydantic import BaseModel


class ExtractedContent(BaseModel):
    """Heading, feature, benefit and call-to-action text found on a homepage."""

    main_heading: str = ""
    sub_heading: str = ""
    features: List[str] = []
    benefits: List[str] = []
    cta_texts: List[str] = []
    # Page-level signals consumed by the combiner
    title: str = ""
    description: str = ""
    headings: List[str] = []
    key_phrases: List[str] = []


class CombinedContent(BaseModel):
    """Final ranked content handed to page assembly."""

    features: List[str]
    benefits: List[str]
    key_points: List[str]
    description: str
