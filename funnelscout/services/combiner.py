"""Merge homepage and repository signals into the final ranked content."""

from typing import List, Optional

from funnelscout.models.content import CombinedContent, ExtractedContent
from funnelscout.models.repository import RepositoryAnalysis
from funnelscout.services.content import BENEFIT_MAX, BENEFIT_MIN, FEATURE_MAX, FEATURE_MIN
from funnelscout.services.normalizer import unique

MAX_ITEMS = 10
MAX_KEY_POINTS = 15
KEY_POINT_MIN, KEY_POINT_MAX = 5, 100

HEADING_SAMPLE = 5
KEY_PHRASE_SAMPLE = 10
CTA_SAMPLE = 5


def build_key_points(
    page: ExtractedContent, repository: Optional[RepositoryAnalysis] = None
) -> List[str]:
    """Flatten repository description and topics with page headings, key phrases and CTAs."""
    points: List[str] = []
    if repository is not None:
        points.append(repository.description)
        points.extend(repository.topics)
    points.extend(page.headings[:HEADING_SAMPLE])
    points.extend(page.key_phrases[:KEY_PHRASE_SAMPLE])
    points.extend(page.cta_texts[:CTA_SAMPLE])
    return unique(points, MAX_KEY_POINTS, KEY_POINT_MIN, KEY_POINT_MAX)


def combine(
    page: ExtractedContent, repository: Optional[RepositoryAnalysis] = None
) -> CombinedContent:
    """Return the merged content; repository items always rank before page items."""
    if repository is not None:
        features = unique(repository.features + page.features, MAX_ITEMS)
        benefits = unique(repository.benefits + page.benefits, MAX_ITEMS)
        description = repository.description or page.description
    else:
        features = unique(page.features, MAX_ITEMS, FEATURE_MIN, FEATURE_MAX)
        benefits = unique(page.benefits, MAX_ITEMS, BENEFIT_MIN, BENEFIT_MAX)
        description = page.description

    return CombinedContent(
        features=features,
        benefits=benefits,
        key_points=build_key_points(page, repository),
        description=description,
    )
