from typing import List, Optional

from pydantic import BaseModel

from funnelscout.models.colors import ExtractedColors
from funnelscout.models.content import CombinedContent, ExtractedContent
from funnelscout.models.page import DiscoveredPage
from funnelscout.models.repository import RepositoryAnalysis


class SiteAnalysis(BaseModel):
    url: str
    pages: List[DiscoveredPage]
    colors: ExtractedColors
    content: ExtractedContent
    repository: Optional[RepositoryAnalysis] = None
    """Present only when *url* is a repository URL and its metadata was fetched."""
    combined: CombinedContent
