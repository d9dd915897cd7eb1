from typing import List

from pydantic import BaseModel


class RepositoryInfo(BaseModel):
    owner: str
    name: str
    url: str


class RepositoryAnalysis(BaseModel):
    """Signals mined from a repository's metadata and README."""

    documentation_text: str = ""
    description: str = ""
    topics: List[str] = []
    features: List[str] = []
    benefits: List[str] = []
    key_phrases: List[str] = []
    installation_text: str = ""
    usage_text: str = ""
    screenshot_hints: List[str] = []
