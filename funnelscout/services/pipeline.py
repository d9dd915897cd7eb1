"""Per-request orchestration: homepage extraction, discovery and repository analysis.

The homepage is loaded once into an exclusively owned browser context and
every extraction runs against it sequentially.  Repository analysis does not
need the browser and runs as an independent task alongside it.

A single deadline bounds the whole request.  Only navigation is fatal when
time runs out; an extraction, discovery or repository branch still in flight
is replaced by its empty fallback and branches that already finished keep
their results.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from funnelscout.config import get_settings
from funnelscout.models.colors import ExtractedColors
from funnelscout.models.content import ExtractedContent
from funnelscout.models.repository import RepositoryAnalysis
from funnelscout.models.response import SiteAnalysis
from funnelscout.services.browser import open_document
from funnelscout.services.colors import extract_colors
from funnelscout.services.combiner import combine
from funnelscout.services.content import extract_content
from funnelscout.services.discovery import discover_pages, homepage_entry
from funnelscout.services.repository import (
    RepositoryAnalysisError,
    analyze_repository,
    detect_repository,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Deadline:
    def __init__(self, seconds: float) -> None:
        self._loop = asyncio.get_running_loop()
        self._expires_at = self._loop.time() + seconds

    def remaining(self) -> float:
        return max(self._expires_at - self._loop.time(), 0.0)


async def _or_fallback(awaitable: Awaitable[T], timeout: float, fallback: T, branch: str) -> T:
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        logger.warning("Deadline expired during %s – using fallback", branch)
        return fallback


async def _repository_result(
    task: "asyncio.Task[RepositoryAnalysis]", timeout: float
) -> Optional[RepositoryAnalysis]:
    try:
        if task.done():
            return task.result()
        return await _or_fallback(task, timeout, None, "repository analysis")
    except RepositoryAnalysisError as exc:
        logger.warning("Repository analysis failed, continuing with page content: %s", exc)
        return None


async def analyze_site(
    target_url: str,
    max_pages: Optional[int] = None,
    deadline: Optional[float] = None,
) -> SiteAnalysis:
    """Run the full discovery-and-extraction pipeline for *target_url*.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        asyncio.TimeoutError: if the deadline is spent before the homepage has loaded.
        playwright.async_api.Error: if the homepage cannot be loaded.
    """
    settings = get_settings()
    max_pages = max_pages or settings.default_max_pages
    clock = _Deadline(deadline if deadline is not None else settings.request_deadline)

    repo_info = detect_repository(target_url)
    repo_task: Optional[asyncio.Task] = None
    if repo_info is not None:
        logger.info("Detected repository %s/%s", repo_info.owner, repo_info.name)
        repo_task = asyncio.create_task(analyze_repository(repo_info))

    try:
        # Playwright reads a zero timeout as "wait forever"
        if clock.remaining() <= 0:
            raise asyncio.TimeoutError(f"No time left to load {target_url}")
        navigation_timeout = min(settings.navigation_timeout, clock.remaining())
        async with open_document(target_url, timeout=navigation_timeout) as document:
            colors = await _or_fallback(
                extract_colors(document), clock.remaining(), ExtractedColors(), "colour extraction"
            )
            content = await _or_fallback(
                extract_content(document), clock.remaining(), ExtractedContent(), "content extraction"
            )
            pages = await _or_fallback(
                discover_pages(document, target_url, max_pages),
                clock.remaining(),
                [homepage_entry(target_url)],
                "page discovery",
            )
    except Exception:
        if repo_task is not None:
            repo_task.cancel()
        raise

    repository = None
    if repo_task is not None:
        repository = await _repository_result(repo_task, clock.remaining())

    return SiteAnalysis(
        url=target_url,
        pages=pages,
        colors=colors,
        content=content,
        repository=repository,
        combined=combine(content, repository),
    )
