import logging

from fastapi import APIRouter, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from funnelscout.models.repository import RepositoryAnalysis
from funnelscout.models.request import RepositoryRequest
from funnelscout.services.repository import (
    RepositoryAnalysisError,
    analyze_repository,
    detect_repository,
)

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


@router.post(
    "/repository",
    response_model=RepositoryAnalysis,
    summary="Mine a GitHub repository's README",
)
@limiter.limit("10/minute")
async def repository(request: Request, body: RepositoryRequest) -> RepositoryAnalysis:
    """Fetch metadata and README for a repository URL without loading any web page."""
    url = str(body.url)
    info = detect_repository(url)
    if info is None:
        raise HTTPException(status_code=400, detail="URL is not a repository URL.")

    logger.info("Repository request received", extra={"owner": info.owner, "repo": info.name})
    try:
        return await analyze_repository(info)
    except RepositoryAnalysisError as exc:
        logger.error("Repository analysis failed for %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=str(exc))
