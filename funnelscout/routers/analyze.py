import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from slowapi import Limiter
from slowapi.util import get_remote_address

from funnelscout.models.request import AnalyzeRequest
from funnelscout.models.response import SiteAnalysis
from funnelscout.services.pipeline import analyze_site

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


@router.post(
    "/analyze",
    response_model=SiteAnalysis,
    summary="Characterise a website for a funnel page",
    description=(
        "Loads the homepage in a headless browser and returns a brand palette, "
        "feature / benefit / call-to-action copy and up to `max_pages` same-site "
        "pages worth screenshotting.  GitHub repository URLs additionally have "
        "their README mined.  Missing optional signals never fail the request; "
        "fields are simply left empty or defaulted."
    ),
)
@limiter.limit("5/minute")
async def analyze(request: Request, body: AnalyzeRequest) -> SiteAnalysis:
    url = str(body.url)
    logger.info("Analyze request received", extra={"url": url, "max_pages": body.max_pages})

    try:
        return await analyze_site(url, max_pages=body.max_pages)
    except ValueError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except (asyncio.TimeoutError, PlaywrightTimeoutError):
        logger.error("Timeout loading %s", url)
        raise HTTPException(status_code=504, detail="The target URL timed out.")
    except PlaywrightError as exc:
        logger.error("Browser error for URL %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=f"Browser error: {exc}")
