import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from shorty.dependencies import get_aggregator, get_url_service
from shorty.exceptions import NotFoundError
from shorty.hit_processor.visit_aggregator import VisitAggregator
from shorty.schemas.url import LinkStats
from shorty.services.url_service import URLService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/r", tags=["redirect"])


@router.get("/{short_code}")
async def redirect_to_long_url(
    short_code: str,
    url_service: URLService = Depends(get_url_service),
    aggregator: VisitAggregator = Depends(get_aggregator)
):
    """
    Redirect to the original URL.

    Flow:
    1. Get long_url (cache first, then the mapping store)
    2. Record the visit in the in-memory tally (no DB write)
    3. Redirect

    Unknown codes redirect home instead of showing an error page.
    Storage failures propagate and become a 500.
    """
    try:
        long_url = await url_service.lookup(short_code)
    except NotFoundError:
        logger.info("No long URL for '%s', redirecting home", short_code)
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)

    aggregator.record_visit(short_code)

    return RedirectResponse(url=long_url, status_code=status.HTTP_302_FOUND)


@router.get("/{short_code}/stats", response_model=LinkStats)
def get_link_stats(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Persisted statistics for one short URL"""
    return url_service.get_link_stats(short_code)
