from fastapi import APIRouter, Depends

from shorty.dependencies import get_url_service
from shorty.schemas.url import Stats
from shorty.services.url_service import URLService

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=Stats)
def get_stats(url_service: URLService = Depends(get_url_service)):
    """Totals plus the most visited and most recent links"""
    return url_service.get_stats()
