from fastapi import APIRouter, Depends, HTTPException, Request, status
from shorty.schemas.url import URLCreate, URLResponse, LinkStats
from shorty.services.url_service import URLService
from shorty.dependencies import get_url_service

router = APIRouter(prefix="/urls", tags=["urls"])


def build_short_url(request: Request, short_code: str) -> str:
    return str(request.url_for("redirect_to_long_url", short_code=short_code))


@router.post("/", response_model=URLResponse, status_code=status.HTTP_201_CREATED)
def create_short_url(
    url_data: URLCreate,
    request: Request,
    url_service: URLService = Depends(get_url_service)
):
    """Create a short URL, or return the existing one for this long URL

    The long URL is stored exactly as submitted; dedup compares raw strings.
    """
    max_length = request.app.state.settings.max_url_length
    if len(url_data.long_url) > max_length:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"URL is too long (max {max_length} characters)"
        )

    short_code = url_service.create_or_get(url_data.long_url)
    return URLResponse(
        short_code=short_code,
        long_url=url_data.long_url,
        short_url=build_short_url(request, short_code),
    )


@router.get("/{short_code}", response_model=LinkStats)
def get_url_info(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Get information about a short URL (NotFoundError becomes a 404)"""
    return url_service.get_link_stats(short_code)
