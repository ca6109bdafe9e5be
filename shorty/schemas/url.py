from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

_http_url = TypeAdapter(HttpUrl)


class URLCreate(BaseModel):
    long_url: str = Field(..., description="The original URL to be shortened")

    @field_validator("long_url")
    @classmethod
    def must_be_http_url(cls, value: str) -> str:
        """Validate as HttpUrl but keep the submitted string untouched"""
        try:
            _http_url.validate_python(value)
        except ValidationError as e:
            raise ValueError(f"Invalid URL: {e.errors()[0]['msg']}") from e
        return value


class URLResponse(BaseModel):
    short_code: str
    long_url: str
    short_url: str


class LinkStats(BaseModel):
    """Per-link statistics, read straight from a URLMapping row"""
    short_code: str
    long_url: str
    visit_count: int
    created_at: datetime

    # Pydantic V2 style configuration
    model_config = ConfigDict(from_attributes=True)


class Stats(BaseModel):
    total_links: int
    total_clicks: int
    clicks_today: int
    popular_links: List[LinkStats]
    recent_links: List[LinkStats]
