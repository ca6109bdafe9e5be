"""
FastAPI dependencies for dependency injection.

The application lifespan builds the store, cache, URL service and visit
aggregator once and keeps them on ``app.state``. Routes receive them through
these functions, so tests can swap any of them with
``app.dependency_overrides``.
"""

from fastapi import Request

from shorty.hit_processor.visit_aggregator import VisitAggregator
from shorty.services.url_service import URLService


def get_url_service(request: Request) -> URLService:
    return request.app.state.url_service


def get_aggregator(request: Request) -> VisitAggregator:
    return request.app.state.aggregator
