from .visit_aggregator import VisitAggregator

__all__ = ["VisitAggregator"]
