"""
Database models for Shorty.

Visit counts live on the mapping row itself; pending visits are held in
memory by the aggregator until the next flush.
"""

from .url import URLMapping

__all__ = ["URLMapping"]
