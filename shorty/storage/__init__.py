"""
Persistent storage for URL mappings.
"""

from .mapping_store import MappingStore

__all__ = ["MappingStore"]
