"""Builders for validated request values."""

from .search_builder import DEFAULT_INDEX, DEFAULT_PAGE_SIZE, Search, SearchBuilder

__all__ = [
    "DEFAULT_INDEX",
    "DEFAULT_PAGE_SIZE",
    "Search",
    "SearchBuilder",
]
