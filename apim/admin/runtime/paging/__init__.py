"""Generic paging layer: cursor pagination, throttled listings and bulk batches.

Architecture:
    The paging layer consists of:
    - definitions.py: Page structures (PageResult, PageMeta, PagedItem) and
      the pagination state machine (PageState, advance)
    - cursor.py: Sort-key continuation (search_after) pagination
    - listing.py: Array and numbered-page listings with throttled emission
    - bulk.py: Bulk request building and per-item demultiplexing
    - telemetry.py: Structured logging

Usage:
    Every engine takes an Executor and produces an async iterator.
    Callers build the initial descriptor and consume the sequence.
"""

from __future__ import annotations

from .bulk import BULK_CONTENT_TYPE, BulkExecutor, BulkOutcome, build_bulk_delete
from .cursor import CursorPaginator, CursorStream, check_cursor_descriptor
from .definitions import PagedItem, PageMeta, PageResult, PageState, advance
from .listing import (
    DEFAULT_DELAY,
    EmptyPageNumbering,
    PageCountNumbering,
    PageNumbering,
    ThrottledLister,
    TotalCountNumbering,
)

__all__ = [
    "PageState",
    "PageMeta",
    "PageResult",
    "PagedItem",
    "advance",
    "CursorPaginator",
    "CursorStream",
    "check_cursor_descriptor",
    "DEFAULT_DELAY",
    "ThrottledLister",
    "PageNumbering",
    "PageCountNumbering",
    "TotalCountNumbering",
    "EmptyPageNumbering",
    "BULK_CONTENT_TYPE",
    "BulkExecutor",
    "BulkOutcome",
    "build_bulk_delete",
]
