"""Runtime layer: request execution and paging engines."""

from .paging import (
    BulkExecutor,
    BulkOutcome,
    CursorPaginator,
    CursorStream,
    PagedItem,
    PageMeta,
    PageResult,
    PageState,
    ThrottledLister,
)
from .rest import HTTPClient, RequestExecutor

__all__ = [
    "HTTPClient",
    "RequestExecutor",
    "CursorPaginator",
    "CursorStream",
    "ThrottledLister",
    "BulkExecutor",
    "BulkOutcome",
    "PagedItem",
    "PageMeta",
    "PageResult",
    "PageState",
]
