"""Structured logging for paging operations.

This module provides telemetry hooks for the paging engines, emitting
structured log records (event name as message, details in ``extra``).
"""

from __future__ import annotations

import logging

from .definitions import PageResult

logger = logging.getLogger(__name__)


def log_page_fetched(*, path: str, page_index: int, page: PageResult) -> None:
    """Log a fetched page.

    Args:
        path: Request path
        page_index: Zero-based index of the page
        page: Page that was fetched
    """
    logger.info(
        "page_fetched",
        extra={
            "path": path,
            "page_index": page_index,
            "items": len(page.items),
            "total": page.meta.total,
            "continuation": page.descriptor.continuation,
        },
    )


def log_page_error(*, path: str, page_index: int, error: BaseException) -> None:
    """Log a page fetch failure.

    Args:
        path: Request path
        page_index: Zero-based index of the page that failed
        error: The failure, about to be propagated
    """
    logger.error(
        "page_error",
        extra={
            "path": path,
            "page_index": page_index,
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
    )


def log_pagination_complete(*, path: str, pages: int, items: int) -> None:
    """Log the end of a pagination run.

    Args:
        path: Request path
        pages: Number of pages fetched, including the final empty one
        items: Number of items emitted
    """
    logger.info(
        "pagination_complete",
        extra={"path": path, "pages": pages, "items": items},
    )


def log_listing_complete(*, path: str, pages: int, fetched: int, emitted: int) -> None:
    """Log the end of a throttled listing."""
    logger.info(
        "listing_complete",
        extra={"path": path, "pages": pages, "fetched": fetched, "emitted": emitted},
    )


def log_bulk_complete(*, path: str, submitted: int, failed: int) -> None:
    """Log a demultiplexed bulk response."""
    logger.info(
        "bulk_complete",
        extra={"path": path, "submitted": submitted, "failed": failed},
    )
