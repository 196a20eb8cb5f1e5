"""Elasticsearch client.

Thin facade wiring the cursor paginator and the bulk executor to an
Elasticsearch endpoint described by ElasticsearchSettings.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Any

from ..api.search_builder import DEFAULT_PAGE_SIZE, Search
from ..core.session import AuthenticatedSession
from ..core.settings import ElasticsearchSettings
from ..runtime.paging import BulkExecutor, BulkOutcome, CursorPaginator, CursorStream
from ..runtime.rest import Executor, RequestExecutor

logger = logging.getLogger(__name__)

AGGREGATION_TIMEOUT = 10.0  # seconds


class ElasticsearchClient:
    """Elasticsearch client.

    Example:
        >>> settings = ElasticsearchSettings(base_url="https://es:9200")
        >>> async with ElasticsearchClient(settings) as es:
        ...     search = SearchBuilder.for_api_requests(api_id).build()
        ...     async for paged in es.search_hits(search):
        ...         print(paged.hit["_id"], paged.meta.total)
    """

    def __init__(
        self,
        settings: ElasticsearchSettings,
        executor: Executor | None = None,
    ) -> None:
        self._settings = settings
        self._executor = executor or RequestExecutor(settings)
        self._paginator = CursorPaginator(self._executor)
        self._bulk = BulkExecutor(self._executor)

    @property
    def settings(self) -> ElasticsearchSettings:
        return self._settings

    def search_hits(
        self,
        search: Search,
        page_size: int = DEFAULT_PAGE_SIZE,
        session: AuthenticatedSession | None = None,
    ) -> CursorStream:
        """Every hit of ``search``, lazily fetched ``page_size`` at a time.

        Raises:
            DescriptorError: If ``page_size`` is lower than 1
        """
        descriptor = search.to_descriptor(page_size=page_size)
        logger.debug(
            "search_started",
            extra={"index": search.index_name, "page_size": page_size},
        )
        return self._paginator.paginate(
            descriptor, session=session, unique_keys=search.unique_keys()
        )

    async def aggregate_hits(
        self,
        search: Search,
        aggregation: Mapping[str, Any],
        timeout: float = AGGREGATION_TIMEOUT,
        session: AuthenticatedSession | None = None,
    ) -> Any:
        """Run ``aggregation`` over the hits of ``search``; no hit is returned."""
        descriptor = search.aggregation_descriptor(aggregation, timeout=timeout)
        return await self._executor.execute(descriptor, session=session)

    async def delete_by_query(
        self,
        search: Search,
        session: AuthenticatedSession | None = None,
    ) -> Any:
        """Delete every document matched by ``search``.

        Returns:
            The deletion report (``deleted``, ``failures``, ...)
        """
        response = await self._executor.execute(search.delete_by_query_descriptor(), session=session)
        if isinstance(response, Mapping):
            logger.info(
                "delete_by_query_complete",
                extra={"index": search.index_name, "deleted": response.get("deleted")},
            )
        return response

    def delete_doc(
        self,
        index: str,
        doc_type: str | None,
        doc_id: str,
        fail_on_error: bool = False,
        session: AuthenticatedSession | None = None,
    ) -> AsyncIterator[str]:
        """Delete one document; see ``BulkExecutor.delete_one``."""
        return self._bulk.delete_one(
            index, doc_type, doc_id, fail_on_error=fail_on_error, session=session
        )

    def bulk_delete(
        self,
        ids: Iterable[str],
        index: str,
        doc_type: str | None = None,
        fail_on_error: bool = True,
        session: AuthenticatedSession | None = None,
    ) -> AsyncIterator[BulkOutcome]:
        """Delete many documents in one call; see ``BulkExecutor.bulk_delete``."""
        return self._bulk.bulk_delete(
            ids, index, doc_type=doc_type, fail_on_error=fail_on_error, session=session
        )

    async def close(self) -> None:
        await self._executor.close()

    async def __aenter__(self) -> ElasticsearchClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
