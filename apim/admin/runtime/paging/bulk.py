"""Bulk batch executor.

Aggregates N per-item operations into one newline-delimited request and
fans the single multi-status response back out into N ordered outcomes.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ...core.descriptor import RequestDescriptor, build_path
from ...core.exceptions import ResponseFormatError, TransportError
from ...core.session import AuthenticatedSession
from ..rest.executor import Executor
from .telemetry import log_bulk_complete

logger = logging.getLogger(__name__)

BULK_CONTENT_TYPE = "application/x-ndjson"


@dataclass(frozen=True)
class BulkOutcome:
    """Result of one operation of a bulk request."""

    id: str
    status: int | None
    result: str | None = None
    error: Any = None

    @property
    def succeeded(self) -> bool:
        return self.status is not None and self.status < 300

    @classmethod
    def from_record(cls, submitted_id: str, record: Mapping[str, Any]) -> BulkOutcome:
        return cls(
            id=str(record.get("_id", submitted_id)),
            status=record.get("status"),
            result=record.get("result"),
            error=record.get("error"),
        )


def build_bulk_delete(
    ids: Iterable[str],
    index: str,
    doc_type: str | None = None,
) -> RequestDescriptor:
    """Build one ``POST {index}/_bulk`` request deleting every id.

    Each id becomes one ``{"delete": {...}}`` line of the NDJSON body.
    """
    lines = []
    for doc_id in ids:
        action = {"_type": doc_type, "_id": doc_id} if doc_type else {"_id": doc_id}
        lines.append(json.dumps({"delete": action}, separators=(",", ":")) + "\n")
    return RequestDescriptor(
        method="POST",
        path=f"{index}/_bulk",
        data="".join(lines),
        headers={"content-type": BULK_CONTENT_TYPE},
    )


def _delete_record(item: Any) -> Mapping[str, Any]:
    record = item.get("delete", {}) if isinstance(item, Mapping) else None
    if not isinstance(record, Mapping):
        raise ResponseFormatError(f"Malformed bulk response item: {item!r}")
    return record


class BulkExecutor:
    """Runs bulk and single-item deletions over one executor.

    ``fail_on_error`` decides whether an upstream TransportError propagates
    or is suppressed into an empty result. Single-item deletion defaults to
    lenient, bulk deletion to strict.
    """

    def __init__(self, executor: Executor) -> None:
        self._executor = executor

    async def bulk_delete(
        self,
        ids: Iterable[str],
        index: str,
        doc_type: str | None = None,
        fail_on_error: bool = True,
        session: AuthenticatedSession | None = None,
    ) -> AsyncIterator[BulkOutcome]:
        """Delete every id with one HTTP call; yield outcomes in submission order.

        An empty id list issues no request.

        Raises:
            TransportError: If the call fails and ``fail_on_error`` is set
            ResponseFormatError: If the response does not hold one item per id
        """
        submitted = [str(doc_id) for doc_id in ids]
        if not submitted:
            return

        descriptor = build_bulk_delete(submitted, index, doc_type)
        try:
            response = await self._executor.execute(descriptor, session=session)
        except TransportError as e:
            if fail_on_error:
                raise
            logger.warning(
                "bulk_error_suppressed",
                extra={"path": descriptor.path, "submitted": len(submitted), "error": str(e)},
            )
            return

        items = response.get("items") if isinstance(response, Mapping) else None
        if not isinstance(items, list):
            raise ResponseFormatError("Bulk response has no 'items' list")
        if len(items) != len(submitted):
            raise ResponseFormatError(
                f"Bulk response holds {len(items)} items for {len(submitted)} operations"
            )

        outcomes = [
            BulkOutcome.from_record(doc_id, _delete_record(item))
            for doc_id, item in zip(submitted, items)
        ]
        log_bulk_complete(
            path=descriptor.path,
            submitted=len(submitted),
            failed=sum(1 for outcome in outcomes if not outcome.succeeded),
        )
        for outcome in outcomes:
            yield outcome

    async def delete_one(
        self,
        index: str,
        doc_type: str | None,
        doc_id: str,
        fail_on_error: bool = False,
        session: AuthenticatedSession | None = None,
    ) -> AsyncIterator[str]:
        """Delete one document; yield its id once deleted.

        With ``fail_on_error=False`` a failed deletion (e.g. HTTP 404) yields
        nothing instead of raising.
        """
        path = build_path(
            "{index}/{doc_type}/{doc_id}",
            index=index,
            doc_type=doc_type or "_doc",
            doc_id=doc_id,
        )
        descriptor = RequestDescriptor(method="DELETE", path=path)
        try:
            response = await self._executor.execute(descriptor, session=session)
        except TransportError as e:
            if fail_on_error:
                raise
            logger.warning(
                "delete_error_suppressed",
                extra={"path": descriptor.path, "status_code": e.status_code},
            )
            return
        yield response.get("_id", doc_id) if isinstance(response, Mapping) else doc_id
