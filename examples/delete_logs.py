#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from apim.admin import ElasticsearchClient, ElasticsearchSettings, SearchBuilder


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Delete the request logs of an API")
    p.add_argument("api_id")
    p.add_argument("--from", dest="from_", default="now-1M", help="Time range lower bound")
    p.add_argument("--to", default="now", help="Time range upper bound")
    p.add_argument("--batch-size", type=int, default=500, help="Documents deleted per bulk request")
    p.add_argument("--dry-run", action="store_true", help="Only list the logs to delete")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    search = SearchBuilder.for_api_logs(args.api_id, from_=args.from_, to=args.to).build()

    async with ElasticsearchClient(ElasticsearchSettings()) as es:
        # every id is collected before the first deletion
        batches: dict[str, list[str]] = {}
        async for paged in es.search_hits(search, page_size=args.batch_size):
            batches.setdefault(paged.hit["_index"], []).append(paged.hit["_id"])

        total = sum(len(ids) for ids in batches.values())
        print(f"{total} logs to delete in {len(batches)} indexes")
        if args.dry_run:
            return

        deleted = failed = 0
        for index, ids in batches.items():
            for start in range(0, len(ids), args.batch_size):
                chunk = ids[start : start + args.batch_size]
                async for outcome in es.bulk_delete(chunk, index, doc_type="log", fail_on_error=False):
                    if outcome.succeeded:
                        deleted += 1
                    else:
                        failed += 1
        print(f"{deleted} logs deleted, {failed} failures")


if __name__ == "__main__":
    asyncio.run(main())
