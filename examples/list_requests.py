#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from apim.admin import ElasticsearchClient, ElasticsearchSettings, SearchBuilder


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="List requests of an API from Elasticsearch")
    p.add_argument("api_id")
    p.add_argument("--from", dest="from_", default="now-1d", help="Time range lower bound")
    p.add_argument("--to", default="now", help="Time range upper bound")
    p.add_argument("--index", default="gravitee-request-*")
    p.add_argument("--page-size", type=int, default=100)
    p.add_argument("--status", type=int, help="Only requests answered with this HTTP status")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    builder = SearchBuilder.for_api_requests(args.api_id, index=args.index, from_=args.from_, to=args.to)
    if args.status is not None:
        builder.term("status", args.status)
    search = builder.build()

    async with ElasticsearchClient(ElasticsearchSettings()) as es:
        count = 0
        async for paged in es.search_hits(search, page_size=args.page_size):
            source = paged.hit.get("_source", {})
            if count == 0:
                print(f"{paged.meta.total} requests found")
                print(f"{'Timestamp':30} | {'Status':>6} | {'Response time (ms)':>18} | Path")
                print("-" * 80)
            print(
                f"{str(source.get('@timestamp')):30} | {str(source.get('status')):>6} | "
                f"{str(source.get('response-time')):>18} | {source.get('uri', '')}"
            )
            count += 1
        print(f"{count} requests listed")


if __name__ == "__main__":
    asyncio.run(main())
