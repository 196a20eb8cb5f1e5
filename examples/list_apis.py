#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import getpass
import logging

from apim.admin import ApiFilters, ManagementApiClient, ManagementApiSettings


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="List APIs with their health transitions")
    p.add_argument("username", help="Management API user to log in with")
    p.add_argument("--name", help="Regex on the API name (case-insensitive)")
    p.add_argument("--context-path", help="Regex on the context path (case-insensitive)")
    p.add_argument("--owner", help="Regex on the primary owner's name or email")
    p.add_argument("--visibility", action="append", choices=["public", "private"])
    p.add_argument("--health", action="store_true", help="Also print health transitions")
    p.add_argument("--delay", type=float, default=0.05, help="Seconds between two APIs")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    password = getpass.getpass(f"Password for {args.username}: ")
    filters = ApiFilters(
        by_name=args.name,
        by_context_path=args.context_path,
        by_primary_owner=args.owner,
        by_portal_visibility=tuple(args.visibility or ()),
    )

    async with ManagementApiClient(ManagementApiSettings()) as apim:
        session = await apim.login(args.username, password)
        try:
            async for api in apim.list_apis(filters, delay=args.delay, session=session):
                print(f"{api['id']} | {api['name']} | {api.get('context_path', '')}")
                if not args.health:
                    continue
                async for log in apim.list_api_health_logs(api["id"], session=session):
                    print(f"    {log.get('timestamp')} {log['state']:20} {log['gateway']}")
        finally:
            await apim.logout(session)


if __name__ == "__main__":
    asyncio.run(main())
