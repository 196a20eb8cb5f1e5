#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import getpass
import logging

from apim.admin import ManagementApiClient, ManagementApiSettings


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="List LDAP users known by the Management API")
    p.add_argument("username", help="Management API user to log in with")
    p.add_argument("--page-size", type=int, default=100)
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    password = getpass.getpass(f"Password for {args.username}: ")

    async with ManagementApiClient(ManagementApiSettings()) as apim:
        session = await apim.login(args.username, password)
        try:
            print(f"{'Id':38} | {'Display name':30} | Email")
            print("-" * 90)
            async for user in apim.list_ldap_users(page_size=args.page_size, session=session):
                print(f"{user['id']:38} | {user.get('displayName', ''):30} | {user.get('email', '')}")
        finally:
            await apim.logout(session)


if __name__ == "__main__":
    asyncio.run(main())
