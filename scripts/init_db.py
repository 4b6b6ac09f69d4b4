#!/usr/bin/env python3
"""Create the competitions, jobs and scholarships tables if they are missing."""

from __future__ import annotations

import argparse
import asyncio
import logging

from listings_api.core.config import get_settings
from listings_api.services.repository import PostgresRepository


async def init_schema(database_url: str | None) -> None:
    repository = PostgresRepository(database_url=database_url, min_pool_size=1, max_pool_size=1)
    try:
        await repository.ensure_schema()
    finally:
        await repository.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create listing tables and deadline indexes.")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Postgres DSN (defaults to OB_DATABASE_URL)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    asyncio.run(init_schema(args.database_url or get_settings().database_url))


if __name__ == "__main__":
    main()
