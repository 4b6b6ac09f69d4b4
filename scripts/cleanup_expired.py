#!/usr/bin/env python3
"""Delete expired competitions, jobs and scholarships once, then exit.

Meant for manual runs or an external scheduler (cron, a CI job); the API
exposes the same sweep at ``POST /maintenance/cleanup``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any

from listings_api.core.clock import Clock, SystemClock
from listings_api.core.config import get_settings
from listings_api.services.repository import PostgresRepository

logger = logging.getLogger("cleanup_expired")


async def run_cleanup(repository: Any, clock: Clock) -> dict[str, int]:
    try:
        return await repository.cleanup_expired(now=clock.now_utc())
    finally:
        await repository.close()


def render_report(result: dict[str, int], *, as_json: bool) -> str:
    if as_json:
        return json.dumps(result, sort_keys=True)
    lines = [f"{key}: {value}" for key, value in result.items() if key != "total_deleted"]
    lines.append(f"total_deleted: {result['total_deleted']}")
    return "\n".join(lines)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the expired-listing cleanup sweep once.")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Postgres DSN (defaults to OB_DATABASE_URL)",
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    settings = get_settings()
    repository = PostgresRepository(
        database_url=args.database_url or settings.database_url,
        min_pool_size=1,
        max_pool_size=1,
        command_timeout_seconds=settings.database_command_timeout_seconds,
    )
    result = asyncio.run(run_cleanup(repository, SystemClock()))
    print(render_report(result, as_json=args.json))


if __name__ == "__main__":
    main()
