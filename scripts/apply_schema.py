#!/usr/bin/env python3
"""Apply db/schema.sql to a Postgres database."""

from __future__ import annotations

import argparse
import asyncio
import os
from pathlib import Path

import asyncpg  # type: ignore[import-untyped]

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "db" / "schema.sql"


def load_schema(path: Path = SCHEMA_PATH) -> str:
    return path.read_text(encoding="utf-8")


async def apply_schema(database_url: str, *, schema_sql: str, reset: bool = False) -> None:
    conn = await asyncpg.connect(database_url)
    try:
        async with conn.transaction():
            if reset:
                await conn.execute("drop table if exists jobs, companies cascade")
            await conn.execute(schema_sql)
    finally:
        await conn.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the companies and jobs tables.")
    parser.add_argument(
        "--database-url",
        default=os.getenv("JOBLY_DATABASE_URL") or os.getenv("DATABASE_URL"),
        help="Postgres DSN (defaults to JOBLY_DATABASE_URL or DATABASE_URL)",
    )
    parser.add_argument("--reset", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()
    if not args.database_url:
        parser.error("--database-url or JOBLY_DATABASE_URL is required")

    asyncio.run(apply_schema(args.database_url, schema_sql=load_schema(), reset=args.reset))
    print(f"applied {SCHEMA_PATH.name}")


if __name__ == "__main__":
    main()
