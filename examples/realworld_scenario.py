"""End-to-end scenario demonstrating the blocking and async client APIs."""

from __future__ import annotations

import asyncio
import os

from arango_client import (
    AsyncConnection,
    AuthError,
    Connection,
    ConnectionOptions,
    CursorError,
    QueryError,
    TransportError,
)

DATABASE = os.getenv("ARANGO_DEMO_DATABASE", "_system")


def log_section(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def blocking_demo(options: ConnectionOptions) -> None:
    log_section("Blocking connection")
    with Connection.from_options(options) as conn:
        print(f"Server: {conn.server_version()}")
        db = conn.db(DATABASE)
        print(f"Database: {db.info()}")

        with db.execute_query("FOR i IN 1..@n RETURN i * i", {"n": 25}, batch_size=10) as cursor:
            while (batch := cursor.next_batch()) is not None:
                print(f"  batch of {len(batch)}: {batch}")

        # Close early: the server-side cursor is released with a DELETE
        cursor = db.execute_query("FOR i IN 1..1000 RETURN i", batch_size=5)
        print(f"  first document: {next(iter(cursor))}")
        cursor.close()
        print(f"  cursor state after close: {cursor.state.value}")

        try:
            db.execute_query("RETRUN 1")
        except QueryError as exc:
            print(f"  query rejected: {exc}")

        result = db.aql_safe("FOR d IN no_such_collection RETURN d")
        print(f"  safe call ok={result.ok} error={result.error}")


async def async_demo(options: ConnectionOptions) -> None:
    log_section("Async connection")
    async with await AsyncConnection.from_options(options) as conn:
        db = conn.db(DATABASE)
        cursor = await db.execute_query("FOR i IN 1..12 RETURN {n: i}", batch_size=4)
        async for document in cursor:
            print(f"  {document}")
        print(f"  fetched {cursor.batches_fetched} batches")


def main() -> None:
    options = ConnectionOptions.from_env()
    try:
        blocking_demo(options)
        asyncio.run(async_demo(options))
    except AuthError as exc:
        print(f"Authentication failed: {exc}")
    except (TransportError, CursorError) as exc:
        print(f"Cannot talk to {options.base_url}: {exc}")


if __name__ == "__main__":
    main()
