"""Example usage of the pool and limiter."""
# mypy: ignore-errors

import asyncio
import time

from async_pool import AbortError, Pool, limit, p_limit


class Connection:
    """Stand-in for an expensive client."""

    def __init__(self, conn_id: int):
        self.conn_id = conn_id
        self.queries = 0

    async def query(self, sql: str) -> str:
        self.queries += 1
        await asyncio.sleep(0.02)
        return f"conn {self.conn_id}: {sql}"


async def example_pool()->None:
    """Example: Borrowing connections from a pool."""
    print("\n=== Pool Example ===")
    print("Three connections, created on demand")

    pool = Pool(
        {
            "create": lambda i: Connection(i) if i < 3 else None,
            "reset": lambda conn: print(f"  Resetting conn {conn.conn_id}"),
        }
    )

    async def run(sql: str)->str:
        async with pool.lease() as conn:
            return await conn.query(sql)

    results = await asyncio.gather(*[run(f"SELECT {i}") for i in range(6)])
    for line in results:
        print(f"  {line}")
    print(f"Pool: {pool!r}")


async def example_limiter()->None:
    """Example: Throttling reuse of each connection."""
    print("\n=== Limiter Example ===")
    print("Two connections, each busy for at least 0.1s per query")

    limiter = Pool.from_items([Connection(0), Connection(1)]).limiter(
        min_duration=0.1
    )

    async def query(conn: Connection, sql: str)->str:
        return await conn.query(sql)

    start = time.time()
    await asyncio.gather(*[limiter(query, f"SELECT {i}") for i in range(6)])
    elapsed = time.time() - start
    print(f"Completed 6 queries in {elapsed:.2f} seconds")


async def example_abort()->None:
    """Example: Giving up on queued work."""
    print("\n=== Abort Example ===")

    limiter = p_limit(1)

    async def slow(conn, i: int)->int:
        await asyncio.sleep(0.05)
        return i

    tasks = [asyncio.create_task(limiter(slow, i)) for i in range(4)]
    await asyncio.sleep(0.01)
    print(f"  {limiter.pending_count} calls waiting, aborting them")
    limiter.abort()

    for outcome in await asyncio.gather(*tasks, return_exceptions=True):
        if isinstance(outcome, AbortError):
            print(f"  Aborted: {outcome}")
        else:
            print(f"  Finished: {outcome}")


async def example_limit()->None:
    """Example: Wrapping a function once."""
    print("\n=== limit() Example ===")

    async def fetch(conn, url: str)->str:
        await asyncio.sleep(0.01)
        return f"fetched {url}"

    limited_fetch = limit(fetch, 2)
    pages = await asyncio.gather(*[limited_fetch(f"/page/{i}") for i in range(4)])
    print(f"  {pages}")


async def main():
    """Run all examples."""
    print("Pool Examples")
    print("=" * 50)

    await example_pool()
    await example_limiter()
    await example_abort()
    await example_limit()

    print("\n" + "=" * 50)
    print("All examples completed!")


if __name__ == "__main__":
    asyncio.run(main())
