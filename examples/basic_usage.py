"""End-to-end scenario demonstrating the deferred exchange API."""

from __future__ import annotations

import asyncio
import os

from ryst_client import RequestError, RequestOptions, RystClient

BASE_URL = os.getenv("RYST_DEMO_URL", "https://httpbin.org")


def log_section(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


async def main() -> None:
    client = RystClient(default_headers={"User-Agent": "ryst-demo"}, timeout=10.0, log_level="debug")

    log_section("GET with several observers")
    exchange = client.get(f"{BASE_URL}/json", on_response=lambda head: print("headers received:", head.status))
    titles = exchange.on_success(lambda response: response.json()["slideshow"]["title"])
    exchange.on_settled(lambda: print("settled"))
    response = await exchange.settle()
    print("status:", response.status, "title:", await titles)

    log_section("POST a JSON body")
    created = await client.post(f"{BASE_URL}/post", RequestOptions(body={"name": "ryst"})).settle()
    print("echoed:", created.json()["json"])

    log_section("Timeout")
    slow = client.get(f"{BASE_URL}/delay/5", RequestOptions(timeout=1.0))
    try:
        await slow.settle()
    except RequestError as exc:
        print("failed:", exc)


if __name__ == "__main__":
    asyncio.run(main())
