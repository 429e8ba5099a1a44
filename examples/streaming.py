#!/usr/bin/env python3
"""
Streaming example.

Subscribes to quotes twice (the second subscription joins the first
connection) and to order updates, then closes everything after a while.

Usage:
    export CLIENT_ID="your-client-id"
    export CLIENT_SECRET="your-client-secret"
    export REFRESH_TOKEN="your-refresh-token"
    export ENVIRONMENT="Simulation"
    export ACCOUNT_ID="your-account-id"
    python examples/streaming.py
"""

import asyncio
import os

from tradestation_api import StreamTransportError, TradeStationClient


async def print_quotes(stream) -> None:
    try:
        async for record in stream:
            if "Heartbeat" in record:
                continue
            if "Error" in record:
                print(f"[quote error] {record['Error']}: {record.get('Message')}")
                continue
            print(f"{record['Symbol']}: last {record.get('Last')}")
    except StreamTransportError as e:
        print(f"[quote stream failed] {e.message}")


async def main() -> None:
    """Run streaming example."""
    async with TradeStationClient() as client:
        quotes = await client.market_data.stream_quotes(["MSFT", "AAPL"])
        same = await client.market_data.stream_quotes(["MSFT", "AAPL"])
        print(f"Shared connection: {quotes is same}")

        account_id = os.getenv("ACCOUNT_ID")
        if account_id:
            orders = await client.brokerage.stream_orders(account_id)
            orders.on("data", lambda record: print(f"[order] {record}"))
            orders.on("error", lambda error: print(f"[order stream failed] {error.message}"))

        print(f"Active streams: {client.get_active_streams()}")

        consumer = asyncio.create_task(print_quotes(quotes))
        await asyncio.sleep(30)

        client.close_all_streams()
        await consumer


if __name__ == "__main__":
    asyncio.run(main())
