#!/usr/bin/env python3
"""
Quick start example.

Authenticates, lists accounts and fetches a quote snapshot. The refresh
token may rotate; the current one is printed so it can be persisted.

Usage:
    export CLIENT_ID="your-client-id"
    export CLIENT_SECRET="your-client-secret"
    export REFRESH_TOKEN="your-refresh-token"
    export ENVIRONMENT="Simulation"
    python examples/quick_start.py
"""

import asyncio

from tradestation_api import TradeStationClient, TradeStationError


async def main() -> None:
    """Run quick start example."""
    async with TradeStationClient() as client:
        try:
            await client.authenticate()

            accounts = await client.brokerage.get_accounts()
            for account in accounts.get("Accounts", []):
                print(f"{account['AccountID']}: {account.get('AccountType')}")

            quotes = await client.market_data.get_quote_snapshots(["MSFT", "AAPL"])
            for quote in quotes.get("Quotes", []):
                print(f"{quote['Symbol']}: bid {quote.get('Bid')} ask {quote.get('Ask')}")

        except TradeStationError as e:
            print(f"Request failed: {e}")

        # Rotated refresh tokens must be stored by the caller
        print(f"Current refresh token: {client.get_refresh_token()}")


if __name__ == "__main__":
    asyncio.run(main())
