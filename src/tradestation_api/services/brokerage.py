"""
Brokerage endpoints: accounts, balances, positions and orders.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

from tradestation_api.errors import ValidationError
from tradestation_api.services.base import STREAM_V3, BaseService, compact, join_ids

if TYPE_CHECKING:
    from tradestation_api.streaming.stream import LogicalStream

MAX_ACCOUNTS = 25
MAX_ORDER_IDS = 50
MAX_HISTORY_DAYS = 90
MAX_PAGE_SIZE = 600


def _check_page_size(page_size: int | None) -> None:
    if page_size is not None and not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError(
            f"Page size must be between 1 and {MAX_PAGE_SIZE}",
            field="page_size",
            actual=page_size,
        )


def _check_since(since: str, today: date | None = None) -> None:
    try:
        since_date = datetime.fromisoformat(since).date()
    except ValueError as e:
        raise ValidationError(
            f"Invalid date: {since}", field="since", expected="YYYY-MM-DD", actual=since
        ) from e
    today = today or date.today()
    if since_date < today - timedelta(days=MAX_HISTORY_DAYS):
        raise ValidationError(
            f"Date range cannot exceed {MAX_HISTORY_DAYS} days", field="since", actual=since
        )


class BrokerageService(BaseService):
    """Account level reads and account streams."""

    async def get_accounts(self) -> Any:
        """List the brokerage accounts available to the current user."""
        return await self._transport.get("/v3/brokerage/accounts")

    async def get_balances(self, account_ids: str | list[str]) -> Any:
        ids = join_ids(account_ids, field="account_ids", limit=MAX_ACCOUNTS)
        return await self._transport.get(f"/v3/brokerage/accounts/{ids}/balances")

    async def get_balances_bod(self, account_ids: str | list[str]) -> Any:
        """Beginning of day balances."""
        ids = join_ids(account_ids, field="account_ids", limit=MAX_ACCOUNTS)
        return await self._transport.get(f"/v3/brokerage/accounts/{ids}/bodbalances")

    async def get_positions(self, account_ids: str | list[str], symbol: str | None = None) -> Any:
        """Fetch positions, optionally filtered by symbol.

        Args:
            account_ids: One to 25 account IDs
            symbol: Comma separated symbols; ``*`` works as a wildcard
                (``"MSFT,MSFT *"`` is MSFT and all of its options)
        """
        ids = join_ids(account_ids, field="account_ids", limit=MAX_ACCOUNTS)
        return await self._transport.get(
            f"/v3/brokerage/accounts/{ids}/positions", params=compact({"symbol": symbol})
        )

    async def get_orders(
        self,
        account_ids: str | list[str],
        *,
        page_size: int | None = None,
        next_token: str | None = None,
    ) -> Any:
        """Fetch today's orders and open orders. Paginate with ``NextToken``."""
        ids = join_ids(account_ids, field="account_ids", limit=MAX_ACCOUNTS)
        _check_page_size(page_size)
        return await self._transport.get(
            f"/v3/brokerage/accounts/{ids}/orders",
            params=compact({"pageSize": page_size, "nextToken": next_token}),
        )

    async def get_orders_by_id(
        self, account_ids: str | list[str], order_ids: str | list[str]
    ) -> Any:
        ids = join_ids(account_ids, field="account_ids", limit=MAX_ACCOUNTS)
        orders = join_ids(order_ids, field="order_ids", limit=MAX_ORDER_IDS)
        return await self._transport.get(f"/v3/brokerage/accounts/{ids}/orders/{orders}")

    async def get_historical_orders(
        self,
        account_ids: str | list[str],
        since: str,
        *,
        page_size: int | None = None,
        next_token: str | None = None,
    ) -> Any:
        """Fetch orders closed since ``since`` (at most 90 days back).

        Args:
            account_ids: One to 25 account IDs
            since: ISO date, e.g. ``"2024-01-01"``
            page_size: 1 to 600 orders per page
            next_token: Token from the previous page

        Raises:
            ValidationError: On too many accounts, a range over 90 days
                or a page size out of range
        """
        ids = join_ids(account_ids, field="account_ids", limit=MAX_ACCOUNTS)
        _check_since(since)
        _check_page_size(page_size)
        return await self._transport.get(
            f"/v3/brokerage/accounts/{ids}/historicalorders",
            params=compact({"since": since, "pageSize": page_size, "nextToken": next_token}),
        )

    async def stream_orders(
        self, account_ids: str | list[str], order_ids: str | list[str] | None = None
    ) -> LogicalStream:
        """Stream order updates, optionally limited to specific orders.

        Records are orders, ``{"StreamStatus": ...}``, heartbeats or errors.
        """
        ids = join_ids(account_ids, field="account_ids", limit=MAX_ACCOUNTS)
        endpoint = f"/v3/brokerage/stream/accounts/{ids}/orders"
        if order_ids is not None:
            endpoint += "/" + join_ids(order_ids, field="order_ids", limit=MAX_ORDER_IDS)
        return await self._streams.create_stream(endpoint, headers=STREAM_V3)

    async def stream_positions(
        self, account_ids: str | list[str], *, changes: bool | None = None
    ) -> LogicalStream:
        """Stream positions; with ``changes=True`` only deltas are sent after the snapshot."""
        ids = join_ids(account_ids, field="account_ids", limit=MAX_ACCOUNTS)
        params = compact({"changes": None if changes is None else str(changes).lower()})
        return await self._streams.create_stream(
            f"/v3/brokerage/stream/accounts/{ids}/positions", params, headers=STREAM_V3
        )


__all__ = ["BrokerageService", "MAX_ACCOUNTS"]
