"""Tests for endpoint services."""

from datetime import date, timedelta

import pytest

from tradestation_api.errors import ValidationError
from tradestation_api.services import (
    BrokerageService,
    MarketDataService,
    OrderExecutionService,
)

V2 = "application/vnd.tradestation.streams.v2+json"
V3 = "application/vnd.tradestation.streams.v3+json"


class RecordingTransport:
    """Transport stand-in recording each call."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def get(self, path, *, params=None, headers=None):
        self.calls.append(("GET", path, params))
        return {"ok": True}

    async def post(self, path, json=None, *, headers=None):
        self.calls.append(("POST", path, json))
        return {"ok": True}

    async def put(self, path, json=None, *, headers=None):
        self.calls.append(("PUT", path, json))
        return {"ok": True}

    async def delete(self, path, *, headers=None):
        self.calls.append(("DELETE", path, None))
        return {"ok": True}


class RecordingStreams:
    """Stream manager stand-in recording each subscription."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def create_stream(self, endpoint, params=None, *, headers=None):
        self.calls.append((endpoint, params, headers))
        return object()


@pytest.fixture
def deps() -> tuple[RecordingTransport, RecordingStreams]:
    return RecordingTransport(), RecordingStreams()


ORDER = {
    "AccountID": "123456789",
    "Symbol": "MSFT",
    "Quantity": "10",
    "OrderType": "Market",
    "TradeAction": "BUY",
    "TimeInForce": {"Duration": "DAY"},
    "Route": "Intelligent",
}


class TestMarketDataService:
    """Tests for market data wrappers."""

    @pytest.mark.asyncio
    async def test_quote_snapshots(self, deps) -> None:
        """Test symbols are joined into the path."""
        transport, streams = deps
        service = MarketDataService(transport, streams)
        assert await service.get_quote_snapshots(["MSFT", "AAPL"]) == {"ok": True}
        assert transport.calls == [("GET", "/v3/marketdata/quotes/MSFT,AAPL", None)]

    @pytest.mark.asyncio
    async def test_quote_snapshot_limit(self, deps) -> None:
        """Test more than 100 symbols is rejected before any request."""
        transport, streams = deps
        service = MarketDataService(transport, streams)
        symbols = [f"S{i}" for i in range(101)]
        with pytest.raises(ValidationError, match="Maximum of 100"):
            await service.get_quote_snapshots(symbols)
        with pytest.raises(ValidationError):
            await service.get_quote_snapshots("")
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_bar_history_params(self, deps) -> None:
        """Test bar parameters map to query names."""
        transport, streams = deps
        service = MarketDataService(transport, streams)
        await service.get_bar_history("MSFT", interval=5, unit="Minute", barsback=100)
        assert transport.calls == [
            (
                "GET",
                "/v3/marketdata/barcharts/MSFT",
                {"interval": 5, "unit": "Minute", "barsback": 100},
            )
        ]

    @pytest.mark.asyncio
    async def test_bar_history_validation(self, deps) -> None:
        """Test bar limits."""
        transport, streams = deps
        service = MarketDataService(transport, streams)
        with pytest.raises(ValidationError, match="57600"):
            await service.get_bar_history("MSFT", barsback=57601)
        with pytest.raises(ValidationError, match="1440"):
            await service.get_bar_history("MSFT", interval=1441, unit="Minute")
        with pytest.raises(ValidationError, match="non-minute"):
            await service.get_bar_history("MSFT", interval=5, unit="Daily")
        with pytest.raises(ValidationError, match="mutually exclusive"):
            await service.get_bar_history("MSFT", barsback=10, first_date="2024-01-01")
        with pytest.raises(ValidationError, match="Invalid unit"):
            await service.get_bar_history("MSFT", unit="Hourly")
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_stream_quotes(self, deps) -> None:
        """Test quote streams use the v2 stream media type."""
        transport, streams = deps
        service = MarketDataService(transport, streams)
        await service.stream_quotes("MSFT,AAPL")
        assert streams.calls == [("/v3/marketdata/stream/quotes/MSFT,AAPL", None, {"Accept": V2})]

    @pytest.mark.asyncio
    async def test_stream_bars(self, deps) -> None:
        """Test bar streams pass their params."""
        transport, streams = deps
        service = MarketDataService(transport, streams)
        await service.stream_bars("MSFT", interval=1, unit="Minute")
        assert streams.calls == [
            ("/v3/marketdata/stream/barcharts/MSFT", {"interval": 1, "unit": "Minute"}, {"Accept": V2})
        ]


class TestBrokerageService:
    """Tests for brokerage wrappers."""

    @pytest.mark.asyncio
    async def test_accounts_and_balances(self, deps) -> None:
        """Test account endpoints."""
        transport, streams = deps
        service = BrokerageService(transport, streams)
        await service.get_accounts()
        await service.get_balances(["123", "456"])
        await service.get_positions("123", symbol="MSFT *")
        assert transport.calls == [
            ("GET", "/v3/brokerage/accounts", None),
            ("GET", "/v3/brokerage/accounts/123,456/balances", None),
            ("GET", "/v3/brokerage/accounts/123/positions", {"symbol": "MSFT *"}),
        ]

    @pytest.mark.asyncio
    async def test_account_limit(self, deps) -> None:
        """Test more than 25 accounts is rejected."""
        transport, streams = deps
        service = BrokerageService(transport, streams)
        with pytest.raises(ValidationError, match="Maximum of 25"):
            await service.get_balances([str(i) for i in range(26)])

    @pytest.mark.asyncio
    async def test_historical_orders(self, deps) -> None:
        """Test historical order range and page size checks."""
        transport, streams = deps
        service = BrokerageService(transport, streams)
        recent = (date.today() - timedelta(days=10)).isoformat()
        old = (date.today() - timedelta(days=120)).isoformat()

        await service.get_historical_orders("123", recent, page_size=100)
        assert transport.calls[-1] == (
            "GET",
            "/v3/brokerage/accounts/123/historicalorders",
            {"since": recent, "pageSize": 100},
        )
        with pytest.raises(ValidationError, match="90 days"):
            await service.get_historical_orders("123", old)
        with pytest.raises(ValidationError, match="Page size"):
            await service.get_historical_orders("123", recent, page_size=601)
        with pytest.raises(ValidationError, match="Invalid date"):
            await service.get_historical_orders("123", "yesterday")

    @pytest.mark.asyncio
    async def test_streams(self, deps) -> None:
        """Test account streams use the v3 stream media type."""
        transport, streams = deps
        service = BrokerageService(transport, streams)
        await service.stream_orders("123")
        await service.stream_orders("123", order_ids=["9", "10"])
        await service.stream_positions("123", changes=True)
        assert streams.calls == [
            ("/v3/brokerage/stream/accounts/123/orders", None, {"Accept": V3}),
            ("/v3/brokerage/stream/accounts/123/orders/9,10", None, {"Accept": V3}),
            ("/v3/brokerage/stream/accounts/123/positions", {"changes": "true"}, {"Accept": V3}),
        ]


class TestOrderExecutionService:
    """Tests for order execution wrappers."""

    @pytest.mark.asyncio
    async def test_place_replace_cancel(self, deps) -> None:
        """Test order lifecycle endpoints."""
        transport, streams = deps
        service = OrderExecutionService(transport, streams)
        await service.place_order(ORDER)
        await service.replace_order("42", {"Quantity": "5"})
        await service.cancel_order("42")
        assert transport.calls == [
            ("POST", "/v3/orderexecution/orders", ORDER),
            ("PUT", "/v3/orderexecution/orders/42", {"Quantity": "5"}),
            ("DELETE", "/v3/orderexecution/orders/42", None),
        ]

    @pytest.mark.asyncio
    async def test_order_validation(self, deps) -> None:
        """Test missing fields and empty IDs are rejected locally."""
        transport, streams = deps
        service = OrderExecutionService(transport, streams)
        with pytest.raises(ValidationError, match="TradeAction"):
            await service.place_order({k: v for k, v in ORDER.items() if k != "TradeAction"})
        with pytest.raises(ValidationError):
            await service.cancel_order(" ")
        with pytest.raises(ValidationError):
            await service.replace_order("42", {})
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_group_orders(self, deps) -> None:
        """Test order groups."""
        transport, streams = deps
        service = OrderExecutionService(transport, streams)
        group = {"Type": "OCO", "Orders": [ORDER, ORDER]}
        await service.confirm_group_order(group)
        await service.place_group_order(group)
        assert [c[1] for c in transport.calls] == [
            "/v3/orderexecution/ordergroupconfirm",
            "/v3/orderexecution/ordergroups",
        ]
        with pytest.raises(ValidationError, match="group type"):
            await service.place_group_order({"Type": "XYZ", "Orders": [ORDER]})

    @pytest.mark.asyncio
    async def test_reference_data(self, deps) -> None:
        """Test routes and activation triggers."""
        transport, streams = deps
        service = OrderExecutionService(transport, streams)
        await service.get_routes()
        await service.get_activation_triggers()
        assert [c[1] for c in transport.calls] == [
            "/v3/orderexecution/routes",
            "/v3/orderexecution/activationtriggers",
        ]
