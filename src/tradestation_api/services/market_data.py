"""
Market data endpoints: quotes, bars and symbol details.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tradestation_api.errors import ValidationError
from tradestation_api.services.base import STREAM_V2, BaseService, compact, join_ids

if TYPE_CHECKING:
    from tradestation_api.streaming.stream import LogicalStream

MAX_QUOTE_SYMBOLS = 100
MAX_SYMBOL_DETAILS = 50
MAX_BARSBACK = 57600

_BAR_UNITS = ("Minute", "Daily", "Weekly", "Monthly")


def _bar_params(
    interval: int | None,
    unit: str | None,
    barsback: int | None,
    session_template: str | None,
    **extra: Any,
) -> dict[str, Any]:
    if unit is not None and unit not in _BAR_UNITS:
        raise ValidationError(
            f"Invalid unit: {unit}", field="unit", expected=list(_BAR_UNITS), actual=unit
        )
    if interval is not None:
        if interval < 1:
            raise ValidationError("Interval must be positive", field="interval", actual=interval)
        if unit not in (None, "Minute") and interval != 1:
            raise ValidationError(
                "Interval must be 1 for non-minute bars", field="interval", actual=interval
            )
        if unit in (None, "Minute") and interval > 1440:
            raise ValidationError(
                "Maximum interval for minute bars is 1440", field="interval", actual=interval
            )
    if barsback is not None and not 1 <= barsback <= MAX_BARSBACK:
        raise ValidationError(
            f"barsback must be between 1 and {MAX_BARSBACK}",
            field="barsback",
            actual=barsback,
        )
    return compact(
        {
            "interval": interval,
            "unit": unit,
            "barsback": barsback,
            "sessiontemplate": session_template,
            **extra,
        }
    )


class MarketDataService(BaseService):
    """Quotes, bar charts and symbol metadata."""

    async def get_quote_snapshots(self, symbols: str | list[str]) -> Any:
        """Fetch a full snapshot of the latest quote for up to 100 symbols."""
        path = join_ids(symbols, field="symbols", limit=MAX_QUOTE_SYMBOLS)
        return await self._transport.get(f"/v3/marketdata/quotes/{path}")

    async def get_bar_history(
        self,
        symbol: str,
        *,
        interval: int | None = None,
        unit: str | None = None,
        barsback: int | None = None,
        first_date: str | None = None,
        last_date: str | None = None,
        session_template: str | None = None,
    ) -> Any:
        """Fetch historical bars for a symbol.

        ``barsback`` and ``first_date`` are mutually exclusive.
        """
        if barsback is not None and first_date is not None:
            raise ValidationError(
                "barsback and first_date are mutually exclusive", field="first_date"
            )
        params = _bar_params(
            interval,
            unit,
            barsback,
            session_template,
            firstdate=first_date,
            lastdate=last_date,
        )
        return await self._transport.get(f"/v3/marketdata/barcharts/{symbol}", params=params)

    async def get_symbol_details(self, symbols: str | list[str]) -> Any:
        path = join_ids(symbols, field="symbols", limit=MAX_SYMBOL_DETAILS)
        return await self._transport.get(f"/v3/marketdata/symbols/{path}")

    async def get_crypto_symbol_names(self) -> Any:
        return await self._transport.get("/v3/marketdata/symbollists/cryptopairs/symbolnames")

    async def stream_quotes(self, symbols: str | list[str]) -> LogicalStream:
        """Stream quote changes for up to 100 symbols.

        Records are quotes, heartbeats (``{"Heartbeat": n}``) or errors
        (``{"Error": ...}``); discriminate by shape.
        """
        path = join_ids(symbols, field="symbols", limit=MAX_QUOTE_SYMBOLS)
        return await self._streams.create_stream(
            f"/v3/marketdata/stream/quotes/{path}", headers=STREAM_V2
        )

    async def stream_bars(
        self,
        symbol: str,
        *,
        interval: int | None = None,
        unit: str | None = None,
        barsback: int | None = None,
        session_template: str | None = None,
    ) -> LogicalStream:
        """Stream historical then live bars for one symbol."""
        params = _bar_params(interval, unit, barsback, session_template)
        return await self._streams.create_stream(
            f"/v3/marketdata/stream/barcharts/{symbol}", params, headers=STREAM_V2
        )


__all__ = ["MAX_BARSBACK", "MAX_QUOTE_SYMBOLS", "MarketDataService"]
