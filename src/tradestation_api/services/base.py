"""
Shared plumbing for endpoint services.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tradestation_api.errors import ValidationError

if TYPE_CHECKING:
    from tradestation_api.streaming.manager import StreamManager
    from tradestation_api.transport.http import HttpTransport

STREAM_V2 = {"Accept": "application/vnd.tradestation.streams.v2+json"}
STREAM_V3 = {"Accept": "application/vnd.tradestation.streams.v3+json"}


class BaseService:
    """Base for a group of endpoint wrappers."""

    def __init__(self, transport: HttpTransport, streams: StreamManager) -> None:
        self._transport = transport
        self._streams = streams


def join_ids(values: str | list[str], *, field: str, limit: int | None = None) -> str:
    """Join symbols or IDs into the comma separated path segment the API expects.

    Raises:
        ValidationError: If empty or longer than ``limit``
    """
    items = [values] if isinstance(values, str) else list(values)
    items = [v.strip() for item in items for v in item.split(",") if v.strip()]
    if not items:
        raise ValidationError(f"At least one value is required for {field}", field=field)
    if limit is not None and len(items) > limit:
        raise ValidationError(
            f"Maximum of {limit} values allowed for {field}",
            field=field,
            expected=limit,
            actual=len(items),
        )
    return ",".join(items)


def compact(params: dict[str, Any]) -> dict[str, Any]:
    """Drop unset query parameters."""
    return {k: v for k, v in params.items() if v is not None}
