"""
Order execution endpoints.

Order payloads are passed through as the API's own JSON shape
(``AccountID``, ``Symbol``, ``Quantity``, ``OrderType``, ``TradeAction``,
``TimeInForce``, ``Route``...). Only the fields every order needs are
checked locally; everything else is left to the server.
"""

from __future__ import annotations

from typing import Any

from tradestation_api.errors import ValidationError
from tradestation_api.services.base import BaseService

_REQUIRED_ORDER_FIELDS = ("AccountID", "Symbol", "Quantity", "OrderType", "TradeAction")
_GROUP_TYPES = ("BRK", "OCO", "NORMAL")


def _check_order(order: dict[str, Any], field: str = "order") -> None:
    missing = [name for name in _REQUIRED_ORDER_FIELDS if not order.get(name)]
    if missing:
        raise ValidationError(
            f"Missing required order fields: {', '.join(missing)}",
            field=field,
            expected=list(_REQUIRED_ORDER_FIELDS),
            actual=sorted(order),
        )


def _check_group(group: dict[str, Any]) -> None:
    group_type = group.get("Type")
    if group_type not in _GROUP_TYPES:
        raise ValidationError(
            f"Invalid order group type: {group_type}",
            field="Type",
            expected=list(_GROUP_TYPES),
            actual=group_type,
        )
    orders = group.get("Orders") or []
    if not orders:
        raise ValidationError("Order group must contain at least one order", field="Orders")
    for i, order in enumerate(orders):
        _check_order(order, field=f"Orders[{i}]")


def _check_order_id(order_id: str) -> str:
    order_id = str(order_id).strip()
    if not order_id:
        raise ValidationError("Order ID is required", field="order_id")
    return order_id


class OrderExecutionService(BaseService):
    """Placing, replacing and cancelling orders."""

    async def place_order(self, order: dict[str, Any]) -> Any:
        """Submit an order.

        Args:
            order: Order request, e.g.
                ``{"AccountID": "123456789", "Symbol": "MSFT", "Quantity": "10",
                "OrderType": "Market", "TradeAction": "BUY",
                "TimeInForce": {"Duration": "DAY"}, "Route": "Intelligent"}``

        Returns:
            Response with ``Orders`` and possibly ``Errors``

        Raises:
            ValidationError: If a required field is missing
            RemoteError: If the server rejects the order
        """
        _check_order(order)
        return await self._transport.post("/v3/orderexecution/orders", order)

    async def replace_order(self, order_id: str, changes: dict[str, Any]) -> Any:
        """Replace an open order with the given quantity, prices or type."""
        order_id = _check_order_id(order_id)
        if not changes:
            raise ValidationError("At least one field must be replaced", field="changes")
        return await self._transport.put(f"/v3/orderexecution/orders/{order_id}", changes)

    async def cancel_order(self, order_id: str) -> Any:
        order_id = _check_order_id(order_id)
        return await self._transport.delete(f"/v3/orderexecution/orders/{order_id}")

    async def confirm_order(self, order: dict[str, Any]) -> Any:
        """Estimate cost and commission of an order without placing it."""
        _check_order(order)
        return await self._transport.post("/v3/orderexecution/orderconfirm", order)

    async def place_group_order(self, group: dict[str, Any]) -> Any:
        """Submit a bracket (BRK), one-cancels-other (OCO) or NORMAL group."""
        _check_group(group)
        return await self._transport.post("/v3/orderexecution/ordergroups", group)

    async def confirm_group_order(self, group: dict[str, Any]) -> Any:
        _check_group(group)
        return await self._transport.post("/v3/orderexecution/ordergroupconfirm", group)

    async def get_routes(self) -> Any:
        return await self._transport.get("/v3/orderexecution/routes")

    async def get_activation_triggers(self) -> Any:
        return await self._transport.get("/v3/orderexecution/activationtriggers")


__all__ = ["OrderExecutionService"]
