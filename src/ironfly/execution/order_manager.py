"""
Order Lifecycle Manager

Signed order placement and cancellation.

Flow per call:
    ordered (name, value) pairs → canonical query string → HMAC signature
    → gateway dispatch (retried there) → OrderResponse

Failures are never swallowed: OrderError carries the exchange body verbatim,
and RetryExhaustedError wraps the last failure when retries ran out.
"""

import time
from decimal import Decimal
from typing import Any, Callable, List, Mapping, Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from ironfly.core.errors import UpstreamError
from ironfly.execution.models import (
    OrderRequest,
    OrderResponse,
    OrderSide,
    OrderStatus,
    OrderType,
)
from ironfly.gateway.client import ExchangeGateway
from ironfly.gateway.payloads import OrderAck
from ironfly.utils.signing import sign_params


def current_millis() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


def _plain(value: Decimal) -> str:
    return format(value, "f")


class OrderLifecycleManager:
    """
    Places and cancels signed orders through the exchange gateway.

    Attributes:
        gateway: Exchange gateway used for dispatch
        api_secret: Secret used to sign request bodies
        clock: Callable returning epoch milliseconds for the timestamp field
    """

    def __init__(
        self,
        gateway: ExchangeGateway,
        api_secret: Optional[str],
        clock: Optional[Callable[[], int]] = None,
    ):
        self.gateway = gateway
        self.api_secret = api_secret
        self.clock = clock or current_millis

    def build_order_params(self, request: OrderRequest, timestamp: int) -> List[Tuple[str, str]]:
        """
        Build the ordered form fields for an order.

        Field order is symbol, side, type, quantity, timeInForce, timestamp,
        then price for LIMIT orders only.
        """
        params = [
            ("symbol", request.symbol),
            ("side", request.side.value),
            ("type", request.order_type.value),
            ("quantity", _plain(request.quantity)),
            ("timeInForce", request.time_in_force.value),
            ("timestamp", str(timestamp)),
        ]
        if request.order_type == OrderType.LIMIT and request.price is not None:
            params.append(("price", _plain(request.price)))
        return params

    def place_order(self, request: OrderRequest) -> OrderResponse:
        """
        Place an order.

        Args:
            request: Validated order request

        Returns:
            OrderResponse mapped from the exchange acknowledgement

        Raises:
            ConfigurationError: If the API key or secret is missing
            OrderError: If the exchange rejects the order
            RetryExhaustedError: If every retryable attempt failed
        """
        signed = sign_params(self.build_order_params(request, self.clock()), self.api_secret)

        logger.info(
            f"Placing {request.order_type.value} {request.side.value} {request.quantity} "
            f"{request.symbol} @ {request.price}"
        )
        payload = self.gateway.submit_order(signed)
        response = self.parse_order_response(payload)

        logger.info(
            f"✓ Order placed: {request.side.value} {request.quantity} {request.symbol} "
            f"@ {request.price} - Order ID: {response.order_id} ({_status_name(response)})"
        )
        return response

    def cancel_order(self, symbol: str, order_id: str) -> OrderResponse:
        """
        Cancel an order.

        Raises:
            ConfigurationError: If the API key or secret is missing
            OrderError: If the exchange rejects the cancellation
            RetryExhaustedError: If every retryable attempt failed
        """
        if not symbol or not order_id:
            raise ValueError("symbol and order_id are required to cancel an order")

        params = [
            ("symbol", symbol),
            ("orderId", str(order_id)),
            ("timestamp", str(self.clock())),
        ]
        signed = sign_params(params, self.api_secret)

        payload = self.gateway.cancel_order(signed)
        response = self.parse_order_response(payload)

        logger.info(f"✓ Order cancelled: {symbol} - Order ID: {order_id} ({_status_name(response)})")
        return response

    def parse_order_response(self, payload: Mapping[str, Any]) -> OrderResponse:
        """
        Map an order acknowledgement to OrderResponse.

        Absent fields stay None, an avgPrice of zero stays None and an
        unrecognised status or side maps to None (logged).

        Raises:
            UpstreamError: If a present field cannot be parsed
        """
        try:
            ack = OrderAck.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Error parsing order response: {e}")
            raise UpstreamError(
                "Failed to parse order response",
                body=str(payload)[:500],
            ) from e

        avg_price = ack.avg_price if ack.avg_price is not None and ack.avg_price != 0 else None

        return OrderResponse(
            order_id=ack.order_id,
            symbol=ack.symbol,
            status=_enum_or_none(OrderStatus, ack.status, "status"),
            filled_quantity=ack.executed_qty,
            original_quantity=ack.orig_qty,
            price=ack.price,
            avg_price=avg_price,
            side=_enum_or_none(OrderSide, ack.side, "side"),
        )


def _enum_or_none(enum_cls, value: Optional[str], field_name: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown order {field_name} from exchange: {value!r}")
        return None


def _status_name(response: OrderResponse) -> str:
    return response.status.value if response.status is not None else "unknown status"
