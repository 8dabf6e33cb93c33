"""
Tests for OrderLifecycleManager.

Unit tests mock the gateway to check field order, signing and response
mapping; integration tests drive the real gateway through httpx.MockTransport.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import httpx
import pytest

from ironfly.core.errors import ConfigurationError, OrderError, UpstreamError
from ironfly.execution.models import OrderRequest, OrderSide, OrderStatus, OrderType
from ironfly.execution.order_manager import OrderLifecycleManager
from ironfly.gateway.client import ExchangeGateway
from ironfly.utils.signing import sign


TIMESTAMP = 1704412800000
SECRET = "test-secret"
ORDER_PATH = "/eapi/v1/order"


@pytest.fixture
def mock_gateway():
    gateway = MagicMock(spec=ExchangeGateway)
    gateway.submit_order.return_value = {
        "orderId": 4611875134427365377,
        "symbol": "BTC-240105-42000-C",
        "status": "ACCEPTED",
        "executedQty": "0",
        "origQty": "0.1",
        "price": "850",
        "avgPrice": "0",
        "side": "SELL",
    }
    gateway.cancel_order.return_value = {
        "orderId": 4611875134427365377,
        "symbol": "BTC-240105-42000-C",
        "status": "CANCELLED",
    }
    return gateway


@pytest.fixture
def manager(mock_gateway):
    return OrderLifecycleManager(mock_gateway, SECRET, clock=lambda: TIMESTAMP)


@pytest.fixture
def limit_sell():
    return OrderRequest(
        symbol="BTC-240105-42000-C",
        side=OrderSide.SELL,
        order_type=OrderType.LIMIT,
        quantity=Decimal("0.1"),
        price=Decimal("850"),
    )


class TestBuildOrderParams:
    """Test form field construction."""

    def test_limit_field_order(self, manager, limit_sell):
        """Test fields are symbol, side, type, quantity, timeInForce, timestamp, price."""
        params = manager.build_order_params(limit_sell, TIMESTAMP)

        assert params == [
            ("symbol", "BTC-240105-42000-C"),
            ("side", "SELL"),
            ("type", "LIMIT"),
            ("quantity", "0.1"),
            ("timeInForce", "GTC"),
            ("timestamp", "1704412800000"),
            ("price", "850"),
        ]

    def test_market_has_no_price(self, manager):
        """Test MARKET orders never carry a price field."""
        request = OrderRequest(
            symbol="BTC-240105-42000-P",
            side=OrderSide.BUY,
            order_type=OrderType.MARKET,
            quantity=Decimal("1"),
            price=Decimal("900"),
        )

        params = manager.build_order_params(request, TIMESTAMP)

        assert [name for name, _ in params] == ["symbol", "side", "type", "quantity", "timeInForce", "timestamp"]

    def test_decimals_rendered_plain(self, manager):
        """Test quantities never use exponent notation."""
        request = OrderRequest(
            symbol="BTC-240105-42000-C",
            side=OrderSide.BUY,
            order_type=OrderType.LIMIT,
            quantity=Decimal("1E-2"),
            price=Decimal("5E+2"),
        )

        params = dict(manager.build_order_params(request, TIMESTAMP))

        assert params["quantity"] == "0.01"
        assert params["price"] == "500"


class TestPlaceOrder:
    """Test order placement."""

    def test_signs_exact_body(self, manager, mock_gateway, limit_sell):
        """Test the submitted body is canonical and signed with the secret."""
        manager.place_order(limit_sell)

        signed = mock_gateway.submit_order.call_args.args[0]
        assert signed.query_string == (
            "symbol=BTC-240105-42000-C&side=SELL&type=LIMIT&quantity=0.1"
            "&timeInForce=GTC&timestamp=1704412800000&price=850"
        )
        assert signed.signature == sign(signed.query_string, SECRET)

    def test_maps_response(self, manager, limit_sell):
        """Test response mapping, including avgPrice zero staying None."""
        response = manager.place_order(limit_sell)

        assert response.order_id == "4611875134427365377"
        assert response.status == OrderStatus.ACCEPTED
        assert response.side == OrderSide.SELL
        assert response.filled_quantity == Decimal("0")
        assert response.original_quantity == Decimal("0.1")
        assert response.price == Decimal("850")
        assert response.avg_price is None
        assert response.is_open is True
        assert response.is_terminal is False

    def test_missing_secret(self, mock_gateway, limit_sell):
        """Test no request is dispatched without a secret."""
        manager = OrderLifecycleManager(mock_gateway, None, clock=lambda: TIMESTAMP)

        with pytest.raises(ConfigurationError):
            manager.place_order(limit_sell)

        mock_gateway.submit_order.assert_not_called()

    def test_order_error_propagates(self, manager, mock_gateway, limit_sell):
        """Test exchange rejections are not swallowed."""
        mock_gateway.submit_order.side_effect = OrderError(
            "Failed to place order", status_code=400, body='{"code":-2010}'
        )

        with pytest.raises(OrderError) as exc_info:
            manager.place_order(limit_sell)

        assert exc_info.value.body == '{"code":-2010}'


class TestCancelOrder:
    """Test order cancellation."""

    def test_field_order_and_mapping(self, manager, mock_gateway):
        response = manager.cancel_order("BTC-240105-42000-C", "4611875134427365377")

        signed = mock_gateway.cancel_order.call_args.args[0]
        assert list(signed.params) == [
            ("symbol", "BTC-240105-42000-C"),
            ("orderId", "4611875134427365377"),
            ("timestamp", "1704412800000"),
        ]
        assert response.status == OrderStatus.CANCELLED
        assert response.is_terminal is True
        assert response.filled_quantity is None

    def test_requires_ids(self, manager):
        with pytest.raises(ValueError):
            manager.cancel_order("", "1")


class TestParseOrderResponse:
    """Test response mapping edge cases."""

    def test_absent_fields_stay_none(self, manager):
        """Test an empty acknowledgement maps to all-None fields."""
        response = manager.parse_order_response({})

        assert response.order_id is None
        assert response.status is None
        assert response.filled_quantity is None
        assert response.avg_price is None
        assert response.is_open is False
        assert response.is_terminal is False

    def test_unknown_status_is_none(self, manager):
        response = manager.parse_order_response({"orderId": 1, "status": "EXPIRED", "side": "HOLD"})

        assert response.order_id == "1"
        assert response.status is None
        assert response.side is None

    def test_nonzero_avg_price_kept(self, manager):
        response = manager.parse_order_response({"status": "FILLED", "avgPrice": "852.5"})

        assert response.avg_price == Decimal("852.5")
        assert response.is_terminal is True

    def test_unparseable_field_raises(self, manager):
        """Test a present but unparseable field is an UpstreamError."""
        with pytest.raises(UpstreamError, match="parse order response"):
            manager.parse_order_response({"executedQty": "lots"})


class TestOrderRoundTrip:
    """Test placement through the real gateway and a fake exchange."""

    def test_place_order_over_http(self, mock_exchange, make_gateway, limit_sell):
        mock_exchange.add(
            "POST",
            ORDER_PATH,
            httpx.Response(
                200,
                json={"orderId": 77, "symbol": "BTC-240105-42000-C", "status": "FILLED", "avgPrice": "850", "executedQty": "0.1"},
            ),
        )
        manager = OrderLifecycleManager(make_gateway(), SECRET, clock=lambda: TIMESTAMP)

        response = manager.place_order(limit_sell)

        request = mock_exchange.requests[0]
        body = request.content.decode()
        assert request.headers["signature"] == sign(body, SECRET)
        assert body.endswith("&price=850")
        assert response.order_id == "77"
        assert response.status == OrderStatus.FILLED
        assert response.avg_price == Decimal("850")

    def test_rejection_over_http(self, mock_exchange, make_gateway, limit_sell):
        body = '{"code":-2027,"msg":"Exceeded the maximum allowable position at current leverage."}'
        mock_exchange.add("POST", ORDER_PATH, httpx.Response(400, text=body))
        manager = OrderLifecycleManager(make_gateway(), SECRET, clock=lambda: TIMESTAMP)

        with pytest.raises(OrderError) as exc_info:
            manager.place_order(limit_sell)

        assert exc_info.value.body == body
