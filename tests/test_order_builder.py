import unittest
import uuid
from unittest.mock import MagicMock

from meridian.brokers.base import Broker
from meridian.brokers.models import Position
from meridian.errors import ValidationError
from meridian.orders import OrderForm, OrderRequestBuilder, build_order


def _position(symbol: str, shares: float) -> Position:
    return Position(
        symbol=symbol,
        name=symbol,
        shares=shares,
        current_price=10.0,
        purchase_price=8.0,
        value=shares * 10.0,
        gain=shares * 2.0,
        gain_percent=25.0,
    )


class BuildOrderTests(unittest.TestCase):
    def test_quantity_buy_is_fixed_to_four_places(self) -> None:
        order = build_order(OrderForm(symbol="aapl", quantity="3"), "acct-1")
        self.assertEqual(
            order.to_payload(),
            {"symbol": "AAPL", "side": "buy", "type": "market", "time_in_force": "day", "qty": "3.0000"},
        )

    def test_dollar_buy_sends_notional(self) -> None:
        order = build_order(OrderForm(symbol="AAPL", order_by="dollar", dollar_amount=12.5), "acct-1")
        payload = order.to_payload()
        self.assertEqual(payload["notional"], "12.50")
        self.assertNotIn("qty", payload)

    def test_limit_order_requires_price(self) -> None:
        form = OrderForm(symbol="AAPL", type="limit", quantity="1")
        with self.assertRaises(ValidationError) as ctx:
            build_order(form, "acct-1")
        self.assertEqual(str(ctx.exception), "limit price is required for limit orders")

        form.limit_price = "187.2"
        self.assertEqual(build_order(form, "acct-1").limit_price, "187.20")

    def test_missing_symbol_reported_before_account(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            build_order(OrderForm(symbol=" ", quantity="1"), None)
        self.assertEqual(str(ctx.exception), "symbol is required")

        with self.assertRaises(ValidationError) as ctx:
            build_order(OrderForm(symbol="AAPL", quantity="1"), "")
        self.assertEqual(str(ctx.exception), "account_id is required")

    def test_non_numeric_and_non_positive_values_rejected(self) -> None:
        for bad in ("abc", "NaN", float("nan"), "0", "-2"):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    build_order(OrderForm(symbol="AAPL", quantity=bad), "acct-1")

    def test_unknown_enums_rejected(self) -> None:
        for form in (
            OrderForm(symbol="AAPL", side="short", quantity="1"),
            OrderForm(symbol="AAPL", type="stop", quantity="1"),
            OrderForm(symbol="AAPL", time_in_force="week", quantity="1"),
            OrderForm(symbol="AAPL", order_by="shares", quantity="1"),
        ):
            with self.subTest(form=form):
                with self.assertRaises(ValidationError):
                    build_order(form, "acct-1")

    def test_sell_more_than_held(self) -> None:
        form = OrderForm(symbol="AAPL", side="sell", quantity="5")
        with self.assertRaises(ValidationError) as ctx:
            build_order(form, "acct-1", [_position("AAPL", 2)])
        self.assertEqual(str(ctx.exception), "You don't have enough shares. You own 2 shares.")

        with self.assertRaises(ValidationError) as ctx:
            build_order(form, "acct-1", [])
        self.assertIn("You own 0 shares", str(ctx.exception))

    def test_sell_within_holdings(self) -> None:
        form = OrderForm(symbol="AAPL", side="sell", quantity="1.5")
        order = build_order(form, "acct-1", [_position("MSFT", 9), _position("AAPL", 2)])
        self.assertEqual(order.qty, "1.5000")

    def test_from_body_accepts_both_spellings(self) -> None:
        form = OrderForm.from_body({"symbol": "AAPL", "dollarAmount": "25", "timeInForce": "gtc"})
        self.assertEqual(form.order_by, "dollar")
        self.assertEqual(form.time_in_force, "gtc")

        form = OrderForm.from_body({"symbol": "AAPL", "qty": "2", "limit_price": "10", "type": "limit"})
        self.assertEqual(form.order_by, "quantity")
        self.assertEqual(form.quantity, "2")
        self.assertEqual(form.limit_price, "10")


class OrderRequestBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.broker = MagicMock(spec=Broker)
        self.broker.place_order.return_value = {"id": "ord-1", "status": "accepted"}
        self.builder = OrderRequestBuilder(self.broker)

    def test_submit_generates_idempotency_key(self) -> None:
        submission = self.builder.submit(OrderForm(symbol="AAPL", quantity="1"), "acct-1")

        uuid.UUID(submission.idempotency_key)
        self.broker.place_order.assert_called_once_with(
            "acct-1",
            {"symbol": "AAPL", "side": "buy", "type": "market", "time_in_force": "day", "qty": "1.0000"},
            idempotency_key=submission.idempotency_key,
        )
        self.assertEqual(submission.response["id"], "ord-1")

    def test_each_submission_gets_a_new_key(self) -> None:
        first = self.builder.submit(OrderForm(symbol="AAPL", quantity="1"), "acct-1")
        second = self.builder.submit(OrderForm(symbol="AAPL", quantity="1"), "acct-1")
        self.assertNotEqual(first.idempotency_key, second.idempotency_key)

    def test_caller_key_is_forwarded(self) -> None:
        submission = self.builder.submit(
            OrderForm(symbol="AAPL", quantity="1"), "acct-1", idempotency_key="fixed"
        )
        self.assertEqual(submission.idempotency_key, "fixed")
        self.assertEqual(self.broker.place_order.call_args.kwargs["idempotency_key"], "fixed")

    def test_sell_fetches_positions_and_blocks_oversell(self) -> None:
        self.broker.list_positions.return_value = [{"symbol": "AAPL", "quantity": "2"}]

        with self.assertRaises(ValidationError):
            self.builder.submit(OrderForm(symbol="aapl", side="sell", quantity="3"), "acct-1")

        self.broker.list_positions.assert_called_once_with("acct-1", {"symbol": "AAPL"})
        self.broker.place_order.assert_not_called()

    def test_invalid_form_never_reaches_broker(self) -> None:
        with self.assertRaises(ValidationError):
            self.builder.submit(OrderForm(symbol="AAPL", order_by="dollar"), "acct-1")
        self.broker.place_order.assert_not_called()


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
