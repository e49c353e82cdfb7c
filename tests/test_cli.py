import unittest
from unittest.mock import MagicMock, patch

from meridian import cli
from meridian.brokers.base import Broker, UpstreamError
from meridian.session import MemorySessionStore, Session


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.broker = MagicMock(spec=Broker)
        self.store = MemorySessionStore()
        self.store.init(Session(email="sam@example.com", external_account_id="acct-1"))
        self.console = patch.object(cli, "console")
        self.console.start()
        self.addCleanup(self.console.stop)

    def _run(self, *argv: str) -> int:
        args = cli.build_parser().parse_args(list(argv))
        return cli.run_action(args, args.func, self.store, broker_factory=lambda: self.broker)

    def test_buy_by_dollars_submits_notional(self) -> None:
        self.broker.get_asset.return_value = {"symbol": "AAPL", "price": "200"}
        self.broker.place_order.return_value = {"id": "ord-1"}

        self.assertEqual(self._run("buy", "aapl", "--dollars", "50"), 0)

        account_id, payload = self.broker.place_order.call_args.args
        self.assertEqual(account_id, "acct-1")
        self.assertEqual(payload["notional"], "50.00")
        self.assertTrue(self.broker.place_order.call_args.kwargs["idempotency_key"])

    def test_sell_checks_holdings(self) -> None:
        self.broker.list_positions.return_value = [{"symbol": "AAPL", "quantity": "1"}]

        self.assertEqual(self._run("sell", "AAPL", "2"), 1)
        self.broker.place_order.assert_not_called()

    def test_missing_account_fails(self) -> None:
        self.store.clear()
        self.assertEqual(self._run("positions"), 1)
        self.broker.list_positions.assert_not_called()

    def test_account_flag_overrides_session(self) -> None:
        self.broker.list_positions.return_value = []
        self.assertEqual(self._run("--account", "acct-2", "positions"), 0)
        self.assertEqual(self.broker.list_positions.call_args.args[0], "acct-2")

    def test_upstream_error_exits_nonzero(self) -> None:
        self.broker.list_orders.side_effect = UpstreamError("failed", status=500, payload={"error": "down"})
        self.assertEqual(self._run("orders"), 1)
        self.assertEqual(
            cli._error_message(self.broker.list_orders.side_effect), "failed - down"
        )

    def test_broker_factory_failure_exits_two(self) -> None:
        args = cli.build_parser().parse_args(["orders"])

        def failing_factory():
            raise RuntimeError("Missing required environment variables: BLUUM_API_KEY")

        self.assertEqual(cli.run_action(args, args.func, self.store, broker_factory=failing_factory), 2)

    def test_login_does_not_need_broker(self) -> None:
        factory = MagicMock()
        args = cli.build_parser().parse_args(["login", "kim@example.com", "--name", "Kim"])
        self.assertEqual(cli.run_action(args, args.func, self.store, broker_factory=factory), 0)
        factory.assert_not_called()
        self.assertEqual(self.store.read().email, "kim@example.com")
        self.assertIsNone(self.store.read().external_account_id)

    def test_withdraw_checks_balance(self) -> None:
        self.assertEqual(self._run("withdraw", "500", "--item-id", "item-1", "--available", "100"), 1)
        self.broker.create_withdrawal.assert_not_called()

    def test_goal_update_sends_only_given_fields(self) -> None:
        self.broker.update_goal.return_value = {"goal_id": "g-1", "priority": 3}
        self.assertEqual(self._run("goals", "update", "g-1", "--priority", "3"), 0)
        self.broker.update_goal.assert_called_once_with("acct-1", "g-1", {"priority": 3})

    def test_banks_lists_plaid_sources(self) -> None:
        self.broker.get_funding_sources.return_value = {"data": {"items": [{"id": "fs-1", "providerId": "item-1"}]}}
        self.assertEqual(self._run("banks"), 0)
        self.broker.get_funding_sources.assert_called_once_with("acct-1", "plaid")

    def test_goals_list_projects_vendor_records(self) -> None:
        self.broker.list_goals.return_value = [
            {"id": "g-1", "name": "House", "goal_type": "home_purchase", "target_amount": "80000"}
        ]
        with patch.object(cli, "render_records") as render:
            self.assertEqual(self._run("goals", "list", "--status", "active"), 0)

        self.broker.list_goals.assert_called_once_with("acct-1", {"status": "active"})
        rows = render.call_args.args[2]
        self.assertEqual(rows[0]["goal_id"], "g-1")
        self.assertEqual(rows[0]["status"], "active")
        self.assertIsNone(rows[0]["priority"])

    def test_goal_delete_not_found(self) -> None:
        self.broker.delete_goal.side_effect = UpstreamError("missing", status=404)
        self.assertEqual(self._run("goals", "delete", "g-9"), 1)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
