import json
import unittest
from unittest.mock import MagicMock

import requests

from meridian.brokers import BluumBroker, BluumConfig
from meridian.brokers.base import UpstreamError


def _response(status: int, payload=None) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.content = b"" if payload is None else json.dumps(payload).encode()
    response.json.return_value = payload
    response.text = "" if payload is None else json.dumps(payload)
    return response


class BluumBrokerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        self.session.headers = {}
        self.broker = BluumBroker(
            BluumConfig(api_key="key", secret_key="secret", base_url="https://bluum.test/v1/", timeout=7.0),
            session=self.session,
        )

    def test_session_uses_basic_auth(self) -> None:
        self.assertEqual(self.session.auth, ("key", "secret"))
        self.assertEqual(self.session.headers["Content-Type"], "application/json")

    def test_place_order_sends_idempotency_key(self) -> None:
        self.session.request.return_value = _response(201, {"id": "ord-1"})

        result = self.broker.place_order("acct-1", {"symbol": "AAPL", "qty": "1.0000"}, idempotency_key="k-1")

        self.assertEqual(result, {"id": "ord-1"})
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("POST", "https://bluum.test/v1/trading/accounts/acct-1/orders"))
        self.assertEqual(kwargs["headers"], {"Idempotency-Key": "k-1"})
        self.assertEqual(json.loads(kwargs["data"]), {"symbol": "AAPL", "qty": "1.0000"})
        self.assertEqual(kwargs["timeout"], 7.0)

    def test_query_params_drop_unset_and_render_booleans(self) -> None:
        self.session.request.return_value = _response(200, [])

        self.broker.list_positions("acct-1", {"symbol": None, "non_zero_only": True})

        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["params"], {"non_zero_only": "true"})
        self.assertIsNone(kwargs["data"])
        self.assertIsNone(kwargs["headers"])

    def test_list_helpers_unwrap_envelopes(self) -> None:
        self.session.request.return_value = _response(200, {"transactions": [{"id": "tx-1"}]})
        self.assertEqual(self.broker.list_transactions("acct-1"), [{"id": "tx-1"}])

        self.session.request.return_value = _response(200, {"goals": [{"goal_id": "g-1"}]})
        self.assertEqual(self.broker.list_goals("acct-1"), [{"goal_id": "g-1"}])

    def test_error_status_raises_with_vendor_body(self) -> None:
        self.session.request.return_value = _response(422, {"error": {"message": "bad qty"}})

        with self.assertRaises(UpstreamError) as ctx:
            self.broker.get_asset("aapl")

        self.assertEqual(ctx.exception.status, 422)
        self.assertEqual(ctx.exception.payload, {"error": {"message": "bad qty"}})
        self.assertEqual(
            self.session.request.call_args.args[1], "https://bluum.test/v1/assets/AAPL"
        )

    def test_transport_failure_raises_without_status(self) -> None:
        self.session.request.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(UpstreamError) as ctx:
            self.broker.get_account("acct-1")
        self.assertIsNone(ctx.exception.status)

    def test_delete_goal_accepts_empty_body(self) -> None:
        self.session.request.return_value = _response(204)
        self.assertIsNone(self.broker.delete_goal("acct-1", "g-1"))
        self.assertEqual(
            self.session.request.call_args.args,
            ("DELETE", "https://bluum.test/v1/wealth/accounts/acct-1/goals/g-1"),
        )


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
