"""Bluum brokerage/wealth API client used by Meridian."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import requests

from ..log import get_logger
from .base import Broker, UpstreamError

logger = get_logger(__name__)


def _clean_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Drop unset query params and render booleans the way the vendor expects."""
    cleaned: dict[str, Any] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = value
    return cleaned


def _decode(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


@dataclass
class BluumConfig:
    api_key: str
    secret_key: str
    base_url: str
    timeout: float = 30.0


class BluumBroker(Broker):
    """Thin wrapper over the Bluum REST API.

    Authenticates with HTTP Basic auth and makes a single attempt per call.
    Non-2xx responses raise :class:`UpstreamError` carrying the vendor status
    and decoded body.
    """

    def __init__(self, config: BluumConfig, session: requests.Session | None = None) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.auth = (config.api_key, config.secret_key)
        self._session.headers.update({"Content-Type": "application/json"})

    # ------------------------------------------------------------------
    # Helpers
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        idempotency_key: str | None = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        try:
            response = self._session.request(
                method,
                url,
                params=_clean_params(params) or None,
                data=json.dumps(body) if body is not None else None,
                headers=headers,
                timeout=self._config.timeout,
            )
        except requests.RequestException as exc:
            logger.error("bluum_request_failed", method=method, url=url, error=str(exc))
            raise UpstreamError(f"Failed to reach Bluum API: {exc}") from exc

        payload = _decode(response)
        if not 200 <= response.status_code < 300:
            logger.error(
                "bluum_api_error",
                status=response.status_code,
                data=payload,
                url=url,
            )
            raise UpstreamError(
                f"Bluum API responded with status {response.status_code}",
                status=response.status_code,
                payload=payload,
            )
        return payload

    # ------------------------------------------------------------------
    # Accounts and assets
    def create_account(self, data: Mapping[str, Any]) -> Any:
        return self._request("POST", "/accounts", body=dict(data))

    def get_account(self, account_id: str) -> Any:
        return self._request("GET", f"/accounts/{account_id}")

    def get_asset(self, symbol: str) -> Any:
        return self._request("GET", f"/assets/{symbol.upper()}")

    # ------------------------------------------------------------------
    # Trading
    def place_order(
        self, account_id: str, order: Mapping[str, Any], idempotency_key: str | None = None
    ) -> Any:
        return self._request(
            "POST",
            f"/trading/accounts/{account_id}/orders",
            body=dict(order),
            idempotency_key=idempotency_key,
        )

    def list_orders(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._request("GET", f"/trading/accounts/{account_id}/orders", params=params)

    def list_positions(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._request("GET", f"/trading/accounts/{account_id}/positions", params=params)

    # ------------------------------------------------------------------
    # Money movement
    def create_deposit(
        self, account_id: str, data: Mapping[str, Any], idempotency_key: str | None = None
    ) -> Any:
        return self._request(
            "POST",
            f"/accounts/{account_id}/deposits",
            body=dict(data),
            idempotency_key=idempotency_key,
        )

    def create_withdrawal(
        self, account_id: str, data: Mapping[str, Any], idempotency_key: str | None = None
    ) -> Any:
        return self._request(
            "POST",
            f"/accounts/{account_id}/withdrawals",
            body=dict(data),
            idempotency_key=idempotency_key,
        )

    def list_transactions(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        payload = self._request("GET", f"/accounts/{account_id}/transactions", params=params)
        if isinstance(payload, dict) and "transactions" in payload:
            return payload["transactions"]
        return payload

    # ------------------------------------------------------------------
    # Funding sources
    def get_plaid_link_token(self, account_id: str, body: Mapping[str, Any] | None = None) -> Any:
        return self._request(
            "POST",
            f"/accounts/{account_id}/funding-sources/plaid/link-token",
            body=dict(body or {}),
        )

    def connect_plaid_funding_source(self, account_id: str, data: Mapping[str, Any]) -> Any:
        return self._request(
            "POST",
            f"/accounts/{account_id}/funding-sources/plaid/connect",
            body=dict(data),
        )

    def get_funding_sources(self, account_id: str, source_type: str = "plaid") -> Any:
        return self._request(
            "GET",
            f"/accounts/{account_id}/funding-sources",
            params={"type": source_type},
        )

    def disconnect_funding_source(self, account_id: str, funding_source_id: str) -> Any:
        return self._request(
            "DELETE",
            f"/accounts/{account_id}/funding-sources/{funding_source_id}",
            params={"type": "plaid"},
        )

    # ------------------------------------------------------------------
    # Wealth
    def list_goals(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        payload = self._request("GET", f"/wealth/accounts/{account_id}/goals", params=params)
        if isinstance(payload, dict) and "goals" in payload:
            return payload["goals"]
        return payload

    def get_goal(self, account_id: str, goal_id: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._request(
            "GET", f"/wealth/accounts/{account_id}/goals/{goal_id}", params=params
        )

    def create_goal(
        self, account_id: str, data: Mapping[str, Any], idempotency_key: str | None = None
    ) -> Any:
        return self._request(
            "POST",
            f"/wealth/accounts/{account_id}/goals",
            body=dict(data),
            idempotency_key=idempotency_key,
        )

    def update_goal(self, account_id: str, goal_id: str, data: Mapping[str, Any]) -> Any:
        return self._request(
            "PUT", f"/wealth/accounts/{account_id}/goals/{goal_id}", body=dict(data)
        )

    def delete_goal(self, account_id: str, goal_id: str) -> None:
        self._request("DELETE", f"/wealth/accounts/{account_id}/goals/{goal_id}")

    def get_investment_policy(self, account_id: str) -> Any:
        return self._request("GET", f"/wealth/accounts/{account_id}/investment-policy")

    def get_insights(self, account_id: str) -> Any:
        return self._request("GET", f"/wealth/accounts/{account_id}/insights")
