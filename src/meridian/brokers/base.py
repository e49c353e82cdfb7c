"""Abstract brokerage interface used by Meridian."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional


class BrokerError(RuntimeError):
    """Raised when broker operations fail."""


class UpstreamError(BrokerError):
    """The vendor rejected a request or could not be reached.

    ``status`` is the vendor HTTP status, or None when no response arrived.
    ``payload`` is the decoded vendor error body when one was returned.
    """

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload


class Broker(ABC):
    """Operations the gateway and the CLI expect from the vendor client."""

    # Accounts
    @abstractmethod
    def create_account(self, data: Mapping[str, Any]) -> Any:
        """Open a brokerage account."""

    @abstractmethod
    def get_account(self, account_id: str) -> Any:
        """Return the account record."""

    # Assets
    @abstractmethod
    def get_asset(self, symbol: str) -> Any:
        """Return the asset record for a ticker."""

    # Trading
    @abstractmethod
    def place_order(
        self, account_id: str, order: Mapping[str, Any], idempotency_key: str | None = None
    ) -> Any:
        """Submit a vendor-shaped order payload."""

    @abstractmethod
    def list_orders(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return orders for an account."""

    @abstractmethod
    def list_positions(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return raw vendor positions for an account."""

    # Money movement
    @abstractmethod
    def create_deposit(
        self, account_id: str, data: Mapping[str, Any], idempotency_key: str | None = None
    ) -> Any:
        """Initiate a deposit."""

    @abstractmethod
    def create_withdrawal(
        self, account_id: str, data: Mapping[str, Any], idempotency_key: str | None = None
    ) -> Any:
        """Initiate a withdrawal."""

    @abstractmethod
    def list_transactions(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return deposits and withdrawals for an account."""

    # Funding sources
    @abstractmethod
    def get_plaid_link_token(self, account_id: str, body: Mapping[str, Any] | None = None) -> Any:
        """Return a Plaid Link token."""

    @abstractmethod
    def connect_plaid_funding_source(self, account_id: str, data: Mapping[str, Any]) -> Any:
        """Exchange a Plaid public token for a stored funding source."""

    @abstractmethod
    def get_funding_sources(self, account_id: str, source_type: str = "plaid") -> Any:
        """Return linked funding sources."""

    @abstractmethod
    def disconnect_funding_source(self, account_id: str, funding_source_id: str) -> Any:
        """Remove a linked funding source."""

    # Wealth
    @abstractmethod
    def list_goals(self, account_id: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return financial goals."""

    @abstractmethod
    def get_goal(self, account_id: str, goal_id: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return one financial goal."""

    @abstractmethod
    def create_goal(
        self, account_id: str, data: Mapping[str, Any], idempotency_key: str | None = None
    ) -> Any:
        """Create a financial goal."""

    @abstractmethod
    def update_goal(self, account_id: str, goal_id: str, data: Mapping[str, Any]) -> Any:
        """Apply a partial update to a financial goal."""

    @abstractmethod
    def delete_goal(self, account_id: str, goal_id: str) -> None:
        """Delete a financial goal."""

    @abstractmethod
    def get_investment_policy(self, account_id: str) -> Any:
        """Return the account's investment policy."""

    @abstractmethod
    def get_insights(self, account_id: str) -> Any:
        """Return portfolio insights."""
