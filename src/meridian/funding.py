"""Funding-source resolution for deposits and withdrawals.

Clients describe where money comes from in several shapes: a fresh Plaid
public token, a previously stored Plaid item, the legacy ``funding_details``
object, or raw bank fields. Everything here collapses those into a single
:class:`FundingDescriptor` and a vendor-shaped transfer body.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import FeatureDisabledError, ValidationError, require
from .normalize import parse_number

PLAID_NEW = "plaid_new"
PLAID_STORED = "plaid_stored"
MANUAL = "manual"

DEPOSIT_OPTIONS_REQUIRED = (
    "Plaid options are required. Provide publicToken or itemId for ach_plaid deposits."
)
WITHDRAWAL_OPTIONS_REQUIRED = "Plaid options are required for ACH withdrawals"
SOURCE_REQUIRED = "Either plaidOptions or funding_details is required"
MANUAL_WITHDRAWAL_DISABLED = "Bank transfer withdrawals are not available at the moment"


@dataclass
class FundingDescriptor:
    kind: str
    public_token: Optional[str] = None
    item_id: Optional[str] = None
    account_id: Optional[str] = None
    bank_routing: Optional[str] = None
    bank_account: Optional[str] = None

    def to_plaid_options(self) -> Dict[str, str]:
        """Return ``plaid_options`` holding only the populated Plaid fields."""
        if self.kind == MANUAL:
            raise ValueError("Manual bank sources have no Plaid options")
        options = {}
        for key in ("public_token", "item_id", "account_id"):
            value = getattr(self, key)
            if value:
                options[key] = value
        return options


@dataclass
class TransferRequest:
    amount: str
    method: str
    currency: str = "USD"
    description: Optional[str] = None
    source: Optional[FundingDescriptor] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "amount": self.amount,
            "currency": self.currency,
            "method": self.method,
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.source is not None:
            payload["plaid_options"] = self.source.to_plaid_options()
        payload.update(self.extra)
        return payload


def _as_object(value: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValidationError(f"{field} must be an object", field=field)
    return value


def _object(body: Mapping[str, Any], field: str) -> Optional[Mapping[str, Any]]:
    """Return ``body[field]`` when supplied; an empty object still counts as supplied."""
    value = body.get(field)
    if value is None:
        return None
    return _as_object(value, field)


def _pick(options: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = options.get(key)
        if value:
            return str(value)
    return None


def plaid_descriptor(options: Mapping[str, Any]) -> Optional[FundingDescriptor]:
    """Build a Plaid descriptor from camelCase or snake_case option keys."""
    options = _as_object(options, "plaidOptions")
    public_token = _pick(options, "publicToken", "public_token")
    item_id = _pick(options, "itemId", "item_id")
    account_id = _pick(options, "accountId", "account_id")
    if not public_token and not item_id:
        return None
    return FundingDescriptor(
        kind=PLAID_NEW if public_token else PLAID_STORED,
        public_token=public_token,
        item_id=item_id,
        account_id=account_id,
    )


def manual_descriptor(details: Mapping[str, Any]) -> FundingDescriptor:
    """Validate raw bank fields the way the transfer form does."""
    details = _as_object(details, "bankDetails")
    bank_name = str(details.get("bankName") or details.get("bank_name") or "").strip()
    routing = re.sub(r"\D", "", str(details.get("routingNumber") or details.get("routing_number") or ""))
    account = re.sub(r"\D", "", str(details.get("accountNumber") or details.get("account_number") or ""))
    holder = str(details.get("accountHolderName") or details.get("account_holder_name") or "").strip()

    if len(bank_name) < 2:
        raise ValidationError("Please enter the bank name", field="bankName")
    if len(routing) != 9:
        raise ValidationError("Please enter a valid 9-digit routing number", field="routingNumber")
    if len(account) < 4:
        raise ValidationError("Please enter a valid account number", field="accountNumber")
    if len(holder) < 2:
        raise ValidationError("Please enter the account holder name", field="accountHolderName")
    return FundingDescriptor(kind=MANUAL, bank_routing=routing, bank_account=account)


def validate_transfer_amount(amount: Any, available: Optional[float] = None) -> str:
    """Return ``amount`` as a 2-decimal string; withdrawals pass ``available``."""
    require(amount, "amount")
    value = parse_number(amount)
    if value is None or value <= 0:
        raise ValidationError("Please enter a valid amount", field="amount")
    if available is not None and value > available:
        raise ValidationError("Insufficient balance", field="amount")
    return f"{value:.2f}"


def _legacy_method(funding_details: Mapping[str, Any]) -> str:
    return "ach_plaid" if funding_details.get("method") == "ach" else "wire"


def deposit_request(body: Mapping[str, Any]) -> TransferRequest:
    """Resolve a Plaid deposit from ``plaidOptions`` or flat body fields."""
    amount = validate_transfer_amount(body.get("amount"))
    options = _object(body, "plaidOptions")
    if options is None:
        options = {
            "publicToken": body.get("publicToken"),
            "itemId": body.get("itemId"),
            "accountId": body.get("accountId"),
        }
    source = plaid_descriptor(options)
    if source is None:
        raise ValidationError(DEPOSIT_OPTIONS_REQUIRED, field="plaidOptions")
    return TransferRequest(
        amount=amount,
        currency=body.get("currency") or "USD",
        method=body.get("method") or "ach_plaid",
        description=body.get("description"),
        source=source,
    )


def funding_request(body: Mapping[str, Any]) -> TransferRequest:
    """Resolve a deposit from ``plaidOptions`` or the legacy ``funding_details``."""
    amount = validate_transfer_amount(body.get("amount"))
    extra = {}
    if body.get("external_reference_id"):
        extra["external_reference_id"] = body["external_reference_id"]

    options = _object(body, "plaidOptions")
    if options is not None:
        source = plaid_descriptor(options)
        if source is None:
            raise ValidationError(DEPOSIT_OPTIONS_REQUIRED, field="plaidOptions")
        return TransferRequest(
            amount=amount,
            currency=body.get("currency") or "USD",
            method=body.get("method") or "ach_plaid",
            description=body.get("description"),
            source=source,
            extra=extra,
        )

    details = _object(body, "funding_details")
    if details is None:
        raise ValidationError(SOURCE_REQUIRED, field="funding_details")

    currency = details.get("fiat_currency") or "USD"
    if body.get("public_token"):
        return TransferRequest(
            amount=amount,
            currency=currency,
            method=_legacy_method(details),
            description=body.get("description"),
            source=FundingDescriptor(kind=PLAID_NEW, public_token=str(body["public_token"])),
            extra=extra,
        )
    return TransferRequest(
        amount=amount,
        currency=currency,
        method="manual_bank_transfer",
        description=body.get("description"),
        extra=extra,
    )


def withdrawal_request(body: Mapping[str, Any]) -> TransferRequest:
    """Resolve a withdrawal destination.

    Order: ``plaidOptions``, then legacy ``funding_details.bank_account_id``
    (mapped onto the Plaid item and account), then raw ``bankDetails``. Raw
    bank details resolve to a manual source, which cannot be withdrawn to.
    """
    amount = validate_transfer_amount(body.get("amount"))

    options = _object(body, "plaidOptions")
    if options is not None:
        source = plaid_descriptor(options)
        if source is None:
            raise ValidationError(WITHDRAWAL_OPTIONS_REQUIRED, field="plaidOptions")
        return TransferRequest(
            amount=amount,
            currency=body.get("currency") or "USD",
            method=body.get("method") or "ach_plaid",
            description=body.get("description"),
            source=source,
        )

    details = _object(body, "funding_details")
    if details is not None:
        bank_account_id = details.get("bank_account_id")
        if not bank_account_id:
            raise ValidationError(WITHDRAWAL_OPTIONS_REQUIRED, field="funding_details")
        return TransferRequest(
            amount=amount,
            currency=body.get("currency") or details.get("fiat_currency") or "USD",
            method=_legacy_method(details),
            description=body.get("description"),
            source=FundingDescriptor(
                kind=PLAID_STORED,
                item_id=str(bank_account_id),
                account_id=str(bank_account_id),
            ),
        )

    bank_details = _object(body, "bankDetails")
    if bank_details is not None:
        manual_descriptor(bank_details)
        raise FeatureDisabledError(MANUAL_WITHDRAWAL_DISABLED)

    raise ValidationError(SOURCE_REQUIRED, field="plaidOptions")


def withdrawal_source(
    public_token: str | None = None,
    item_id: str | None = None,
    plaid_account_id: str | None = None,
) -> FundingDescriptor:
    """Pick the Plaid destination for a client-initiated withdrawal."""
    if public_token:
        return FundingDescriptor(kind=PLAID_NEW, public_token=public_token, account_id=plaid_account_id)
    if item_id:
        return FundingDescriptor(
            kind=PLAID_STORED,
            item_id=item_id,
            account_id=plaid_account_id or item_id,
        )
    raise ValidationError(
        "Either public_token or item_id must be provided for Plaid withdrawal",
        field="plaidOptions",
    )
