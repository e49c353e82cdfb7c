"""Brokerage routes: accounts, assets, orders, positions, money movement, Plaid."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, Query, Response

from ...brokers.base import Broker
from ...errors import require
from ...funding import deposit_request, funding_request, withdrawal_request
from ...normalize import project_positions, resolve_asset_price
from ...orders import OrderForm, OrderRequestBuilder
from ..dependencies import get_broker

router = APIRouter(prefix="/investment", tags=["Investment"])


# ---------------------------------------------------------------------------
# Accounts and assets

@router.post("/accounts", status_code=201)
def create_account(body: Dict[str, Any] = Body(...), broker: Broker = Depends(get_broker)):
    return broker.create_account(body)


@router.get("/accounts/{account_id}")
def get_account(account_id: str, broker: Broker = Depends(get_broker)):
    return broker.get_account(account_id)


@router.get("/assets/{symbol}")
def get_asset(symbol: str, broker: Broker = Depends(get_broker)):
    payload = broker.get_asset(symbol.strip().upper())
    if isinstance(payload, dict):
        return {**payload, "reference_price": resolve_asset_price(payload)}
    return payload


# ---------------------------------------------------------------------------
# Trading

@router.post("/orders", status_code=201)
def place_order(
    response: Response,
    body: Dict[str, Any] = Body(...),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    broker: Broker = Depends(get_broker),
):
    account_id = body.get("account_id")
    require(account_id, "account_id")
    submission = OrderRequestBuilder(broker).submit(
        OrderForm.from_body(body), account_id, idempotency_key=idempotency_key
    )
    response.headers["Idempotency-Key"] = submission.idempotency_key
    return submission.response


@router.get("/orders")
def list_orders(
    account_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    symbol: Optional[str] = Query(None),
    side: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    broker: Broker = Depends(get_broker),
):
    require(account_id, "account_id")
    return broker.list_orders(
        account_id,
        {"status": status, "symbol": symbol, "side": side, "limit": limit, "offset": offset},
    )


@router.get("/positions")
def list_positions(
    account_id: Optional[str] = Query(None),
    symbol: Optional[str] = Query(None),
    non_zero_only: Optional[str] = Query(None),
    broker: Broker = Depends(get_broker),
):
    require(account_id, "account_id")
    raw = broker.list_positions(
        account_id,
        {"symbol": symbol or None, "non_zero_only": non_zero_only == "true"},
    )
    return [position.to_client_dict() for position in project_positions(raw)]


# ---------------------------------------------------------------------------
# Money movement

@router.get("/transactions")
def list_transactions(
    account_id: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    broker: Broker = Depends(get_broker),
):
    require(account_id, "account_id")
    return broker.list_transactions(
        account_id,
        {
            "type": type,
            "status": status,
            "date_from": date_from or None,
            "date_to": date_to or None,
            "limit": limit,
            "offset": offset,
        },
    )


@router.post("/deposits", status_code=202)
def create_deposit(body: Dict[str, Any] = Body(...), broker: Broker = Depends(get_broker)):
    account_id = body.get("account_id")
    require(account_id, "account_id", "account_id (Bluum account ID) is required")
    transfer = deposit_request(body)
    return broker.create_deposit(account_id, transfer.to_payload())


@router.post("/funding", status_code=201)
def fund_account(body: Dict[str, Any] = Body(...), broker: Broker = Depends(get_broker)):
    account_id = body.get("account_id")
    require(account_id, "account_id")
    transfer = funding_request(body)
    return broker.create_deposit(account_id, transfer.to_payload())


@router.post("/withdrawals", status_code=201)
def create_withdrawal(
    body: Dict[str, Any] = Body(...),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    broker: Broker = Depends(get_broker),
):
    account_id = body.get("account_id")
    require(account_id, "account_id")
    transfer = withdrawal_request(body)
    return broker.create_withdrawal(
        account_id,
        transfer.to_payload(),
        idempotency_key=idempotency_key or body.get("idempotency_key"),
    )


# ---------------------------------------------------------------------------
# Plaid funding sources

@router.post("/plaid/link-token")
def plaid_link_token(body: Dict[str, Any] = Body(...), broker: Broker = Depends(get_broker)):
    account_id = body.get("account_id")
    require(account_id, "account_id")
    extra = {k: v for k, v in body.items() if k != "account_id"}
    return broker.get_plaid_link_token(account_id, extra)


@router.post("/plaid/connect")
def plaid_connect(body: Dict[str, Any] = Body(...), broker: Broker = Depends(get_broker)):
    account_id = body.get("account_id")
    require(account_id, "account_id")
    require(body.get("publicToken"), "publicToken")
    return broker.connect_plaid_funding_source(account_id, {"publicToken": body["publicToken"]})


@router.get("/plaid/connected")
def plaid_connected(
    account_id: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    broker: Broker = Depends(get_broker),
):
    require(account_id, "account_id")
    return broker.get_funding_sources(account_id, "all" if type == "all" else "plaid")


@router.delete("/plaid/disconnect")
def plaid_disconnect(
    account_id: Optional[str] = Query(None),
    funding_source_id: Optional[str] = Query(None),
    broker: Broker = Depends(get_broker),
):
    require(account_id, "account_id")
    require(funding_source_id, "funding_source_id")
    return broker.disconnect_funding_source(account_id, funding_source_id)
