"""Command-line entry point for Meridian."""
from __future__ import annotations

import argparse
from dataclasses import asdict
from typing import Any, Callable, Optional

from rich.console import Console
from termcolor import colored

from .api import serve
from .api.dependencies import create_broker
from .brokers.base import Broker, BrokerError, UpstreamError
from .brokers.models import FinancialGoal
from .environment import SESSION_PATH, ensure_directories, get_log_format, get_log_level, load_dotenv
from .errors import FeatureDisabledError, NotFoundError
from .funding import TransferRequest, validate_transfer_amount, withdrawal_source
from .goals import GoalPatch, require_goal_id, translate_goal_errors, validate_create
from .log import configure_logging
from .normalize import connected_accounts, portfolio_totals, project_positions, resolve_asset_price
from .orders import OrderForm, OrderRequestBuilder, build_order, reconcile, reference_price_for
from .render import render_mapping, render_order_preview, render_positions, render_records
from .session import FileSessionStore, Session, SessionStore

ConsoleAction = Callable[[Optional[Broker], SessionStore, argparse.Namespace], None]

console = Console()


def _error_message(exc: Exception) -> str:
    if isinstance(exc, UpstreamError) and exc.payload is not None:
        payload = exc.payload
        if isinstance(payload, dict):
            detail = payload.get("error", payload.get("message", payload))
            if isinstance(detail, dict):
                detail = detail.get("message", detail)
            return f"{exc} - {detail}"
        return f"{exc} - {payload}"
    return str(exc) or exc.__class__.__name__


def run_action(
    args: argparse.Namespace,
    action: ConsoleAction,
    store: SessionStore,
    broker_factory: Callable[[], Broker] = create_broker,
) -> int:
    broker: Optional[Broker] = None
    if getattr(args, "needs_broker", True):
        try:
            broker = broker_factory()
        except Exception as exc:
            console.print(colored(_error_message(exc), "red"))
            return 2

    try:
        action(broker, store, args)
        return 0
    except (BrokerError, FeatureDisabledError, NotFoundError, LookupError, ValueError) as exc:
        console.print(colored(_error_message(exc), "red"))
        return 1


def _account_id(store: SessionStore, args: argparse.Namespace) -> str:
    if getattr(args, "account", None):
        return args.account
    session = store.read()
    if session is None or not session.external_account_id:
        raise LookupError("No investment account found. Please create an account first.")
    return session.external_account_id


# ----------------------------------------------------------------------
# Session commands

def handle_login(_: Optional[Broker], store: SessionStore, args: argparse.Namespace) -> None:
    session = store.init(Session(email=args.email, name=args.name or "", external_account_id=args.account))
    console.print(colored(f"Signed in as {session.email}", "green"))


def handle_logout(_: Optional[Broker], store: SessionStore, __: argparse.Namespace) -> None:
    store.clear()
    console.print(colored("Signed out", "green"))


def handle_whoami(_: Optional[Broker], store: SessionStore, __: argparse.Namespace) -> None:
    session = store.read()
    if session is None:
        console.print(colored("Not signed in.", "yellow"))
        return
    render_mapping(console, "Session", vars(session))


def handle_link(_: Optional[Broker], store: SessionStore, args: argparse.Namespace) -> None:
    store.update(external_account_id=args.account_id)
    console.print(colored(f"Linked investment account {args.account_id}", "green"))


# ----------------------------------------------------------------------
# Brokerage commands

def handle_positions(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    raw = broker.list_positions(account_id, {"symbol": args.symbol, "non_zero_only": args.non_zero})
    positions = project_positions(raw)
    render_positions(console, positions, portfolio_totals(positions))


def handle_orders(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    orders = broker.list_orders(account_id, {"status": args.status, "limit": args.limit})
    render_records(
        console,
        f"Orders ({args.status})" if args.status else "Orders",
        orders or [],
        ("id", "symbol", "side", "type", "qty", "notional", "status"),
        "No orders found.",
    )


def handle_transactions(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    transactions = broker.list_transactions(
        account_id, {"type": args.type, "status": args.status, "limit": args.limit}
    )
    render_records(
        console,
        "Transactions",
        transactions or [],
        ("id", "type", "amount", "currency", "status", "created_at"),
        "No transactions found.",
    )


def _trade(broker: Broker, store: SessionStore, args: argparse.Namespace, side: str) -> None:
    account_id = _account_id(store, args)
    dollars = getattr(args, "dollars", None)
    form = OrderForm(
        symbol=args.symbol,
        side=side,
        type="limit" if args.limit is not None else "market",
        order_by="dollar" if dollars is not None else "quantity",
        quantity=args.qty,
        dollar_amount=dollars,
        limit_price=args.limit,
        time_in_force=args.tif,
    )
    builder = OrderRequestBuilder(broker)
    positions = None
    if side == "sell":
        positions = project_positions(broker.list_positions(account_id, {"symbol": form.symbol.upper()}))
    order = build_order(form, account_id, positions or ())

    asset_price = resolve_asset_price(broker.get_asset(order.symbol))
    sizing = reconcile(
        form.order_by,
        quantity=form.quantity,
        dollar_amount=form.dollar_amount,
        reference_price=reference_price_for(order.type, form.limit_price, asset_price),
    )
    render_order_preview(console, order, sizing)

    submission = builder.submit(form, account_id, positions=positions)
    label = "Buy" if side == "buy" else "Sell"
    console.print(colored(
        f"{label} order placed successfully! key={submission.idempotency_key}",
        "green",
    ))


def handle_buy(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    _trade(broker, store, args, "buy")


def handle_sell(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    _trade(broker, store, args, "sell")


def _plaid_transfer(args: argparse.Namespace, available: Optional[float] = None) -> TransferRequest:
    amount = validate_transfer_amount(args.amount, available)
    return TransferRequest(
        amount=amount,
        method="ach_plaid",
        currency=args.currency,
        description=args.description,
        source=withdrawal_source(args.public_token, args.item_id, args.plaid_account),
    )


def handle_deposit(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    transfer = _plaid_transfer(args)
    result = broker.create_deposit(account_id, transfer.to_payload())
    console.print(colored(f"Deposit of ${transfer.amount} submitted", "green"))
    render_mapping(console, "Deposit", result)


def handle_withdraw(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    transfer = _plaid_transfer(args, args.available)
    result = broker.create_withdrawal(account_id, transfer.to_payload(), idempotency_key=args.idempotency_key)
    console.print(colored("Withdrawal request submitted successfully!", "green"))
    render_mapping(console, "Withdrawal", result)


def handle_banks(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    accounts = connected_accounts(broker.get_funding_sources(account_id, "plaid"))
    render_records(
        console,
        "Linked banks",
        accounts,
        ("id", "itemId", "institutionName", "status"),
        "No linked bank accounts.",
    )


# ----------------------------------------------------------------------
# Goal commands

def _goal_fields(args: argparse.Namespace) -> dict[str, Any]:
    fields = {
        "name": args.name,
        "goal_type": args.goal_type,
        "target_amount": args.target_amount,
        "target_date": args.target_date,
        "priority": args.priority,
        "monthly_contribution": args.monthly_contribution,
        "status": getattr(args, "status", None),
    }
    return {key: value for key, value in fields.items() if value is not None}


def handle_goals_list(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    raw_goals = broker.list_goals(account_id, {"status": args.status}) or []
    goals = [FinancialGoal.from_payload(raw) for raw in raw_goals]
    render_records(
        console,
        "Goals",
        [asdict(goal) for goal in goals],
        ("goal_id", "name", "goal_type", "target_amount", "target_date", "priority", "status"),
        "No goals found.",
    )


def handle_goals_create(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    goal = validate_create(_goal_fields(args))
    result = broker.create_goal(account_id, goal, idempotency_key=args.idempotency_key)
    render_mapping(console, "Goal created", result)


def handle_goals_update(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    goal_id = require_goal_id(args.goal_id)
    patch = GoalPatch(_goal_fields(args))
    if not len(patch):
        raise ValueError("Nothing to update. Pass at least one field.")
    with translate_goal_errors():
        result = broker.update_goal(account_id, goal_id, patch.to_payload())
    render_mapping(console, "Goal updated", result)


def handle_goals_delete(broker: Broker, store: SessionStore, args: argparse.Namespace) -> None:
    account_id = _account_id(store, args)
    goal_id = require_goal_id(args.goal_id)
    with translate_goal_errors():
        broker.delete_goal(account_id, goal_id)
    console.print(colored(f"Deleted goal {goal_id}", "green"))


def handle_serve(_: Optional[Broker], __: SessionStore, args: argparse.Namespace) -> None:
    serve(args.host, args.port)


# ----------------------------------------------------------------------
# CLI wiring

def _add_transfer_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("amount", help="Amount in USD, e.g. 250 or 99.50")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--public-token", help="Plaid public token for a new bank link")
    source.add_argument("--item-id", help="Stored Plaid item id")
    parser.add_argument("--plaid-account", help="Plaid account id within the item")
    parser.add_argument("--currency", default="USD")
    parser.add_argument("--description")


def _add_goal_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name")
    parser.add_argument("--goal-type", dest="goal_type")
    parser.add_argument("--target-amount", dest="target_amount")
    parser.add_argument("--target-date", dest="target_date", help="YYYY-MM-DD")
    parser.add_argument("--priority", type=int, help="1 (highest) to 10")
    parser.add_argument("--monthly-contribution", dest="monthly_contribution")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meridian",
        description="Meridian client and gateway for the Bluum brokerage API",
    )
    parser.add_argument("--account", help="Bluum account id (defaults to the signed-in account)")

    sub = parser.add_subparsers(dest="cmd", required=True)

    login_parser = sub.add_parser("login", help="Store the signed-in user")
    login_parser.add_argument("email")
    login_parser.add_argument("--name")
    login_parser.set_defaults(func=handle_login, needs_broker=False)

    sub.add_parser("logout", help="Forget the signed-in user").set_defaults(
        func=handle_logout, needs_broker=False
    )
    sub.add_parser("whoami", help="Show the signed-in user").set_defaults(
        func=handle_whoami, needs_broker=False
    )

    link_parser = sub.add_parser("link", help="Attach a Bluum account id to the session")
    link_parser.add_argument("account_id")
    link_parser.set_defaults(func=handle_link, needs_broker=False)

    positions_parser = sub.add_parser("positions", help="List holdings")
    positions_parser.add_argument("--symbol")
    positions_parser.add_argument("--non-zero", action="store_true", help="Hide closed positions")
    positions_parser.set_defaults(func=handle_positions)

    orders_parser = sub.add_parser("orders", help="List recent orders")
    orders_parser.add_argument(
        "--status", choices=["accepted", "filled", "partially_filled", "canceled", "rejected"]
    )
    orders_parser.add_argument("--limit", type=int)
    orders_parser.set_defaults(func=handle_orders)

    tx_parser = sub.add_parser("transactions", help="List deposits and withdrawals")
    tx_parser.add_argument("--type", choices=["deposit", "withdrawal"])
    tx_parser.add_argument("--status", choices=["pending", "processing", "settled", "failed", "canceled"])
    tx_parser.add_argument("--limit", type=int)
    tx_parser.set_defaults(func=handle_transactions)

    buy_parser = sub.add_parser("buy", help="Submit a BUY order by shares or dollars")
    buy_parser.add_argument("symbol", help="Ticker symbol, e.g. AAPL")
    size = buy_parser.add_mutually_exclusive_group(required=True)
    size.add_argument("--qty", help="Share quantity (supports fractional)")
    size.add_argument("--dollars", help="Dollar amount to invest")
    buy_parser.add_argument("--limit", help="Limit price; makes this a limit order")
    buy_parser.add_argument("--tif", default="day", help="Time in force (day, gtc, opg, cls, ioc, fok)")
    buy_parser.set_defaults(func=handle_buy)

    sell_parser = sub.add_parser("sell", help="Submit a SELL order for held shares")
    sell_parser.add_argument("symbol", help="Ticker symbol, e.g. AAPL")
    sell_parser.add_argument("qty", help="Share quantity (supports fractional)")
    sell_parser.add_argument("--limit", help="Limit price; makes this a limit order")
    sell_parser.add_argument("--tif", default="day", help="Time in force (day, gtc, opg, cls, ioc, fok)")
    sell_parser.set_defaults(func=handle_sell)

    deposit_parser = sub.add_parser("deposit", help="Deposit from a Plaid-linked bank")
    _add_transfer_args(deposit_parser)
    deposit_parser.set_defaults(func=handle_deposit)

    sub.add_parser("banks", help="List Plaid-linked bank accounts").set_defaults(func=handle_banks)

    withdraw_parser = sub.add_parser("withdraw", help="Withdraw to a Plaid-linked bank")
    _add_transfer_args(withdraw_parser)
    withdraw_parser.add_argument("--available", type=float, help="Available balance to check against")
    withdraw_parser.add_argument("--idempotency-key", dest="idempotency_key")
    withdraw_parser.set_defaults(func=handle_withdraw)

    goals_parser = sub.add_parser("goals", help="Manage financial goals")
    goals_sub = goals_parser.add_subparsers(dest="goals_cmd", required=True)

    goals_list = goals_sub.add_parser("list", help="List goals")
    goals_list.add_argument("--status", choices=["active", "completed", "archived"])
    goals_list.set_defaults(func=handle_goals_list)

    goals_create = goals_sub.add_parser("create", help="Create a goal")
    _add_goal_args(goals_create)
    goals_create.add_argument("--idempotency-key", dest="idempotency_key")
    goals_create.set_defaults(func=handle_goals_create)

    goals_update = goals_sub.add_parser("update", help="Change only the given fields of a goal")
    goals_update.add_argument("goal_id")
    _add_goal_args(goals_update)
    goals_update.add_argument("--status", choices=["active", "completed", "archived"])
    goals_update.set_defaults(func=handle_goals_update)

    goals_delete = goals_sub.add_parser("delete", help="Delete a goal")
    goals_delete.add_argument("goal_id")
    goals_delete.set_defaults(func=handle_goals_delete)

    serve_parser = sub.add_parser("serve", help="Run the HTTP gateway")
    serve_parser.add_argument("--host")
    serve_parser.add_argument("--port", type=int)
    serve_parser.set_defaults(func=handle_serve, needs_broker=False)

    return parser


def main(argv: Optional[list[str]] = None, store: Optional[SessionStore] = None) -> int:
    load_dotenv()
    ensure_directories()
    configure_logging(get_log_level(), get_log_format())
    parser = build_parser()
    args = parser.parse_args(argv)
    func: ConsoleAction = args.func  # type: ignore[attr-defined]
    return run_action(args, func, store or FileSessionStore(SESSION_PATH))


if __name__ == "__main__":
    raise SystemExit(main())
