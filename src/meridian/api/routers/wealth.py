"""Wealth routes: financial goals, investment policy, insights."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, Query, Response

from ...brokers.base import Broker
from ...errors import require
from ...goals import GoalPatch, require_goal_id, translate_goal_errors, validate_create
from ..dependencies import get_broker

router = APIRouter(prefix="/wealth", tags=["Wealth"])


@router.get("/goals")
def list_goals(
    account_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    goal_type: Optional[str] = Query(None),
    include_projections: Optional[str] = Query(None),
    broker: Broker = Depends(get_broker),
):
    require(account_id, "account_id")
    params: Dict[str, Any] = {}
    if status:
        params["status"] = status
    if goal_type:
        params["goal_type"] = goal_type
    if include_projections == "true":
        params["include_projections"] = True
    goals = broker.list_goals(account_id, params) or []
    return {"goals": goals, "total_count": len(goals)}


@router.post("/goals", status_code=201)
def create_goal(
    body: Dict[str, Any] = Body(...),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    broker: Broker = Depends(get_broker),
):
    account_id = body.get("account_id")
    require(account_id, "account_id")
    goal = validate_create(body)
    return broker.create_goal(account_id, goal, idempotency_key=idempotency_key)


@router.get("/goals/{goal_id}")
def get_goal(
    goal_id: str,
    account_id: Optional[str] = Query(None),
    include_projections: Optional[str] = Query(None),
    broker: Broker = Depends(get_broker),
):
    require(account_id, "account_id")
    goal_id = require_goal_id(goal_id)
    with translate_goal_errors():
        return broker.get_goal(
            account_id, goal_id, {"include_projections": include_projections == "true"}
        )


@router.put("/goals/{goal_id}")
def update_goal(
    goal_id: str,
    body: Dict[str, Any] = Body(...),
    broker: Broker = Depends(get_broker),
):
    account_id = body.get("account_id")
    require(account_id, "account_id")
    goal_id = require_goal_id(goal_id)
    patch = GoalPatch.from_body(body)
    with translate_goal_errors():
        return broker.update_goal(account_id, goal_id, patch.to_payload())


@router.delete("/goals/{goal_id}", status_code=204)
def delete_goal(
    goal_id: str,
    account_id: Optional[str] = Query(None),
    broker: Broker = Depends(get_broker),
):
    require(account_id, "account_id")
    goal_id = require_goal_id(goal_id)
    with translate_goal_errors():
        broker.delete_goal(account_id, goal_id)
    return Response(status_code=204)


@router.get("/investment-policy")
def investment_policy(account_id: Optional[str] = Query(None), broker: Broker = Depends(get_broker)):
    require(account_id, "account_id")
    return broker.get_investment_policy(account_id)


@router.get("/insights")
def insights(account_id: Optional[str] = Query(None), broker: Broker = Depends(get_broker)):
    require(account_id, "account_id")
    return broker.get_insights(account_id)
