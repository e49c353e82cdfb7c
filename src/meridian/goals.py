"""Financial goal create/update validation."""
from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterator, Mapping

from .brokers.base import UpstreamError
from .brokers.models import GOAL_STATUSES, GOAL_TYPES
from .errors import NotFoundError, ValidationError, require
from .normalize import parse_number

GOAL_NOT_FOUND = "Goal not found"

UPDATABLE_FIELDS = (
    "name",
    "goal_type",
    "target_amount",
    "target_date",
    "priority",
    "monthly_contribution",
    "status",
)


def _check_goal_type(value: Any) -> str:
    if value not in GOAL_TYPES:
        raise ValidationError(
            "goal_type must be one of: " + ", ".join(GOAL_TYPES), field="goal_type"
        )
    return value


def _check_amount(value: Any, field: str) -> str:
    number = parse_number(value)
    if number is None or number < 0:
        raise ValidationError(f"{field} must be a non-negative number", field=field)
    return str(value)


def _check_date(value: Any) -> str:
    text = str(value)
    try:
        date.fromisoformat(text.split("T")[0])
    except ValueError:
        raise ValidationError("target_date must be an ISO date (YYYY-MM-DD)", field="target_date") from None
    return text


def _check_priority(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("priority must be an integer between 1 and 10", field="priority")
    try:
        priority = int(value)
    except (TypeError, ValueError):
        raise ValidationError("priority must be an integer between 1 and 10", field="priority") from None
    if priority != parse_number(value) or not 1 <= priority <= 10:
        raise ValidationError("priority must be an integer between 1 and 10", field="priority")
    return priority


def _check_status(value: Any) -> str:
    if value not in GOAL_STATUSES:
        raise ValidationError(
            "status must be one of: " + ", ".join(GOAL_STATUSES), field="status"
        )
    return value


_CHECKS = {
    "name": lambda v: str(v),
    "goal_type": _check_goal_type,
    "target_amount": lambda v: _check_amount(v, "target_amount"),
    "target_date": _check_date,
    "priority": _check_priority,
    "monthly_contribution": lambda v: _check_amount(v, "monthly_contribution"),
    "status": _check_status,
}


def validate_create(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the vendor create body; optional fields are omitted when unset."""
    for field in ("name", "goal_type", "target_amount"):
        require(body.get(field), field)

    payload: Dict[str, Any] = {
        "name": _CHECKS["name"](body["name"]),
        "goal_type": _check_goal_type(body["goal_type"]),
        "target_amount": _CHECKS["target_amount"](body["target_amount"]),
    }
    for field in ("target_date", "priority", "monthly_contribution"):
        value = body.get(field)
        if value is None or value == "":
            continue
        payload[field] = _CHECKS[field](value)
    return payload


class GoalPatch:
    """A partial goal update.

    Only keys the caller supplied are kept. A key supplied as ``None`` stays in
    the patch as an explicit null, which the vendor treats differently from an
    omitted key (omitted means leave unchanged).
    """

    def __init__(self, fields: Mapping[str, Any] | None = None) -> None:
        self._fields: Dict[str, Any] = {}
        for key, value in (fields or {}).items():
            if key not in UPDATABLE_FIELDS:
                raise ValidationError(f"{key} cannot be updated", field=key)
            self._fields[key] = value if value is None else _CHECKS[key](value)

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> "GoalPatch":
        return cls({key: body[key] for key in UPDATABLE_FIELDS if key in body})

    def __contains__(self, key: str) -> bool:
        return key in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"GoalPatch({self._fields!r})"

    def to_payload(self) -> Dict[str, Any]:
        return dict(self._fields)

    def apply(self, goal: Mapping[str, Any]) -> Dict[str, Any]:
        merged = dict(goal)
        merged.update(self._fields)
        return merged


def require_goal_id(goal_id: Any) -> str:
    require(goal_id, "goal_id")
    return str(goal_id)


@contextmanager
def translate_goal_errors() -> Iterator[None]:
    """Turn a vendor 404 into NotFoundError; other failures pass through."""
    try:
        yield
    except UpstreamError as exc:
        if exc.status == 404:
            raise NotFoundError(GOAL_NOT_FOUND) from exc
        raise
