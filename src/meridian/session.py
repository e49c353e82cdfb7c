"""Persisted sign-in record for the CLI."""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional


@dataclass
class Session:
    email: str
    name: str = ""
    external_account_id: Optional[str] = None


class SessionStore(ABC):
    """Lifecycle: ``init`` a session, ``read`` it, ``update`` fields, ``clear`` it."""

    @abstractmethod
    def init(self, session: Session) -> Session:
        """Replace any stored session with ``session``."""

    @abstractmethod
    def read(self) -> Optional[Session]:
        """Return the stored session, if any."""

    @abstractmethod
    def update(self, **changes: Any) -> Session:
        """Change fields on the stored session."""

    @abstractmethod
    def clear(self) -> None:
        """Forget the stored session."""


class MemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._session: Optional[Session] = None

    def init(self, session: Session) -> Session:
        self._session = session
        return session

    def read(self) -> Optional[Session]:
        return self._session

    def update(self, **changes: Any) -> Session:
        if self._session is None:
            raise LookupError("No active session")
        self._session = _replace(self._session, changes)
        return self._session

    def clear(self) -> None:
        self._session = None


class FileSessionStore(SessionStore):
    """Keeps the session as JSON in a single file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def init(self, session: Session) -> Session:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(asdict(session), indent=2), encoding="utf-8")
        return session

    def read(self) -> Optional[Session]:
        if not self._path.exists():
            return None
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return None
        known = {f.name for f in fields(Session)}
        if not isinstance(raw, dict) or "email" not in raw:
            return None
        return Session(**{k: v for k, v in raw.items() if k in known})

    def update(self, **changes: Any) -> Session:
        current = self.read()
        if current is None:
            raise LookupError("No active session")
        return self.init(_replace(current, changes))

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()


def _replace(session: Session, changes: dict[str, Any]) -> Session:
    known = {f.name for f in fields(Session)}
    unknown = set(changes) - known
    if unknown:
        raise KeyError(f"Unknown session fields: {', '.join(sorted(unknown))}")
    data = asdict(session)
    data.update(changes)
    return Session(**data)
