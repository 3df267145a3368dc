"""Session records and their file-backed persistence."""
from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


@dataclass(frozen=True)
class Credentials:
    tenant_id: str
    username: str
    password: str = field(repr=False)

    @property
    def identity(self) -> str:
        return session_id_for(self.tenant_id, self.username)


@dataclass
class Session:
    """Authenticated state owned by exactly one login flow instance."""

    cookies: Dict[str, str]
    tenant_id: str
    username: str
    login_time: datetime
    expires_at: Optional[datetime] = None

    @property
    def identity(self) -> str:
        return session_id_for(self.tenant_id, self.username)

    def to_payload(self) -> dict[str, object]:
        return {
            "cookies": dict(self.cookies),
            "tenant_id": self.tenant_id,
            "username": self.username,
            "login_time": self.login_time.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, expires_at: Optional[datetime] = None) -> "Session":
        return cls(
            cookies={str(k): str(v) for k, v in (payload.get("cookies") or {}).items()},
            tenant_id=payload["tenant_id"],
            username=payload["username"],
            login_time=datetime.fromisoformat(payload["login_time"]),
            expires_at=expires_at,
        )


def session_id_for(tenant_id: str, username: str) -> str:
    return f"{tenant_id}_{username}"


class SessionStore:
    """Persists session payloads as one JSON file per identity with a TTL.

    Expired records are deleted when a ``load`` finds them, or in bulk by
    ``cleanup_expired``; nothing sweeps them proactively.
    """

    def __init__(self, root: Path, *, clock: Callable[[], float] = time.time) -> None:
        self.root = root
        self._clock = clock

    def _path(self, session_id: str) -> Path:
        return self.root / f"{_UNSAFE_FILENAME_CHARS.sub('_', session_id)}.json"

    def save(self, session_id: str, payload: dict[str, Any], ttl_seconds: float) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        now = self._clock()
        record = {
            "id": session_id,
            "data": payload,
            "created_at": now,
            "expires_at": now + ttl_seconds,
        }
        path = self._path(session_id)
        path.write_text(json.dumps(record, indent=2))
        logger.info("Session saved: %s (expires in %s minutes)", path.name, round(ttl_seconds / 60))
        return path

    def load_record(self, session_id: str) -> Optional[dict[str, Any]]:
        """Return the full stored record, or None when missing, unreadable or expired."""
        path = self._path(session_id)
        try:
            record = json.loads(path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError):
            logger.warning("Unreadable session record %s; ignoring", path.name, exc_info=True)
            return None
        if self._clock() > float(record.get("expires_at", 0)):
            logger.info("Session expired: %s", path.name)
            self.delete(session_id)
            return None
        return record

    def load(self, session_id: str) -> Optional[dict[str, Any]]:
        record = self.load_record(session_id)
        if record is None:
            return None
        remaining = round((float(record["expires_at"]) - self._clock()) / 60)
        logger.info("Session loaded: %s (%s minutes remaining)", session_id, remaining)
        return record.get("data")

    def delete(self, session_id: str) -> None:
        try:
            self._path(session_id).unlink()
            logger.info("Session deleted: %s", session_id)
        except FileNotFoundError:
            return

    def _iter_records(self):
        if not self.root.exists():
            return
        for path in sorted(self.root.glob("*.json")):
            try:
                yield path, json.loads(path.read_text())
            except (OSError, json.JSONDecodeError):
                logger.warning("Skipping unreadable session file %s", path.name)

    def list_active(self) -> List[str]:
        now = self._clock()
        return [
            str(record.get("id", path.stem))
            for path, record in self._iter_records()
            if now <= float(record.get("expires_at", 0))
        ]

    def cleanup_expired(self) -> int:
        now = self._clock()
        removed = 0
        for path, record in self._iter_records():
            if now > float(record.get("expires_at", 0)):
                path.unlink(missing_ok=True)
                removed += 1
        if removed:
            logger.info("Cleaned up %s expired session(s)", removed)
        return removed


def expiry_from_record(record: dict[str, Any]) -> datetime:
    return datetime.fromtimestamp(float(record["expires_at"]), tz=timezone.utc)
