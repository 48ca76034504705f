"""
Key-Value Audit Storage

Keeps the most recent audit events as one JSON list under `trackit_audit`.
Older events fall off the front once `max_events` is reached.
"""

import json
from typing import Optional

import structlog
from pydantic import ValidationError

from trackit.models.audit import AuditEvent
from trackit.services.storage.interface import AuditStorageInterface, KeyValueStore


AUDIT_KEY = "trackit_audit"


logger = structlog.get_logger(__name__)


class KeyValueAuditStorage(AuditStorageInterface):
    """Audit log stored alongside the finance data in the same namespace."""

    def __init__(self, kv: KeyValueStore, max_events: int = 500):
        self._kv = kv
        self._max_events = max_events

    def _load_raw(self) -> list[dict]:
        raw = self._kv.get(AUDIT_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            return []
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    def _load(self) -> list[AuditEvent]:
        events = []
        for item in self._load_raw():
            try:
                events.append(AuditEvent.model_validate(item))
            except ValidationError:
                continue
        return events

    def append_event(self, event: AuditEvent) -> bool:
        try:
            items = self._load_raw()
            items.append(event.to_storage_dict())
            items = items[-self._max_events:]
            self._kv.set(AUDIT_KEY, json.dumps(items))
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning(
                "audit_append_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._load()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

    def get_events_for_user(
        self,
        user_email: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = [e for e in self._load() if e.user_email == user_email]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

    def clear(self, user_email: Optional[str] = None) -> int:
        """Drop stored events (all, or one user's). Returns how many were removed."""
        items = self._load_raw()
        if user_email is None:
            kept = []
        else:
            kept = [item for item in items if item.get("user_email") != user_email]
        self._kv.set(AUDIT_KEY, json.dumps(kept))
        return len(items) - len(kept)
